import httpx
import pytest

from gateway.errors import BackendError
from gateway.models import (
    ToolArguments, NoPrice, RangePrice, ExactPrice, AbovePrice, UnderPrice, ClosestPrice,
)
from gateway.tools import (
    TOOLS_SCHEMA, ToolKind, CatalogClient, CatalogSearch, price_frame, apply_price_filter, rank_by_price,
)

# Helper to make a small game catalog with mixed price formats
def make_items():
    return [
        {"id": "a", "title": "Rocket Racer", "price": 25.0},
        {"id": "b", "title": "Co-op Castle", "price": "$19.99"},
        {"id": "c", "title": "Puzzle Box", "price": "12"},
        {"id": "d", "title": "Mystery Deluxe", "price": "contact us"},
        {"id": "e", "title": "Space Tactics", "price": 15},
        {"id": "f", "title": "Free Fall", "price": "0 USD"},
        {"id": "g", "title": "Broken", "price": -3},
        {"id": "h", "title": "No Price"},
    ]


class FakeCatalog:
    # Records every query and answers from a canned table keyed by query
    def __init__(self, by_query):
        self.by_query = by_query
        self.calls = []

    def search(self, query, limit):
        self.calls.append((query, limit))
        return list(self.by_query.get(query, []))


def ids(result):
    return [it["id"] for it in result.results]

# Unparseable, negative and missing prices never get a row
def test_price_frame_drops_bad_prices():
    df = price_frame(make_items())
    assert list(df.index) == [0, 1, 2, 4, 5]
    assert df.loc[1, "price"] == pytest.approx(19.99)

# Exact keeps items within tolerance of a float price
def test_filter_exact_tolerates_float_storage():
    df = price_frame(make_items())
    out = apply_price_filter(df, ExactPrice(exact_price=19.99))
    assert list(out.index) == [1]

# Range bounds are inclusive
def test_filter_range_inclusive():
    df = price_frame(make_items())
    out = apply_price_filter(df, RangePrice(min_price=12, max_price=19.99))
    assert set(out.index) == {1, 2, 4}

# Strict vs inclusive bounds
def test_filter_under_and_above_bounds():
    df = price_frame(make_items())
    assert set(apply_price_filter(df, UnderPrice(max_price=15)).index) == {2, 5}
    assert set(apply_price_filter(df, UnderPrice(max_price=15, max_inclusive=True)).index) == {2, 4, 5}
    assert set(apply_price_filter(df, AbovePrice(min_price=15)).index) == {0, 1}
    assert set(apply_price_filter(df, AbovePrice(min_price=15, min_inclusive=True)).index) == {0, 1, 4}

# None and closest do not filter
def test_filter_none_and_closest_keep_all():
    df = price_frame(make_items())
    assert len(apply_price_filter(df, NoPrice())) == len(df)
    assert len(apply_price_filter(df, ClosestPrice(target_price=3))) == len(df)

# Ranking per mode
def test_rank_orders_per_mode():
    df = price_frame(make_items())  # prices 25, 19.99, 12, 15, 0
    assert list(rank_by_price(df, NoPrice()).index) == [5, 2, 4, 1, 0]
    assert list(rank_by_price(df, ClosestPrice(target_price=20)).index) == [1, 0, 4, 2, 5]
    assert list(rank_by_price(df, UnderPrice(max_price=30)).index) == [0, 1, 4, 2, 5]
    assert list(rank_by_price(df, AbovePrice(min_price=10)).index) == [5, 2, 4, 1, 0]

# Ties keep catalog order
def test_rank_is_stable():
    items = [{"id": "x", "price": 18}, {"id": "y", "price": 22}, {"id": "z", "price": 18}]
    df = price_frame(items)
    assert list(rank_by_price(df, ClosestPrice(target_price=20)).index) == [0, 1, 2]

# Closest scenario from "any game around 20 bucks"
def test_search_closest_orders_by_distance():
    catalog = FakeCatalog({"": make_items()})
    result = CatalogSearch(catalog).search(ToolArguments(query="", limit=3, price=ClosestPrice(target_price=20)))
    assert ids(result) == ["b", "a", "e"]
    assert result.price_mode == "closest"
    assert result.target_price == 20

# Under filters first then favors prices near the ceiling
def test_search_under_15():
    catalog = FakeCatalog({"co-op": make_items()})
    result = CatalogSearch(catalog).search(ToolArguments(query="co-op", limit=5, price=UnderPrice(max_price=15)))
    assert ids(result) == ["c", "f"]
    assert result.max_price == 15
    assert result.max_inclusive is False
    assert result.fallback_used is False

# "$19.99" is kept under Exact(19.99); "contact us" is skipped without an error
def test_search_exact_with_currency_string():
    catalog = FakeCatalog({"castle": make_items()})
    result = CatalogSearch(catalog).search(ToolArguments(query="castle", price=ExactPrice(exact_price=19.99)))
    assert ids(result) == ["b"]
    assert result.results[0]["price"] == "$19.99"

# Over-fetch leaves room for filtering
def test_search_over_fetches():
    catalog = FakeCatalog({})
    CatalogSearch(catalog).search(ToolArguments(query="", limit=8))
    assert catalog.calls == [("", 80)]
    CatalogSearch(catalog).search(ToolArguments(query="", limit=2))
    assert catalog.calls[-1] == ("", 50)

# No hits for the keywords: retry once with a wildcard
def test_search_fallback_to_wildcard():
    catalog = FakeCatalog({"": make_items()})
    result = CatalogSearch(catalog).search(ToolArguments(query="zombies", limit=2))
    assert [q for q, _ in catalog.calls] == ["zombies", ""]
    assert result.fallback_used is True
    assert result.query_original == "zombies"
    assert result.query_used == ""
    assert ids(result) == ["f", "c"]

# An empty query that finds nothing is not retried
def test_search_no_fallback_for_empty_query():
    catalog = FakeCatalog({})
    result = CatalogSearch(catalog).search(ToolArguments(query=""))
    assert len(catalog.calls) == 1
    assert result.fallback_used is False
    assert result.results == []

# Results are returned exactly as the catalog sent them
def test_search_results_have_no_scratch_fields():
    catalog = FakeCatalog({"": make_items()})
    result = CatalogSearch(catalog).search(ToolArguments(query="", limit=10))
    for item in result.results:
        assert set(item) <= {"id", "title", "price"}

# One tool, with the price_mode enum
def test_tools_schema_shape():
    assert len(TOOLS_SCHEMA) == 1
    fn = TOOLS_SCHEMA[0]["function"]
    assert fn["name"] == "search_games"
    assert fn["parameters"]["required"] == ["query"]
    assert fn["parameters"]["properties"]["price_mode"]["enum"] == ["none", "under", "above", "range", "exact", "closest"]

# Unknown names resolve to the Unknown kind
def test_tool_kind_resolve():
    assert ToolKind.resolve("search_games") is ToolKind.SEARCH_GAMES
    assert ToolKind.resolve("delete_everything") is ToolKind.UNKNOWN
    assert ToolKind.resolve(None) is ToolKind.UNKNOWN

# Catalog client posts query and limit and reads results
def test_catalog_client_search():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.read()
        return httpx.Response(200, json={"results": [{"id": "a", "price": 5}]})

    client = CatalogClient(base_url="http://catalog:3001/", transport=httpx.MockTransport(handler))
    assert client.search("racing", 50) == [{"id": "a", "price": 5}]
    assert seen["url"] == "http://catalog:3001/api/search"
    assert b'"query":"racing"' in seen["body"].replace(b" ", b"")

# Missing results list is an empty result
def test_catalog_client_missing_results():
    client = CatalogClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"hits": []})))
    assert client.search("", 50) == []

# Non success status surfaces as a backend error
def test_catalog_client_error_status():
    client = CatalogClient(transport=httpx.MockTransport(lambda r: httpx.Response(503, text="down")))
    with pytest.raises(BackendError) as exc:
        client.search("racing", 50)
    assert exc.value.status_code == 503
    assert "down" in str(exc.value)

# Transport failures too
def test_catalog_client_unreachable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = CatalogClient(transport=httpx.MockTransport(handler))
    with pytest.raises(BackendError):
        client.search("racing", 50)

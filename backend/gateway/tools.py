from __future__ import annotations
import enum
import re
from typing import Any, Dict, List, Optional

import httpx
import numpy as np
import pandas as pd

from .config import CATALOG_SERVICE_URL, HTTP_TIMEOUT, MIN_FETCH
from .errors import BackendError
from .logger import get_logger
from .models import (
    PRICE_MODES,
    AbovePrice,
    ClosestPrice,
    ExactPrice,
    PriceIntent,
    RangePrice,
    SearchResult,
    ToolArguments,
    UnderPrice,
)

log = get_logger("tools")

# Prices are stored as floats upstream, so an exact match allows half a cent either way
EXACT_PRICE_TOLERANCE = 0.005


def build_tools_schema() -> List[Dict[str, Any]]:
    # JSON schema sent to the model so it can emit search_games tool calls
    return [
        {
            "type": "function",
            "function": {
                "name": "search_games",
                "description": "Search games with optional price filters (under/above/range/exact/closest).",
                "parameters": {
                    "type": "object",
                    "required": ["query"],
                    "properties": {
                        "query": {"type": "string", "description": "Keywords, or empty for any."},
                        "limit": {"type": "integer", "default": 5},
                        "min_price": {"type": "number"},
                        "max_price": {"type": "number"},
                        "exact_price": {"type": "number"},
                        "target_price": {"type": "number"},
                        "min_inclusive": {"type": "boolean", "default": True},
                        "max_inclusive": {"type": "boolean", "default": True},
                        "price_mode": {
                            "type": "string",
                            "enum": list(PRICE_MODES),
                            "default": "none",
                        },
                    },
                },
            },
        }
    ]


# Built once at import and only ever read
TOOLS_SCHEMA = tuple(build_tools_schema())


class ToolKind(str, enum.Enum):
    SEARCH_GAMES = "search_games"
    UNKNOWN = "unknown"

    @classmethod
    def resolve(cls, name: Optional[str]) -> "ToolKind":
        if name == cls.SEARCH_GAMES.value:
            return cls.SEARCH_GAMES
        return cls.UNKNOWN


class CatalogClient:
    """Thin client for the catalog service's /api/search"""

    def __init__(self, base_url: str = CATALOG_SERVICE_URL, timeout: float = HTTP_TIMEOUT, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(timeout=timeout, transport=transport)

    def search(self, query: str, limit: int) -> List[Dict[str, Any]]:
        try:
            resp = self._http.post(f"{self.base_url}/api/search", json={"query": query, "limit": limit})
        except httpx.HTTPError as e:
            raise BackendError("catalog-service", f"{e} for query={query!r}") from e
        if resp.status_code >= 400:
            raise BackendError("catalog-service", f"{resp.text} for query={query!r}", resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise BackendError("catalog-service", f"invalid JSON for query={query!r}") from e
        results = data.get("results") if isinstance(data, dict) else None
        return results if isinstance(results, list) else []

    def close(self) -> None:
        self._http.close()


_PRICE_TEXT_RE = re.compile(
    r"^\s*(?:usd|eur|gbp)?\s*[$€£]?\s*(\d+(?:\.\d+)?)\s*(?:usd|eur|gbp|[$€£])?\s*$",
    re.IGNORECASE,
)


def _price_token(value: Any) -> Any:
    # Bare number for pd.to_numeric, or None when the value is not a price
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return None
    if isinstance(value, str):
        m = _PRICE_TEXT_RE.match(value)
        return m.group(1) if m else None
    return None


def price_frame(items: List[Any]) -> pd.DataFrame:
    """One row per usable item, indexed by its position in `items`

    Items with a missing, non numeric, negative or infinite price get no row
    """
    raw = pd.Series([_price_token(it.get("price")) if isinstance(it, dict) else None for it in items], dtype=object)
    prices = pd.to_numeric(raw, errors="coerce").astype(float)
    keep = np.isfinite(prices) & (prices >= 0)
    return pd.DataFrame({"price": prices[keep]})


def apply_price_filter(df: pd.DataFrame, intent: PriceIntent) -> pd.DataFrame:
    # Keep rows that satisfy the price constraint; none and closest keep everything
    out = df
    if isinstance(intent, ExactPrice):
        out = out[(out["price"] - intent.exact_price).abs() <= EXACT_PRICE_TOLERANCE]
    elif isinstance(intent, RangePrice):
        out = out[(out["price"] >= intent.min_price) & (out["price"] <= intent.max_price)]
    elif isinstance(intent, AbovePrice):
        if intent.min_inclusive:
            out = out[out["price"] >= intent.min_price]
        else:
            out = out[out["price"] > intent.min_price]
    elif isinstance(intent, UnderPrice):
        if intent.max_inclusive:
            out = out[out["price"] <= intent.max_price]
        else:
            out = out[out["price"] < intent.max_price]
    return out


def rank_by_price(df: pd.DataFrame, intent: PriceIntent) -> pd.DataFrame:
    """Order rows for the price mode

    closest: nearest to the target first
    under: nearest below the ceiling first
    above: nearest above the floor first
    anything else (range included): cheapest first
    Stable, so catalog order breaks ties
    """
    if isinstance(intent, ClosestPrice):
        key = (df["price"] - intent.target_price).abs()
    elif isinstance(intent, UnderPrice):
        key = intent.max_price - df["price"]
    elif isinstance(intent, AbovePrice):
        key = df["price"] - intent.min_price
    else:
        key = df["price"]
    return df.assign(_rank=key).sort_values("_rank", kind="mergesort").drop(columns="_rank")


class CatalogSearch:
    """Runs one search_games call: fetch, wildcard fallback, price filter, rank, truncate"""

    def __init__(self, catalog: CatalogClient, min_fetch: int = MIN_FETCH):
        self.catalog = catalog
        self.min_fetch = min_fetch

    def search(self, args: ToolArguments) -> SearchResult:
        query = args.query.strip()
        fetch_k = max(args.limit * 10, self.min_fetch)
        items = self.catalog.search(query, fetch_k)

        query_used = query
        fallback_used = False
        if not items and query:
            # Keywords matched nothing; a wildcard search still lets price filters find stock
            log.info("No catalog hits for query=%r, retrying with wildcard", query)
            items = self.catalog.search("", fetch_k)
            query_used = ""
            fallback_used = True

        df = price_frame(items)
        df = apply_price_filter(df, args.price)
        df = rank_by_price(df, args.price).head(args.limit)

        return SearchResult(
            query_original=query,
            query_used=query_used,
            fallback_used=fallback_used,
            results=[items[i] for i in df.index],
            **args.price.tool_fields(),
        )

"""Rule based intent routing for the game store gateway

Three small pieces live here and all of them are plain deterministic rules
should_use_catalog decides if a turn must be grounded in a catalog search
parse_price_intent turns free text into one price constraint
derive_query boils free text down to search keywords
"""

from __future__ import annotations
import math
import re
from typing import Callable, Optional, Tuple

from .models import (
    AbovePrice,
    ClosestPrice,
    ExactPrice,
    NoPrice,
    PriceIntent,
    RangePrice,
    UnderPrice,
)

# Words that mean the user is talking about the store.
# Looser than the price patterns below on purpose: it only gates the tool call
CATALOG_SIGNALS = (
    "recommend", "suggest", "game", "games", "price", "cost",
    "under", "below", "less than", "more than", "over", "between",
    "around", "almost", "close to",
)
_SIGNAL_RE = re.compile(
    r"\b(?:" + "|".join(s.replace(" ", r"\s+") for s in CATALOG_SIGNALS) + r")\b",
    re.IGNORECASE,
)


def should_use_catalog(text: str) -> bool:
    """True when the turn is catalog relevant and a search_games call is mandatory"""
    t = text or ""
    return bool(_SIGNAL_RE.search(t)) or "$" in t


# Optional leading currency mark, then a number with an optional fraction
_NUM = r"[$€£]?\s*(\d+(?:\.\d+)?)"

_RANGE_PATTERNS = (
    re.compile(rf"\bbetween\s*{_NUM}\s*(?:and|to)\s*{_NUM}", re.IGNORECASE),
    re.compile(rf"{_NUM}\s*-\s*{_NUM}"),
)
_EXACT_RE = re.compile(rf"\b(?:costs?|priced\s+at|exactly|for)\s*{_NUM}", re.IGNORECASE)
_ABOVE_RE = re.compile(rf"(?:\b(?:more\s+than|over|at\s+least)|>=|>)\s*{_NUM}", re.IGNORECASE)
_ABOVE_INCLUSIVE_RE = re.compile(r">=|at\s+least", re.IGNORECASE)
_UNDER_RE = re.compile(rf"(?:\b(?:under|below|less\s+than)|<=|<)\s*{_NUM}", re.IGNORECASE)
_CLOSEST_RE = re.compile(rf"\b(?:almost|around|about|near|close\s+to)\s*{_NUM}", re.IGNORECASE)


def _finite(raw: str) -> Optional[float]:
    # A long enough digit run overflows to inf; that capture does not count
    try:
        x = float(raw)
    except ValueError:
        return None
    return x if math.isfinite(x) else None


def _match_range(text: str) -> Optional[PriceIntent]:
    for pattern in _RANGE_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        a, b = _finite(m.group(1)), _finite(m.group(2))
        if a is not None and b is not None:
            return RangePrice(min_price=min(a, b), max_price=max(a, b))
    return None


def _match_exact(text: str) -> Optional[PriceIntent]:
    m = _EXACT_RE.search(text)
    x = _finite(m.group(1)) if m else None
    return ExactPrice(exact_price=x) if x is not None else None


def _match_above(text: str) -> Optional[PriceIntent]:
    m = _ABOVE_RE.search(text)
    x = _finite(m.group(1)) if m else None
    if x is None:
        return None
    inclusive = bool(_ABOVE_INCLUSIVE_RE.search(m.group(0)))
    return AbovePrice(min_price=x, min_inclusive=inclusive)


def _match_under(text: str) -> Optional[PriceIntent]:
    m = _UNDER_RE.search(text)
    x = _finite(m.group(1)) if m else None
    if x is None:
        return None
    return UnderPrice(max_price=x, max_inclusive="<=" in m.group(0))


def _match_closest(text: str) -> Optional[PriceIntent]:
    m = _CLOSEST_RE.search(text)
    x = _finite(m.group(1)) if m else None
    return ClosestPrice(target_price=x) if x is not None else None


# Order matters: "between 8 and 15" must be seen as a range before anything looser gets a go
PRICE_MATCHERS: Tuple[Callable[[str], Optional[PriceIntent]], ...] = (
    _match_range,
    _match_exact,
    _match_above,
    _match_under,
    _match_closest,
)


def parse_price_intent(text: str) -> PriceIntent:
    """Parse one price constraint from free text

    Supports between 8 and 15, 10-20, costs 30, over 20, >= 20, under $15, <= 15, around 20
    Text with no usable price phrase gives NoPrice
    """
    t = text or ""
    for matcher in PRICE_MATCHERS:
        intent = matcher(t)
        if intent is not None:
            return intent
    return NoPrice()


STOPWORDS = frozenset({
    "recommend", "suggest", "show", "give",
    "game", "games", "genre", "genres",
    "explain", "why",
    "one", "that", "this", "these", "those", "it",
    "a", "an", "the",
    "me", "i", "you", "we", "my",
    "please",
    "cost", "costs", "priced", "price", "pricing",
    "under", "below", "less", "than", "more", "over", "at", "least",
    "between", "and", "to", "for", "exactly",
    "around", "about", "almost", "near", "close",
    "bucks", "dollar", "dollars", "usd",
    "from", "any", "all", "anything", "everything",
})

_SYMBOLS_RE = re.compile(r"[$€£]|[<>]=?")
_PUNCT_RE = re.compile(r"[^a-z0-9\s-]")
_NUMBER_RE = re.compile(r"\b\d+(?:\.\d+)?\b")
_SPACES_RE = re.compile(r"\s+")


def derive_query(text: str) -> str:
    """Reduce free text to search keywords

    Price phrases and filler never reach the catalog: "recommend a co-op game under $15" gives "co-op"
    An empty result means match anything
    """
    q = str(text or "").lower()
    q = _SYMBOLS_RE.sub(" ", q)
    # Punctuation goes before numbers so "19.99" splits into two bare numbers that both drop
    q = _PUNCT_RE.sub(" ", q)
    q = _NUMBER_RE.sub(" ", q)
    q = _SPACES_RE.sub(" ", q).strip()

    tokens = []
    for tok in q.split(" "):
        tok = tok.strip("-")  # keep co-op, lose dangling dashes
        if len(tok) <= 1 or tok.isdigit() or tok in STOPWORDS:
            continue
        tokens.append(tok)
    return " ".join(tokens)

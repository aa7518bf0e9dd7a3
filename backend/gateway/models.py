from __future__ import annotations
import math
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

# Every price constraint is one of these cases, told apart by price_mode.
# Field names match the search_games tool schema so a case dumps straight into tool fields.

Price = Annotated[float, Field(ge=0, allow_inf_nan=False)]


class _PriceCase(BaseModel):
    model_config = ConfigDict(frozen=True)

    def tool_fields(self) -> Dict[str, Any]:
        return self.model_dump()


class NoPrice(_PriceCase):
    price_mode: Literal["none"] = "none"


class RangePrice(_PriceCase):
    # Both bounds inclusive
    price_mode: Literal["range"] = "range"
    min_price: Price
    max_price: Price

    @model_validator(mode="before")
    @classmethod
    def _order_bounds(cls, data: Any) -> Any:
        if isinstance(data, dict):
            lo, hi = data.get("min_price"), data.get("max_price")
            if isinstance(lo, (int, float)) and isinstance(hi, (int, float)) and lo > hi:
                data = {**data, "min_price": hi, "max_price": lo}
        return data


class ExactPrice(_PriceCase):
    price_mode: Literal["exact"] = "exact"
    exact_price: Price


class AbovePrice(_PriceCase):
    price_mode: Literal["above"] = "above"
    min_price: Price
    min_inclusive: bool = False


class UnderPrice(_PriceCase):
    price_mode: Literal["under"] = "under"
    max_price: Price
    max_inclusive: bool = False


class ClosestPrice(_PriceCase):
    price_mode: Literal["closest"] = "closest"
    target_price: Price


PriceIntent = Annotated[
    Union[NoPrice, RangePrice, ExactPrice, AbovePrice, UnderPrice, ClosestPrice],
    Field(discriminator="price_mode"),
]

PRICE_MODES = ("none", "under", "above", "range", "exact", "closest")


def _as_price(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(x) or x < 0:
        return None
    return x


def _as_flag(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return default


def price_intent_from_fields(fields: Mapping[str, Any]) -> PriceIntent:
    """Build a price case from flat tool fields as a model proposed them

    Anything incomplete or out of range collapses to NoPrice rather than failing.
    Inclusivity flags default to true, as in the tool schema
    """
    mode = str(fields.get("price_mode") or "none").strip().lower()
    lo = _as_price(fields.get("min_price"))
    hi = _as_price(fields.get("max_price"))
    if mode == "range" and lo is not None and hi is not None:
        return RangePrice(min_price=lo, max_price=hi)
    if mode == "exact":
        x = _as_price(fields.get("exact_price"))
        if x is not None:
            return ExactPrice(exact_price=x)
    if mode == "above" and lo is not None:
        return AbovePrice(min_price=lo, min_inclusive=_as_flag(fields.get("min_inclusive")))
    if mode == "under" and hi is not None:
        return UnderPrice(max_price=hi, max_inclusive=_as_flag(fields.get("max_inclusive")))
    if mode == "closest":
        x = _as_price(fields.get("target_price"))
        if x is not None:
            return ClosestPrice(target_price=x)
    return NoPrice()


class ToolArguments(BaseModel):
    # Arguments for one search_games call; each stage returns a new copy
    model_config = ConfigDict(frozen=True)

    query: str = ""
    limit: int = Field(default=5, ge=1)
    price: PriceIntent = Field(default_factory=NoPrice)


class SearchResult(BaseModel):
    # What a search_games call hands back to the model as the tool message
    query_original: str
    query_used: str
    fallback_used: bool = False
    price_mode: str = "none"
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    exact_price: Optional[float] = None
    target_price: Optional[float] = None
    min_inclusive: Optional[bool] = None
    max_inclusive: Optional[bool] = None
    results: List[Dict[str, Any]] = Field(default_factory=list)


class ChatRequest(BaseModel):
    # What comes from the client: the conversation so far, oldest first.
    # Shape is checked by the orchestrator so every violation maps to a 400
    messages: Any = None


class ChatResponse(BaseModel):
    answer: str
    model: Optional[str] = None

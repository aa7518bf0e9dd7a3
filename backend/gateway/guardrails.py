"""Guardrails between what the model proposes and what the user actually said

The model picks the tool and usually a good keyword query, but price limits are
only ever taken from the user's own message
"""

from __future__ import annotations
import json
from typing import Any, Dict

from .config import DEFAULT_LIMIT, MAX_RESULTS
from .logger import get_logger
from .models import NoPrice, ToolArguments, price_intent_from_fields
from .router import derive_query, parse_price_intent

log = get_logger("guardrails")


def _decode(raw: Any) -> Dict[str, Any]:
    # Arguments come as an object or a JSON string depending on model/backend
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning("Failed to parse tool arguments (%s), using empty arguments", e)
            return {}
        if isinstance(decoded, dict):
            return decoded
        log.warning("Tool arguments decoded to %s, using empty arguments", type(decoded).__name__)
    return {}


def _limit(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_LIMIT
    try:
        n = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_LIMIT
    return n if n >= 1 else DEFAULT_LIMIT


def parse_tool_arguments(raw: Any) -> ToolArguments:
    """Turn a model's raw search_games arguments into ToolArguments

    Never fails: undecodable input is treated as an empty argument set
    """
    fields = _decode(raw)
    query = fields.get("query")
    return ToolArguments(
        query=query if isinstance(query, str) else "",
        limit=_limit(fields.get("limit")),
        price=price_intent_from_fields(fields),
    )


def reconcile(user_text: str, proposed: ToolArguments) -> ToolArguments:
    """Merge the model's proposal with what can be derived from the user's text

    The query keeps the model's keywords when it sent any (cleaned like user text)
    The price always comes from the user: a stated price replaces the proposal's,
    no stated price wipes whatever the model filled in
    """
    source = proposed.query if proposed.query.strip() else user_text
    limit = min(proposed.limit or DEFAULT_LIMIT, MAX_RESULTS)

    user_intent = parse_price_intent(user_text)
    if isinstance(user_intent, NoPrice) and not isinstance(proposed.price, NoPrice):
        log.info("Dropping model-proposed price_mode=%s, user stated no price", proposed.price.price_mode)

    return proposed.model_copy(update={
        "query": derive_query(source),
        "limit": max(limit, 1),
        "price": user_intent,
    })

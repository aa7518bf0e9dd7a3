from .models import (
    PriceIntent, NoPrice, RangePrice, ExactPrice, AbovePrice, UnderPrice, ClosestPrice,
    ToolArguments, SearchResult, ChatRequest, ChatResponse, price_intent_from_fields,
)
from .router import should_use_catalog, parse_price_intent, derive_query
from .guardrails import parse_tool_arguments, reconcile
from .tools import TOOLS_SCHEMA, ToolKind, CatalogClient, CatalogSearch, apply_price_filter, rank_by_price
from .llm import OllamaClient
from .orchestrator import ChatOrchestrator, ChatState
from .errors import GatewayError, ClientInputError, BackendError

__all__ = [
    'PriceIntent','NoPrice','RangePrice','ExactPrice','AbovePrice','UnderPrice','ClosestPrice',
    'ToolArguments','SearchResult','ChatRequest','ChatResponse','price_intent_from_fields',
    'should_use_catalog','parse_price_intent','derive_query',
    'parse_tool_arguments','reconcile',
    'TOOLS_SCHEMA','ToolKind','CatalogClient','CatalogSearch','apply_price_filter','rank_by_price',
    'OllamaClient','ChatOrchestrator','ChatState',
    'GatewayError','ClientInputError','BackendError',
]

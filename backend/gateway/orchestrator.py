"""Two phase tool calling around the chat model

1 Send the conversation plus the tool schema; the model may ask for search_games
2 If the user clearly needs the catalog and the model did not ask, ask on its behalf
3 Run every tool call server side with guardrails applied and append the results
4 Ask the model again with tools disabled and return that answer
A turn with no tool calls at all ends after the first completion
"""

from __future__ import annotations
import enum
import json
from typing import Any, Dict, List, Optional, Sequence

from .config import DEFAULT_LIMIT
from .errors import ClientInputError
from .guardrails import parse_tool_arguments, reconcile
from .llm import OllamaClient
from .logger import get_logger
from .models import ChatResponse
from .router import should_use_catalog
from .tools import TOOLS_SCHEMA, CatalogSearch, ToolKind

log = get_logger("orchestrator")

INPUT_ROLES = ("user", "assistant", "system")

SYSTEM_PROMPT = (
    "You are a helpful assistant that can also act as a game store assistant or a friend. "
    "If the user asks about games/prices/recommendations, you MUST call search_games first and answer only from tool results. "
    "Otherwise, chat like a normal smart ai."
)

FINAL_INSTRUCTION = "Tool results have been provided. Now answer. Do NOT call any tools."


class ChatState(str, enum.Enum):
    START = "start"
    AWAITING_FIRST_COMPLETION = "awaiting_first_completion"
    EXECUTING_TOOLS = "executing_tools"
    AWAITING_FINAL_COMPLETION = "awaiting_final_completion"
    DONE = "done"
    FAILED = "failed"


def validate_messages(messages: Any) -> List[Dict[str, Any]]:
    if not isinstance(messages, list) or not messages:
        raise ClientInputError("Body must include messages: [{role, content}, ...]")
    for m in messages:
        if not isinstance(m, dict) or m.get("role") not in INPUT_ROLES or not isinstance(m.get("content"), str):
            raise ClientInputError("Body must include messages: [{role, content}, ...]")
    return [{"role": m["role"], "content": m["content"]} for m in messages]


def latest_user_text(messages: List[Dict[str, Any]]) -> str:
    for m in reversed(messages):
        if m.get("role") == "user":
            return m.get("content") or ""
    return ""


class ChatOrchestrator:
    def __init__(self, llm: OllamaClient, search: CatalogSearch, tools: Sequence[Dict[str, Any]] = TOOLS_SCHEMA):
        self.llm = llm
        self.search = search
        self.tools = tools

    def _enter(self, state: ChatState) -> ChatState:
        log.debug("chat state -> %s", state.value)
        return state

    def run(self, messages: Any) -> ChatResponse:
        state = self._enter(ChatState.START)
        try:
            history = validate_messages(messages)
            last_user = latest_user_text(history)
            must_use_tool = should_use_catalog(last_user)

            # Conversation for this request only; grows as tool results come in
            convo: List[Dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}, *history]

            state = self._enter(ChatState.AWAITING_FIRST_COMPLETION)
            first = self.llm.chat(convo, tools=self.tools)
            msg = first["message"]
            convo.append(msg)

            tool_calls = self.resolve_tool_calls(msg, last_user, must_use_tool)
            if not tool_calls:
                state = self._enter(ChatState.DONE)
                return ChatResponse(answer=msg.get("content") or "", model=first.get("model"))

            state = self._enter(ChatState.EXECUTING_TOOLS)
            for tc in tool_calls:
                convo.append(self.execute_tool_call(tc, last_user))

            state = self._enter(ChatState.AWAITING_FINAL_COMPLETION)
            convo.append({"role": "system", "content": FINAL_INSTRUCTION})
            final = self.llm.chat(convo, tools=None)

            state = self._enter(ChatState.DONE)
            return ChatResponse(answer=final["message"].get("content") or "", model=final.get("model"))
        except ClientInputError as e:
            log.info("rejected request: %s", e)
            self._enter(ChatState.FAILED)
            raise
        except Exception as e:
            log.error("chat failed in state %s: %s", state.value, e)
            self._enter(ChatState.FAILED)
            raise

    def resolve_tool_calls(self, msg: Dict[str, Any], last_user: str, must_use_tool: bool) -> List[Dict[str, Any]]:
        tool_calls = msg.get("tool_calls") or []
        if not isinstance(tool_calls, list):
            tool_calls = []
        if must_use_tool and not tool_calls:
            # Model skipped the tool on a catalog question; call it ourselves so the answer stays grounded
            log.info("Model proposed no tool call for a catalog question, synthesizing search_games")
            tool_calls = [
                {
                    "function": {
                        "name": ToolKind.SEARCH_GAMES.value,
                        "arguments": {"query": last_user, "limit": DEFAULT_LIMIT},
                    }
                }
            ]
        return tool_calls

    def execute_tool_call(self, tc: Any, last_user: str) -> Dict[str, Any]:
        fn = tc.get("function") if isinstance(tc, dict) else None
        fn = fn if isinstance(fn, dict) else {}
        name = fn.get("name")

        kind = ToolKind.resolve(name)
        if kind is ToolKind.SEARCH_GAMES:
            args = reconcile(last_user, parse_tool_arguments(fn.get("arguments")))
            log.info(
                "search_games query=%r limit=%d price_mode=%s",
                args.query, args.limit, args.price.price_mode,
            )
            content = self.search.search(args).model_dump_json()
        else:
            log.warning("No handler registered for tool: %s", name)
            content = json.dumps({"error": f"No handler registered for tool: {name}"})

        # Both tool_name and name, since model variants read one or the other
        tool_msg: Dict[str, Any] = {"role": "tool", "tool_name": name, "name": name, "content": content}
        tool_call_id: Optional[str] = tc.get("id") if isinstance(tc, dict) else None
        if tool_call_id:
            tool_msg["tool_call_id"] = tool_call_id
        return tool_msg

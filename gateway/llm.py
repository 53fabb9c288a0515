"""Model client — streaming chat completions against an OpenAI-compatible endpoint."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from .config import settings
from .errors import ModelUnreachableError
from .tools.registry import ToolCallRequest

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful coding and general-purpose assistant running on a server.
Current date/time on the server: {current_datetime}

You can call tools to look things up or act on the project folder:
- Use get_project_structure to find a file's path before calling read_file_content.
- Use search_text to find references to a symbol, find_lint_errors for code issues.
- Use get_current_datetime for the time/date and get_current_weather for weather.
- run_terminal_command runs a shell command in the project folder; use it sparingly.

If a tool returns an error, explain what went wrong instead of retrying blindly.
Answer in the user's language. Keep answers concise."""


def _get_client() -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.model_timeout_s,
        max_retries=1,
    )


def system_prompt() -> str:
    now_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S (%A)")
    return SYSTEM_PROMPT.replace("{current_datetime}", now_str)


@dataclass
class _PartialCall:
    id: str = ""
    name: str = ""
    arguments: str = ""


@dataclass
class ModelTurn:
    """Everything one streamed completion produced besides its text deltas."""
    text: str = ""
    finish_reason: Optional[str] = None
    _calls: Dict[int, _PartialCall] = field(default_factory=dict)

    def add_tool_call_delta(self, delta):
        index = delta.index if getattr(delta, "index", None) is not None else len(self._calls)
        slot = self._calls.setdefault(index, _PartialCall())
        if delta.id:
            slot.id = delta.id
        fn = delta.function
        if fn is not None:
            if fn.name:
                slot.name = fn.name
            if fn.arguments:
                slot.arguments += fn.arguments

    @property
    def tool_calls(self) -> List[ToolCallRequest]:
        calls = []
        for index in sorted(self._calls):
            slot = self._calls[index]
            call_id = slot.id or f"call_{index}"
            calls.append(ToolCallRequest.from_model(call_id, slot.name, slot.arguments))
        return calls

    def assistant_message(self) -> Dict[str, Any]:
        """Assistant turn to append before the tool results."""
        msg: Dict[str, Any] = {"role": "assistant", "content": self.text or None}
        calls = self.tool_calls
        if calls:
            msg["tool_calls"] = [
                {"id": c.id, "type": "function",
                 "function": {"name": c.name, "arguments": c.raw_arguments}}
                for c in calls
            ]
        return msg


async def stream_chat(messages: List[Dict[str, Any]], tools: List[Dict[str, Any]],
                      turn: ModelTurn, session=None) -> AsyncIterator[str]:
    """Stream one completion, yielding text fragments as they arrive.

    Tool-call fragments and the finish reason are accumulated into ``turn``.
    Any failure talking to the model service raises ``ModelUnreachableError``.
    """
    sid = session.request_id if session else "-"
    try:
        client = _get_client()
        kwargs: Dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools
        stream = await client.chat.completions.create(
            model=settings.chat_model,
            messages=messages,
            stream=True,
            **kwargs,
        )
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta
                if delta is not None:
                    if delta.content:
                        turn.text += delta.content
                        yield delta.content
                    for tc in delta.tool_calls or []:
                        turn.add_tool_call_delta(tc)
                if choice.finish_reason:
                    turn.finish_reason = choice.finish_reason
        finally:
            # Release the HTTP connection even when the caller stops early
            close = getattr(stream, "close", None)
            if close is not None:
                await close()
    except (openai.OpenAIError, httpx.HTTPError) as e:
        logger.error(f"[{sid}] Model call failed: {type(e).__name__}: {e}")
        raise ModelUnreachableError(f"Failed to generate response: {e}") from e

    logger.info(f"[{sid}] Model turn: {len(turn.text)} chars, "
                f"{len(turn._calls)} tool calls, finish={turn.finish_reason}")

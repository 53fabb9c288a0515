"""Orchestration loop — alternate model turns and tool execution, bounded by a step ceiling.

``run_agent`` is an async generator of stream events. It is finite and always
ends with exactly one ``Done``.
"""
import asyncio
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Dict, List, Optional

from . import llm
from .config import settings
from .errors import ModelUnreachableError
from .events import Done, ErrorEvent, StreamEvent, TextDelta, ToolCompleted, ToolInvoked
from .session import RequestSession
from .tools import execute_tool, registry as default_registry
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def build_conversation(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """System prompt followed by the caller's messages."""
    conversation = [{"role": "system", "content": llm.system_prompt()}]
    for msg in messages:
        conversation.append({"role": msg["role"], "content": msg["content"]})
    return conversation


async def run_agent(
    messages: List[Dict[str, Any]],
    session: RequestSession,
    registry: Optional[ToolRegistry] = None,
    max_steps: Optional[int] = None,
) -> AsyncIterator[StreamEvent]:
    reg = registry or default_registry
    ceiling = settings.max_steps if max_steps is None else max_steps
    sid = session.request_id
    conversation = build_conversation(messages)
    tools = reg.schemas()

    while True:
        if session.cancelled:
            logger.info(f"[{sid}] Caller gone; stopping after {session.steps} steps")
            break

        # Requesting: relay text as it arrives
        turn = llm.ModelTurn()
        try:
            async with aclosing(llm.stream_chat(conversation, tools, turn, session=session)) as deltas:
                async for text in deltas:
                    session.touch()
                    yield TextDelta(text=text)
        except ModelUnreachableError as e:
            yield ErrorEvent(message=e.message)
            break

        calls = turn.tool_calls
        if not calls:
            break
        if session.steps >= ceiling:
            names = ", ".join(c.name for c in calls)
            logger.warning(f"[{sid}] Step ceiling ({ceiling}) reached; not running: {names}")
            break
        if session.cancelled:
            logger.info(f"[{sid}] Caller gone; not running {len(calls)} tool calls")
            break

        # ToolDispatch: run every requested tool, match results back by call id
        conversation.append(turn.assistant_message())
        for call in calls:
            session.record_tool(call.name)
            yield ToolInvoked(call_id=call.id, name=call.name, arguments=call.arguments)

        results = await asyncio.gather(
            *(execute_tool(call, session=session, registry=reg) for call in calls)
        )
        for call, result in zip(calls, results):
            yield ToolCompleted(call_id=call.id, name=call.name, ok=result.ok,
                                error=result.error, elapsed_ms=result.elapsed_ms)
            conversation.append({
                "role": "tool",
                "tool_call_id": call.id,
                "content": result.to_content(),
            })
        session.steps += 1

    # Finalizing
    logger.info(f"[{sid}] Tools used: {session.tools_used or 'none'} "
                f"({session.steps} steps, {session.elapsed_seconds():.1f}s)")
    yield Done(steps=session.steps, tools_used=list(session.tools_used))

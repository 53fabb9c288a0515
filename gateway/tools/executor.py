"""Tool executor — validates and dispatches tool calls, turning every failure into data."""
import asyncio
import logging
import time
from typing import Optional

from pydantic import ValidationError

from ..errors import ArgumentValidationError, GatewayError
from .registry import ToolCallRequest, ToolRegistry, ToolResult, registry as default_registry

logger = logging.getLogger(__name__)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


async def execute_tool(call: ToolCallRequest, session=None,
                       registry: Optional[ToolRegistry] = None) -> ToolResult:
    """Execute a registered tool by name.

    Never raises except for ``asyncio.CancelledError``; unknown tools, bad
    arguments and handler failures all come back as an error ``ToolResult``.
    """
    reg = registry or default_registry
    prefix = f"[{session.request_id}] " if session else ""

    try:
        tool = reg.lookup(call.name)
    except GatewayError as e:
        logger.warning(f"{prefix}{e.message}")
        return ToolResult.failure(call.name, call.id, e)

    if call.arguments is None:
        err = ArgumentValidationError(
            f"Arguments for {call.name} are not a valid JSON object", raw=call.raw_arguments[:200])
        return ToolResult.failure(call.name, call.id, err)

    try:
        args = tool.params.model_validate(call.arguments)
    except ValidationError as e:
        err = ArgumentValidationError(f"Invalid arguments for {call.name}: {_format_validation_error(e)}")
        logger.info(f"{prefix}{err.message}")
        return ToolResult.failure(call.name, call.id, err)

    arg_str = ", ".join(f"{k}={v!r}" for k, v in call.arguments.items())
    logger.info(f"{prefix}Executing tool: {call.name}({arg_str})")
    t0 = time.monotonic()

    try:
        output = await tool.handler(args, session=session)
        result = ToolResult.from_output(call.name, call.id, output)
    except asyncio.CancelledError:
        logger.info(f"{prefix}Tool {call.name} cancelled")
        raise
    except GatewayError as e:
        logger.warning(f"{prefix}Tool {call.name} failed: {e.error_type}: {e.message}")
        result = ToolResult.failure(call.name, call.id, e)
    except Exception as e:
        logger.error(f"{prefix}Tool {call.name} failed: {e}", exc_info=True)
        result = ToolResult(tool=call.name, call_id=call.id, output={},
                            error=f"Tool execution failed: {e}", error_type=type(e).__name__)

    result.elapsed_ms = int((time.monotonic() - t0) * 1000)
    outcome = "ok" if result.ok else f"error ({result.error_type})"
    logger.info(f"{prefix}Tool {call.name}: {result.elapsed_ms / 1000:.1f}s -> {outcome}")
    return result

"""Terminal command tool.

Runs a shell command inside the project folder. This is deliberately powerful
and therefore fenced: the working directory is the workspace root, secrets are
scrubbed from the child environment, denylisted programs are refused, an
optional allowlist restricts the programs further, and every run has a
timeout.
"""
import logging
import os
import shlex

from pydantic import BaseModel, Field

from ...config import settings
from ...errors import ArgumentValidationError, ProcessTimeoutError
from ..process import run_shell
from ..registry import register_tool
from ..workspace import truncate, workspace_root

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10000
MAX_TIMEOUT_MS = 120000

_OPERATORS = {";", "&", "&&", "|", "||", "(", ")", "|&", ";;"}
# Newline ends a command in the shell, so the lexer treats it as punctuation too
_PUNCTUATION = "();<>|&\n"


class CommandArgs(BaseModel):
    command: str = Field(..., min_length=1, description="Shell command to run.")
    timeout: int = Field(
        DEFAULT_TIMEOUT_MS, ge=1, le=MAX_TIMEOUT_MS,
        description="Timeout in milliseconds (default 10000).",
    )


def program_names(command: str):
    """Programs invoked by ``command``: the first word of every pipeline segment."""
    lexer = shlex.shlex(command, posix=True, punctuation_chars=_PUNCTUATION)
    lexer.whitespace_split = True
    lexer.whitespace = " \t\r"
    # A comment would swallow the newline that starts the next command
    lexer.commenters = ""
    try:
        tokens = list(lexer)
    except ValueError as e:
        raise ArgumentValidationError(f"Could not parse command: {e}", command=command)

    names = []
    expect_program = True
    for token in tokens:
        if token in _OPERATORS or ("\n" in token and not token.strip(_PUNCTUATION)):
            expect_program = True
            continue
        if expect_program:
            # Skip leading VAR=value assignments
            if "=" in token and not token.startswith("="):
                continue
            names.append(os.path.basename(token))
            expect_program = False
    return names


def check_command(command: str):
    names = program_names(command)
    denied = [n for n in names if n in settings.command_denylist]
    if denied:
        raise ArgumentValidationError(f"Command not allowed: {denied[0]}", command=command)
    if settings.command_allowlist:
        outside = [n for n in names if n not in settings.command_allowlist]
        if outside:
            raise ArgumentValidationError(
                f"Command not in allowlist: {outside[0]}", command=command,
                allowed=settings.command_allowlist,
            )


@register_tool(
    "run_terminal_command",
    description=(
        "Runs a terminal command in the project folder on the server and returns stdout, "
        "stderr and the exit code. Use with caution. Provide 'command' as a string; "
        "optionally 'timeout' in milliseconds (default 10000)."
    ),
    params=CommandArgs,
    category="system",
)
async def run_terminal_command(args: CommandArgs, session=None, **kwargs) -> dict:
    check_command(args.command)
    root = workspace_root()
    if not root.is_dir():
        raise ArgumentValidationError(f"Project folder does not exist: {root}")

    limit = settings.max_tool_output_chars
    try:
        out = await run_shell(args.command, cwd=str(root), timeout_s=args.timeout / 1000)
    except ProcessTimeoutError as e:
        return {
            "command": args.command,
            "stdout": e.extra.get("stdout", ""),
            "stderr": e.extra.get("stderr", ""),
            "exit_code": None,
            "error": e.message,
            "error_type": e.error_type,
            "timeout_ms": args.timeout,
        }
    return {
        "command": args.command,
        "stdout": truncate(out.stdout, limit),
        "stderr": truncate(out.stderr, limit),
        "exit_code": out.returncode,
        "error": f"Command failed with exit code {out.returncode}" if out.returncode != 0 else None,
    }

"""Lint tool — run ESLint (or the configured linter) over the project folder."""
import json
import logging
import shlex
from typing import Any, Dict, List

from ...config import settings
from ..process import run_exec
from ..registry import register_tool
from ..workspace import truncate, workspace_root

logger = logging.getLogger(__name__)


def flatten_eslint(results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One entry per message, in file order then message order."""
    errors = []
    for file_result in results:
        for msg in file_result.get("messages", []):
            errors.append({
                "filePath": file_result.get("filePath"),
                "rule": msg.get("ruleId"),
                "severity": msg.get("severity"),
                "message": msg.get("message"),
                "line": msg.get("line"),
                "column": msg.get("column"),
            })
    return errors


@register_tool(
    "find_lint_errors",
    description=(
        "Finds and returns lint errors in the project folder using ESLint. Use this to check for "
        "code style and syntax issues. Returns a list of errors and warnings."
    ),
    category="files",
)
async def find_lint_errors(args=None, session=None, **kwargs) -> dict:
    root = workspace_root()
    argv = shlex.split(settings.lint_command)
    try:
        out = await run_exec(argv, cwd=str(root), timeout_s=settings.lint_timeout_s)
    except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
        return {"error": f"Could not start linter: {e}"}

    stderr = truncate(out.stderr, settings.max_tool_output_chars)
    # ESLint exits 1 when it finds problems; only a silent failure is an error
    if out.returncode != 0 and not out.stdout.strip():
        return {"error": f"Linter exited with code {out.returncode}", "stderr": stderr}

    try:
        results = json.loads(out.stdout)
        if not isinstance(results, list):
            raise ValueError("expected a JSON array of file results")
        errors = flatten_eslint(results)
    except (ValueError, AttributeError) as e:
        return {
            "error": "Failed to parse ESLint output",
            "details": str(e),
            "raw": truncate(out.stdout, settings.max_tool_output_chars),
            "stderr": stderr,
        }

    logger.info(f"Lint: {len(errors)} messages in {len(results)} files")
    return {"errors": errors, "stderr": stderr}

"""Text search tool — literal search across the project folder.

The search text is passed to grep as a single argv element after ``--``, so it
is never interpreted by a shell or as a grep option.
"""
import asyncio
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator

from ...config import settings
from ..process import run_exec
from ..registry import register_tool
from ..workspace import walk_workspace, workspace_root

logger = logging.getLogger(__name__)

_GREP_LINE = re.compile(r"^\.?/?(.*?):(\d+):(.*)$")


class SearchArgs(BaseModel):
    text: str = Field(..., min_length=1, description="The text to search for in the project folder.")

    @field_validator("text")
    @classmethod
    def _single_line(cls, v: str) -> str:
        # grep -F reads each line as a separate pattern; matches are per line anyway
        if "\n" in v or "\r" in v:
            raise ValueError("search text must be a single line")
        return v


def parse_grep_output(stdout: str) -> List[Dict[str, Any]]:
    matches = []
    for line in stdout.split("\n"):
        if not line.strip():
            continue
        m = _GREP_LINE.match(line)
        if m:
            matches.append({"filePath": m.group(1), "line": int(m.group(2)), "text": m.group(3)})
            continue
        # path:text without a usable line number
        idx = line.find(":")
        if idx > 0:
            file_path = line[:idx]
            if file_path.startswith("./"):
                file_path = file_path[2:]
            matches.append({"filePath": file_path, "line": None, "text": line[idx + 1:]})
    return matches


def scan_workspace(root: Path, text: str, exclude_dir: str, limit: int) -> List[Dict[str, Any]]:
    """Pure-Python fallback used when grep is not installed."""
    matches = []
    for path in walk_workspace(root, exclude_dir):
        if not path.is_file():
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                for lineno, line in enumerate(f, start=1):
                    if text in line:
                        matches.append({"filePath": path.relative_to(root).as_posix(),
                                        "line": lineno, "text": line.rstrip("\r\n")})
                        if len(matches) > limit:
                            return matches
        except (OSError, UnicodeDecodeError):
            continue
    return matches


async def _grep(root: Path, text: str, exclude_dir: str) -> Dict[str, Any]:
    argv = ["grep", "-rnIF", f"--exclude-dir={exclude_dir}", "--", text, "."]
    out = await run_exec(argv, cwd=str(root), timeout_s=30)
    # grep: 0 = matches, 1 = no matches, >1 = trouble (may still have partial output)
    if out.returncode > 1 and not out.stdout:
        return {"error": f"grep exited with code {out.returncode}", "stderr": out.stderr.strip()}
    return {"matches": parse_grep_output(out.stdout), "stderr": out.stderr.strip()}


@register_tool(
    "search_text",
    description=(
        "Searches for a text string in all files in the project folder (excluding node_modules) "
        "and returns matches with file path, line number and line text. Use this to find all "
        "references to a keyword or code snippet."
    ),
    params=SearchArgs,
    category="files",
)
async def search_text(args: SearchArgs, session=None, **kwargs) -> dict:
    root = workspace_root()
    if not root.is_dir():
        return {"error": f"Project folder does not exist: {root}"}

    limit = settings.max_search_matches
    exclude = settings.workspace_exclude_dir
    if shutil.which("grep"):
        result = await _grep(root, args.text, exclude)
        if "error" in result:
            return result
    else:
        matches = await asyncio.to_thread(scan_workspace, root, args.text, exclude, limit)
        result = {"matches": matches}

    matches = result["matches"]
    result["truncated"] = len(matches) > limit
    result["matches"] = matches[:limit]
    logger.info(f"Search {args.text!r}: {len(matches)} matches")
    return result

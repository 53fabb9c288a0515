"""Project file tools — folder structure and file contents, confined to the workspace."""
import asyncio
import logging

from pydantic import BaseModel, Field, model_validator

from ...config import settings
from ...errors import ArgumentValidationError
from ..registry import register_tool
from ..workspace import display_path, list_relative, resolve_in_workspace, truncate, workspace_root

logger = logging.getLogger(__name__)


@register_tool(
    "get_project_structure",
    description=(
        "Recursively lists all files and directories in the project folder (excluding "
        "'node_modules'). Use this to discover the full path of a file when the user gives only "
        "a filename or partial path (e.g. 'main.jsx'), then pass that relative path to "
        "'read_file_content'."
    ),
    category="files",
)
async def get_project_structure(args=None, session=None, **kwargs) -> dict:
    root = workspace_root()
    if not root.is_dir():
        return {"error": f"Project folder does not exist: {root}"}
    lines = await asyncio.to_thread(list_relative, root, settings.workspace_exclude_dir)
    return {"structure": truncate("\n".join(lines), settings.max_tool_output_chars)}


class ReadFileArgs(BaseModel):
    filePath: str = Field("", description="Path of the file to read, relative to the project folder.")
    path: str = Field("", description="Alias for 'filePath'.")

    @model_validator(mode="after")
    def _require_one(self):
        if not (self.filePath or self.path):
            raise ValueError("provide 'filePath' or 'path'")
        return self

    @property
    def target(self) -> str:
        return self.filePath or self.path


def _read_text(path) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read(settings.max_tool_output_chars + 1)


@register_tool(
    "read_file_content",
    description=(
        "Reads and returns the content of a file in the project folder. Accepts either "
        "'filePath' or 'path', relative to the project folder."
    ),
    params=ReadFileArgs,
    category="files",
)
async def read_file_content(args: ReadFileArgs, session=None, **kwargs) -> dict:
    try:
        full_path = resolve_in_workspace(args.target)
    except ArgumentValidationError as e:
        # Report the escape attempt as data so the model can correct the path
        logger.warning(f"Read outside project folder refused: {args.target!r}")
        return {"filePath": args.target, "error": e.message, "error_type": e.error_type}

    shown = display_path(full_path)
    try:
        content = await asyncio.to_thread(_read_text, full_path)
    except OSError as e:
        return {"filePath": shown, "error": f"{type(e).__name__}: {e.strerror or e}"}
    return {"filePath": shown, "content": truncate(content, settings.max_tool_output_chars)}

"""Workspace sandbox — the one project subtree the file-oriented tools may touch."""
import os
from pathlib import Path
from typing import Iterator, List

from ..config import settings
from ..errors import ArgumentValidationError


def workspace_root() -> Path:
    return Path(settings.workspace_root).resolve()


def resolve_in_workspace(relative_path: str) -> Path:
    """Resolve ``relative_path`` against the workspace root.

    Absolute paths, ``..`` segments and symlinks that land outside the root
    are rejected.
    """
    root = workspace_root()
    candidate = (root / relative_path).resolve()
    if candidate != root and root not in candidate.parents:
        raise ArgumentValidationError(
            f"Path escapes the project folder: {relative_path}", filePath=relative_path)
    return candidate


def display_path(path: Path) -> str:
    """Path relative to the workspace root, with forward slashes."""
    try:
        return path.relative_to(workspace_root()).as_posix()
    except ValueError:
        return path.as_posix()


def walk_workspace(root: Path, exclude_dir: str) -> Iterator[Path]:
    """Yield every directory and file under ``root`` in sorted order.

    ``exclude_dir`` is pruned wherever it appears; symlinked directories are
    not followed.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d != exclude_dir)
        base = Path(dirpath)
        for name in dirnames:
            yield base / name
        for name in sorted(filenames):
            yield base / name


def list_relative(root: Path, exclude_dir: str) -> List[str]:
    lines = []
    for path in walk_workspace(root, exclude_dir):
        rel = path.relative_to(root).as_posix()
        lines.append(rel + "/" if path.is_dir() else rel)
    return lines


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + f"\n... (truncated at {limit} chars)"

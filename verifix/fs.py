"""Project-relative file primitives."""

import asyncio
import os
from pathlib import Path


def _resolve(project_dir: str | Path, file_name: str) -> Path:
    return Path(project_dir) / file_name


async def local_path_exists(project_dir: str | Path, file_name: str) -> bool:
    """Check whether a project file exists."""
    return await asyncio.to_thread(_resolve(project_dir, file_name).exists)


async def read_local_file(project_dir: str | Path, file_name: str) -> str:
    """Read a project file as UTF-8 text."""
    path = _resolve(project_dir, file_name)
    return await asyncio.to_thread(path.read_text, encoding="utf-8")


async def stat_local_file(project_dir: str | Path, file_name: str) -> os.stat_result | None:
    """Stat a project file, or None if it cannot be stat'ed."""
    try:
        return await asyncio.to_thread(_resolve(project_dir, file_name).stat)
    except OSError:
        return None


async def chmod_local_file(project_dir: str | Path, file_name: str, mode: int) -> None:
    """Change the mode of a project file."""
    await asyncio.to_thread(_resolve(project_dir, file_name).chmod, mode)

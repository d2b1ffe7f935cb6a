"""Working-tree status of the project repository.

``git status --porcelain`` always reports paths relative to the repository
root. The project may live in a subdirectory of the repository, so paths
are rebased onto the project directory before they are handed out.
"""

import asyncio
import logging
from pathlib import Path

from .errors import StatusError
from .models import RepoStatus

logger = logging.getLogger(__name__)


def parse_porcelain_status(output: str, prefix: str = "") -> RepoStatus:
    """Parse ``git status --porcelain=v1 -z`` output.

    Args:
        output: NUL separated status records
        prefix: Path of the project directory inside the repository, as
            printed by ``git rev-parse --show-prefix`` (e.g. ``app/``)

    Returns:
        RepoStatus with project-relative paths; changes outside the project
        directory are left out
    """
    status = RepoStatus()
    records = iter(output.split("\0"))

    for record in records:
        if len(record) < 4:
            continue
        xy, path = record[:2], record[3:]

        if "R" in xy or "C" in xy:
            next(records, None)  # source path

        if not path.startswith(prefix):
            continue
        path = path[len(prefix):]

        if xy == "??":
            status.not_added.append(path)
        elif "R" in xy:
            status.renamed.append(path)
        elif "C" in xy or "A" in xy:
            status.created.append(path)
        elif "D" in xy:
            status.deleted.append(path)
        elif "M" in xy or "T" in xy or "U" in xy:
            status.modified.append(path)

    return status


async def _git(local_dir: str | Path, *args: str) -> str:
    try:
        process = await asyncio.create_subprocess_exec(
            "git", *args,
            cwd=str(local_dir),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
    except OSError as err:
        raise StatusError(f"Failed to run git {args[0]}: {err}") from err

    if process.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip()
        raise StatusError(f"git {args[0]} failed: {message or process.returncode}")

    return stdout.decode("utf-8", errors="replace")


async def get_repo_status(local_dir: str | Path) -> RepoStatus:
    """Read the working-tree status of the project at ``local_dir``.

    Paths in the result are relative to ``local_dir``, which may be a
    subdirectory of the repository.
    """
    prefix = (await _git(local_dir, "rev-parse", "--show-prefix")).strip()
    output = await _git(local_dir, "status", "--porcelain=v1", "-z", "--untracked-files=all")

    status = parse_porcelain_status(output, prefix)
    logger.debug(
        "Repo status under %r: %d modified, %d created, %d untracked",
        prefix or ".",
        len(status.modified),
        len(status.created),
        len(status.not_added),
    )
    return status

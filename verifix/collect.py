"""Turn working-tree changes into artifact update results."""

from pathlib import Path

from .fs import read_local_file
from .models import ArtifactUpdateResult, FileChange, RepoStatus


async def add_if_updated(
    status: RepoStatus,
    file_project_path: str,
    project_dir: str | Path,
) -> ArtifactUpdateResult | None:
    """Report a file if the run modified or created it.

    Only ``file_project_path`` is looked at; other changes in the working tree
    are ignored.

    Args:
        status: Status snapshot taken after the command ran
        file_project_path: Repository-relative path to check
        project_dir: Repository root used to read the new content

    Returns:
        File result with the new content, or None if the file is unchanged
    """
    if not status.is_changed(file_project_path):
        return None

    contents = await read_local_file(project_dir, file_project_path)
    return ArtifactUpdateResult(file=FileChange(path=file_project_path, contents=contents))

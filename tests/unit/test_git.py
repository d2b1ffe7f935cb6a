"""Tests for working-tree status."""

import shutil
import subprocess

import pytest

from verifix.errors import StatusError
from verifix.git import get_repo_status, parse_porcelain_status

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


class TestParsePorcelain:
    """Test parsing of porcelain v1 -z output."""

    def test_classifies_entries(self):
        output = "\0".join(
            [
                " M gradle/verification-metadata.xml",
                "M  build.gradle",
                "?? gradle/new.txt",
                "A  added.txt",
                " D gone.txt",
                "R  new_name.txt",
                "old_name.txt",
                "",
            ]
        )
        status = parse_porcelain_status(output)

        assert status.modified == ["gradle/verification-metadata.xml", "build.gradle"]
        assert status.not_added == ["gradle/new.txt"]
        assert status.created == ["added.txt"]
        assert status.deleted == ["gone.txt"]
        assert status.renamed == ["new_name.txt"]

    def test_empty_output(self):
        status = parse_porcelain_status("")
        assert status.modified == []
        assert not status.is_changed("gradle/verification-metadata.xml")

    def test_paths_with_spaces(self):
        status = parse_porcelain_status(" M dir with space/file name.xml\0")
        assert status.modified == ["dir with space/file name.xml"]

    def test_prefix_rebases_paths(self):
        """Paths are made relative to a project living in a subdirectory."""
        output = "\0".join(
            [
                " M app/gradle/verification-metadata.xml",
                " M other/build.gradle",
                "?? app/notes.txt",
                "R  app/new.txt",
                "other/old.txt",
                "",
            ]
        )
        status = parse_porcelain_status(output, prefix="app/")

        assert status.modified == ["gradle/verification-metadata.xml"]
        assert status.not_added == ["notes.txt"]
        assert status.renamed == ["new.txt"]


@requires_git
class TestGetRepoStatus:
    """Test reading status from a real repository."""

    def _git(self, cwd, *args):
        subprocess.run(
            ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
            cwd=cwd,
            check=True,
            capture_output=True,
        )

    @pytest.mark.asyncio
    async def test_modified_and_untracked(self, project_dir):
        self._git(project_dir, "init", "-q")
        self._git(project_dir, "add", ".")
        self._git(project_dir, "commit", "-q", "-m", "initial")

        (project_dir / "gradle" / "verification-metadata.xml").write_text("<sha512/>")
        (project_dir / "notes.txt").write_text("new")

        status = await get_repo_status(project_dir)

        assert status.modified == ["gradle/verification-metadata.xml"]
        assert status.not_added == ["notes.txt"]

    @pytest.mark.asyncio
    async def test_not_a_repository(self, tmp_path):
        with pytest.raises(StatusError):
            await get_repo_status(tmp_path)

    @pytest.mark.asyncio
    async def test_project_in_subdirectory(self, tmp_path, sample_metadata):
        """Status paths are relative to the project, not the repository root."""
        project = tmp_path / "app"
        (project / "gradle").mkdir(parents=True)
        (project / "gradle" / "verification-metadata.xml").write_text(sample_metadata)
        (tmp_path / "README.md").write_text("readme")
        self._git(tmp_path, "init", "-q")
        self._git(tmp_path, "add", ".")
        self._git(tmp_path, "commit", "-q", "-m", "initial")

        (project / "gradle" / "verification-metadata.xml").write_text("<sha512/>")
        (tmp_path / "README.md").write_text("changed")

        status = await get_repo_status(project)

        assert status.modified == ["gradle/verification-metadata.xml"]
        assert status.is_changed("gradle/verification-metadata.xml")

"""Core data models for Verifix."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class UpdatedDependency:
    """A dependency whose version was changed by the update."""

    dep_name: str
    current_value: str | None = None
    new_value: str | None = None


@dataclass(frozen=True)
class UpdateConfig:
    """Per-request configuration handed over by the caller."""

    current_value: str | None = None
    constraints: dict[str, str] = field(default_factory=dict)  # e.g. {"java": "^17.0.0"}


@dataclass(frozen=True)
class UpdateRequest:
    """An already-resolved dependency update for one package file."""

    package_file_name: str
    new_package_file_content: str
    updated_deps: list[UpdatedDependency] = field(default_factory=list)
    config: UpdateConfig = field(default_factory=UpdateConfig)


@dataclass(frozen=True)
class DockerOptions:
    """Container the command runs in when docker is the binary source."""

    image: str
    tag_constraint: str | None = None
    tag_scheme: str = "npm"


@dataclass(frozen=True)
class ExecOptions:
    """How a command is executed."""

    cwd: str
    docker: DockerOptions | None = None
    extra_env: dict[str, str] = field(default_factory=dict)


class ExecOutcome(str, Enum):
    """Classification of a finished command."""

    SUCCESS = "success"
    FAILED = "failed"  # tolerated, the run may still have written files
    TEMPORARY = "temporary"  # infrastructure trouble, retry the batch later


@dataclass
class ExecResult:
    """Output of a command together with its classification."""

    stdout: str = ""
    stderr: str = ""
    outcome: ExecOutcome = ExecOutcome.SUCCESS
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ExecOutcome.SUCCESS


@dataclass
class RepoStatus:
    """Working-tree status snapshot, paths relative to the project directory."""

    modified: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)  # staged additions
    not_added: list[str] = field(default_factory=list)  # untracked
    deleted: list[str] = field(default_factory=list)
    renamed: list[str] = field(default_factory=list)

    def is_changed(self, path: str) -> bool:
        """True if the path was modified or newly added."""
        return path in self.modified or path in self.created or path in self.not_added


@dataclass(frozen=True)
class FileChange:
    """New content of a file touched by the artifact update."""

    path: str
    contents: str


@dataclass(frozen=True)
class ArtifactError:
    """Failure report attached to the package file being updated."""

    lock_file: str
    stderr: str


@dataclass(frozen=True)
class ArtifactUpdateResult:
    """Either an updated file or an artifact error."""

    file: FileChange | None = None
    artifact_error: ArtifactError | None = None

    def __post_init__(self):
        if (self.file is None) == (self.artifact_error is None):
            raise ValueError("exactly one of file or artifact_error must be set")

    def to_dict(self) -> dict:
        """Render the result in the wire format used by callers."""
        if self.file is not None:
            return {"file": {"path": self.file.path, "contents": self.file.contents}}
        return {
            "artifactError": {
                "lockFile": self.artifact_error.lock_file,
                "stderr": self.artifact_error.stderr,
            }
        }

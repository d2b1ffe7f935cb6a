"""CLI application for Verifix."""

import asyncio
import json
import logging
import sys
from enum import Enum
from pathlib import Path

import typer
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from rich.console import Console
from rich.logging import RichHandler

from verifix.artifacts import update_artifacts
from verifix.config import load_settings
from verifix.errors import TemporaryError
from verifix.models import ArtifactUpdateResult, UpdateConfig, UpdatedDependency, UpdateRequest

console = Console()

EXIT_UPDATED = 0
EXIT_ERROR = 1
EXIT_NO_CHANGES = 2
EXIT_TEMPFAIL = 75


class OutputFormat(str, Enum):
    """Output formats accepted by ``--format``."""

    TEXT = "text"
    JSON = "json"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UpdatedDependencyModel(_CamelModel):
    """An updated dependency as found in a request document."""
    dep_name: str
    current_value: str | None = None
    new_value: str | None = None


class UpdateConfigModel(_CamelModel):
    """Request configuration as found in a request document."""
    current_value: str | None = None
    constraints: dict[str, str] = Field(default_factory=dict)


class UpdateRequestModel(_CamelModel):
    """Update request document accepted by ``--request``."""
    package_file_name: str
    new_package_file_content: str = ""
    updated_deps: list[UpdatedDependencyModel] = Field(default_factory=list)
    config: UpdateConfigModel = Field(default_factory=UpdateConfigModel)

    def to_request(self) -> UpdateRequest:
        return UpdateRequest(
            package_file_name=self.package_file_name,
            new_package_file_content=self.new_package_file_content,
            updated_deps=[
                UpdatedDependency(
                    dep_name=dep.dep_name,
                    current_value=dep.current_value,
                    new_value=dep.new_value,
                )
                for dep in self.updated_deps
            ],
            config=UpdateConfig(
                current_value=self.config.current_value,
                constraints=dict(self.config.constraints),
            ),
        )


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def load_request(
    package_file: str,
    request_path: str | None,
    local_dir: Path,
    current_value: str | None = None,
    java_constraint: str | None = None,
) -> UpdateRequest:
    """Build the update request from a JSON document or from CLI options.

    Options given on the command line override values from the document.
    """
    if request_path:
        raw = sys.stdin.read() if request_path == "-" else Path(request_path).read_text()
        model = UpdateRequestModel.model_validate_json(raw)
    else:
        package_path = local_dir / package_file
        content = package_path.read_text() if package_path.is_file() else ""
        model = UpdateRequestModel(
            package_file_name=package_file,
            new_package_file_content=content,
        )

    model.package_file_name = package_file or model.package_file_name
    if current_value:
        model.config.current_value = current_value
    if java_constraint:
        model.config.constraints["java"] = java_constraint
    return model.to_request()


def format_text_output(results: list[ArtifactUpdateResult] | None) -> str:
    """Human readable summary of the results."""
    if not results:
        return "No verification metadata update needed"

    lines = []
    for result in results:
        if result.file is not None:
            lines.append(f"Updated {result.file.path}")
        else:
            lines.append(f"Error updating {result.artifact_error.lock_file}: {result.artifact_error.stderr}")
    return "\n".join(lines)


def format_json_output(results: list[ArtifactUpdateResult] | None) -> str:
    """JSON list of result payloads, or ``null``."""
    if results is None:
        return json.dumps(None)
    return json.dumps([result.to_dict() for result in results], indent=2)


def exit_code_for(results: list[ArtifactUpdateResult] | None) -> int:
    if not results:
        return EXIT_NO_CHANGES
    if any(result.artifact_error is not None for result in results):
        return EXIT_ERROR
    return EXIT_UPDATED


app = typer.Typer(
    name="verifix",
    help="Verifix - Refresh Gradle dependency verification metadata after an update",
    add_completion=False,
)


@app.command()
def update(
    package_file: str = typer.Argument(help="Updated package file, e.g. build.gradle or gradle/libs.versions.toml"),
    request_path: str | None = typer.Option(None, "--request", "-r", help="JSON update request (use '-' for stdin)"),
    local_dir: str | None = typer.Option(None, "--local-dir", "-C", help="Project root directory"),
    current_value: str | None = typer.Option(None, "--current-value", help="Gradle version the project uses"),
    java_constraint: str | None = typer.Option(None, "--java-constraint", help="Java version constraint, e.g. ^17.0.0"),
    binary_source: str | None = typer.Option(None, "--binary-source", help="How to run Gradle: global or docker"),
    format_type: OutputFormat = typer.Option(OutputFormat.TEXT, "--format", help="Output format"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Verifix - Regenerate verification-metadata.xml checksums for an updated package file."""
    configure_logging(verbose)

    try:
        settings = load_settings(local_dir=local_dir, binary_source=binary_source)
        if not settings.local_dir.is_dir():
            console.print(f"Error: Directory {settings.local_dir} not found", style="red")
            raise typer.Exit(EXIT_ERROR)
        request = load_request(
            package_file,
            request_path,
            settings.local_dir,
            current_value=current_value,
            java_constraint=java_constraint,
        )
    except typer.Exit:
        raise
    except (OSError, ValueError) as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(EXIT_ERROR)

    try:
        results = asyncio.run(update_artifacts(request, settings))
    except TemporaryError:
        console.print("Temporary error, try again later", style="yellow")
        raise typer.Exit(EXIT_TEMPFAIL)

    if format_type is OutputFormat.JSON:
        typer.echo(format_json_output(results))
    else:
        style = "red" if exit_code_for(results) == EXIT_ERROR else None
        console.print(format_text_output(results), style=style)

    raise typer.Exit(exit_code_for(results))


if __name__ == "__main__":
    app()

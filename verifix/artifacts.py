"""Refresh Gradle dependency verification metadata after an update.

``update_artifacts`` is called once per updated package file. It never raises
except for ``TemporaryError``; every other failure is returned as a single
artifact error so the caller's batch can carry on.
"""

import logging

from .collect import add_if_updated
from .config import Settings
from .errors import TemporaryError
from .sandbox import SandboxedExecutor
from .fs import local_path_exists, read_local_file, stat_local_file
from .git import get_repo_status
from .hashes import get_hash_methods
from .models import (
    ArtifactError,
    ArtifactUpdateResult,
    DockerOptions,
    ExecOptions,
    ExecOutcome,
    ExecResult,
    UpdateRequest,
)
from .wrapper import (
    EXTRA_ENV,
    JAVA_IMAGE,
    get_java_constraint,
    get_java_versioning,
    gradle_wrapper_file_name,
    prepare_gradle_command,
)

logger = logging.getLogger(__name__)

VERIFICATION_METADATA_FILE = "gradle/verification-metadata.xml"


def build_exec_options(request: UpdateRequest, settings: Settings) -> ExecOptions:
    """Execution options for the wrapper run of one request."""
    config = request.config
    tag_constraint = config.constraints.get("java") or get_java_constraint(config.current_value)
    return ExecOptions(
        cwd=str(settings.local_dir),
        docker=DockerOptions(
            image=JAVA_IMAGE,
            tag_constraint=tag_constraint,
            tag_scheme=get_java_versioning(),
        ),
        extra_env=dict(EXTRA_ENV),
    )


async def _write_verification_metadata(executor, cmd: str, options: ExecOptions) -> None:
    try:
        result = await executor.execute(cmd, options)
    except TemporaryError:
        raise
    except Exception as err:
        result = ExecResult(outcome=ExecOutcome.FAILED, error=err)

    if result.outcome is ExecOutcome.TEMPORARY:
        if isinstance(result.error, TemporaryError):
            raise result.error
        raise TemporaryError() from result.error

    if result.outcome is ExecOutcome.FAILED:
        logger.warning(
            "Error executing gradle wrapper update command. "
            "It can be not a critical one though: %s",
            result.error,
        )


async def update_artifacts(
    request: UpdateRequest,
    settings: Settings,
    *,
    executor=None,
    status_provider=None,
) -> list[ArtifactUpdateResult] | None:
    """Regenerate verification checksums for an updated package file.

    Args:
        request: The resolved dependency update
        settings: Project location and execution settings
        executor: Object with an async ``execute(cmd, options)`` returning
            ExecResult; defaults to SandboxedExecutor
        status_provider: Async callable returning the RepoStatus of a
            directory; defaults to ``git status``

    Returns:
        Updated metadata file, a single artifact error, or None when there
        is nothing to update

    Raises:
        TemporaryError: The sandbox was unavailable; retry later
    """
    executor = executor or SandboxedExecutor(settings)
    status_provider = status_provider or get_repo_status
    project_dir = settings.local_dir

    try:
        if not await local_path_exists(project_dir, VERIFICATION_METADATA_FILE):
            logger.info('No verification metadata file present: "%s"', VERIFICATION_METADATA_FILE)
            return None
        logger.debug('Found verification metadata file: "%s"', VERIFICATION_METADATA_FILE)

        content = await read_local_file(project_dir, VERIFICATION_METADATA_FILE)
        hash_methods = get_hash_methods(content)
        logger.debug('Found hash types: "%s"', ",".join(hash_methods))
        if not hash_methods:
            logger.info("No supported checksum type found")
            return None

        gradlew = gradle_wrapper_file_name(settings)
        cmd = await prepare_gradle_command(
            gradlew,
            str(project_dir),
            await stat_local_file(project_dir, gradlew),
            "wrapper",
        )
        if not cmd:
            logger.info("No gradlew found - skipping Artifacts update")
            return None

        cmd += f' --write-verification-metadata "{",".join(hash_methods)}" help'
        logger.debug('Updating verification metadata: "%s"', cmd)
        await _write_verification_metadata(executor, cmd, build_exec_options(request, settings))

        status = await status_provider(project_dir)
        result = await add_if_updated(status, VERIFICATION_METADATA_FILE, project_dir)
        if result is None:
            logger.debug("Verification metadata file unchanged")
            return None

        logger.debug("Returning updated verification metadata file: %s", result.file.path)
        return [result]

    except TemporaryError:
        raise
    except Exception as err:
        logger.debug("Error updating verification metadata file: %s", err, exc_info=True)
        return [
            ArtifactUpdateResult(
                artifact_error=ArtifactError(
                    lock_file=request.package_file_name,
                    stderr=str(err),
                )
            )
        ]

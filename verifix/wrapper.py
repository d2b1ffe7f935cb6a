"""Gradle wrapper discovery and command preparation."""

import logging
import os
import re
import stat
import sys

from packaging.version import InvalidVersion, Version

from .config import Settings
from .fs import chmod_local_file

logger = logging.getLogger(__name__)

EXTRA_ENV = {
    "GRADLE_OPTS": (
        "-Dorg.gradle.parallel=true "
        "-Dorg.gradle.configureondemand=true "
        "-Dorg.gradle.daemon=false "
        "-Dorg.gradle.caching=false"
    ),
}

JAVA_IMAGE = "java"


def gradle_wrapper_file_name(settings: Settings, platform: str | None = None) -> str:
    """Name of the wrapper script to invoke for the current platform."""
    platform = platform or sys.platform
    if platform.startswith("win") and settings.binary_source != "docker":
        return "gradlew.bat"
    return "./gradlew"


async def prepare_gradle_command(
    gradlew_name: str,
    cwd: str,
    gradlew: os.stat_result | None,
    args: str | None,
) -> str | None:
    """Build the base wrapper invocation.

    Args:
        gradlew_name: Wrapper script name as it should appear in the command
        cwd: Project directory holding the wrapper
        gradlew: Stat of the wrapper file, or None if it is missing
        args: Arguments appended after the wrapper name

    Returns:
        Command string, or None when there is no usable wrapper
    """
    if gradlew is None or not stat.S_ISREG(gradlew.st_mode):
        return None

    # not executable by others
    if not gradlew.st_mode & stat.S_IXOTH:
        mode = stat.S_IMODE(gradlew.st_mode) | 0o111
        logger.debug("Making %s executable (mode %o)", gradlew_name, mode)
        await chmod_local_file(cwd, gradlew_name, mode)

    if args is None:
        return gradlew_name
    return f"{gradlew_name} {args}"


def _gradle_major(gradle_version: str | None) -> int | None:
    if not gradle_version:
        return None
    try:
        return Version(gradle_version).major
    except InvalidVersion:
        match = re.match(r"^\s*v?(\d+)", gradle_version)
        return int(match.group(1)) if match else None


def get_java_constraint(gradle_version: str | None) -> str:
    """Java version range able to run the given Gradle version."""
    major = _gradle_major(gradle_version)
    if major is not None and major >= 7:
        return "^16.0.0"
    # first public gradle version was 2.0
    if major is not None and 0 < major < 5:
        return "^8.0.0"
    return "^11.0.0"


def get_java_versioning() -> str:
    """Versioning scheme of Java image tags."""
    return "npm"

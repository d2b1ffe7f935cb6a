"""Runtime settings for Verifix.

Settings are passed explicitly into every operation that needs them; nothing
reads process-wide configuration behind the caller's back.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

BINARY_SOURCES = ("global", "docker")

ENV_LOCAL_DIR = "VERIFIX_LOCAL_DIR"
ENV_BINARY_SOURCE = "VERIFIX_BINARY_SOURCE"
ENV_DOCKER_USER = "VERIFIX_DOCKER_USER"
ENV_EXEC_TIMEOUT = "VERIFIX_EXEC_TIMEOUT"
ENV_REGISTRY_TIMEOUT = "VERIFIX_REGISTRY_TIMEOUT"


@dataclass(frozen=True)
class Settings:
    """Where the project lives and how build tools are run."""

    local_dir: Path
    binary_source: str = "global"
    docker_user: str = "renovate"
    exec_timeout: float = 900.0
    registry_timeout: float = 30.0

    def __post_init__(self):
        if self.binary_source not in BINARY_SOURCES:
            raise ValueError(
                f"Unsupported binary source: {self.binary_source!r} "
                f"(expected one of {', '.join(BINARY_SOURCES)})"
            )
        if self.exec_timeout <= 0:
            raise ValueError("exec_timeout must be positive")
        if self.registry_timeout <= 0:
            raise ValueError("registry_timeout must be positive")


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings(env: Mapping[str, str] | None = None, **overrides) -> Settings:
    """Build settings from environment variables.

    Args:
        env: Environment mapping, defaults to ``os.environ``
        **overrides: Explicit values that win over the environment; ``None``
            values are ignored

    Returns:
        Validated Settings
    """
    env = os.environ if env is None else env

    settings = Settings(
        local_dir=Path(env.get(ENV_LOCAL_DIR) or os.getcwd()),
        binary_source=env.get(ENV_BINARY_SOURCE) or "global",
        docker_user=env.get(ENV_DOCKER_USER) or "renovate",
        exec_timeout=_parse_float(ENV_EXEC_TIMEOUT, env[ENV_EXEC_TIMEOUT])
        if env.get(ENV_EXEC_TIMEOUT)
        else 900.0,
        registry_timeout=_parse_float(ENV_REGISTRY_TIMEOUT, env[ENV_REGISTRY_TIMEOUT])
        if env.get(ENV_REGISTRY_TIMEOUT)
        else 30.0,
    )

    overrides = {key: value for key, value in overrides.items() if value is not None}
    if "local_dir" in overrides:
        overrides["local_dir"] = Path(overrides["local_dir"])
    return replace(settings, **overrides) if overrides else settings

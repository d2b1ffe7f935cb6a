"""Sandboxed command execution.

Commands run either directly through the shell ("global" binary source) or
inside a pinned tool container ("docker"). Failures are classified into an
``ExecResult`` instead of being raised, so callers branch on the outcome:

- ``FAILED``: the command could not be run, timed out, exited non-zero or
  crashed. Build tools may still have written useful files in that case.
- ``TEMPORARY``: the sandbox itself is unavailable (image pull failed) or
  the process was terminated from outside with SIGTERM. The caller should
  retry later.

Every command runs in its own process group so a timeout kills the whole
tree, not just the shell.
"""

import asyncio
import logging
import os
import signal
import uuid

from .config import Settings
from .docker import DockerTagResolver
from .errors import ExecError, TemporaryError
from .models import ExecOptions, ExecOutcome, ExecResult

logger = logging.getLogger(__name__)

CLEANUP_TIMEOUT = 30.0


def _decode(data: bytes | None) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a process and everything in its process group, then reap it."""
    try:
        if hasattr(os, "killpg"):
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        pass
    await process.wait()


class SandboxedExecutor:
    """Run build tool commands under the configured binary source."""

    def __init__(self, settings: Settings, tag_resolver: DockerTagResolver | None = None):
        self.settings = settings
        self.tag_resolver = tag_resolver or DockerTagResolver(timeout=settings.registry_timeout)

    async def execute(self, cmd: str, options: ExecOptions) -> ExecResult:
        """Execute a command and classify its outcome.

        Args:
            cmd: Shell command line
            options: Working directory, container and extra environment

        Returns:
            Captured output and outcome
        """
        env = {**os.environ, **options.extra_env}

        if self.settings.binary_source == "docker" and options.docker is not None:
            container = f"verifix_{options.docker.image}_{uuid.uuid4().hex[:12]}"
            try:
                argv = await self.docker_argv(cmd, options, container)
            except TemporaryError as err:
                return ExecResult(outcome=ExecOutcome.TEMPORARY, error=err)
            logger.debug("Executing in docker container %s: %s", container, cmd)
            result = await self._run(cmd, options.cwd, env, argv=argv)
            if not result.ok:
                await self._remove_container(container)
            return result

        logger.debug("Executing: %s", cmd)
        return await self._run(cmd, options.cwd, env)

    async def docker_argv(self, cmd: str, options: ExecOptions, container: str) -> list[str]:
        """Resolve and pull the tool image, then build the ``docker run`` argv."""
        docker = options.docker
        image = f"{self.settings.docker_user}/{docker.image}"
        tag = await self.tag_resolver.get_tag(image, docker.tag_constraint, docker.tag_scheme)
        image_ref = f"{image}:{tag}"
        await self._pull(image_ref)

        local_dir = str(self.settings.local_dir)
        argv = [
            "docker", "run", "--rm",
            "--name", container,
            "--label", "verifix_child",
            "-v", f"{local_dir}:{local_dir}",
            "-w", options.cwd,
        ]
        for name in sorted(options.extra_env):
            argv.extend(["-e", name])
        argv.extend([image_ref, "bash", "-l", "-c", cmd])
        return argv

    async def _pull(self, image_ref: str) -> None:
        logger.debug("Pulling %s", image_ref)
        try:
            process = await asyncio.create_subprocess_exec(
                "docker", "pull", image_ref,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as err:
            logger.warning("Docker pull of %s failed: %s", image_ref, err)
            raise TemporaryError() from err

        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.settings.exec_timeout
            )
        except asyncio.TimeoutError as err:
            await _kill(process)
            logger.warning("Docker pull of %s timed out", image_ref)
            raise TemporaryError() from err

        if process.returncode != 0:
            logger.warning("Docker pull of %s failed: %s", image_ref, _decode(stderr).strip())
            raise TemporaryError()

    async def _remove_container(self, container: str) -> None:
        """Force-remove a container left behind by a failed or killed run."""
        logger.debug("Removing container %s", container)
        try:
            process = await asyncio.create_subprocess_exec(
                "docker", "rm", "-f", container,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as err:
            logger.warning("Failed to remove container %s: %s", container, err)
            return

        try:
            await asyncio.wait_for(process.wait(), timeout=CLEANUP_TIMEOUT)
        except asyncio.TimeoutError:
            await _kill(process)
            logger.warning("Timed out removing container %s", container)

    async def _run(
        self,
        cmd: str,
        cwd: str,
        env: dict[str, str],
        argv: list[str] | None = None,
    ) -> ExecResult:
        try:
            if argv is None:
                process = await asyncio.create_subprocess_shell(
                    cmd,
                    cwd=cwd,
                    env=env,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    start_new_session=True,
                )
            else:
                process = await asyncio.create_subprocess_exec(
                    *argv,
                    cwd=cwd,
                    env=env,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    start_new_session=True,
                )
        except OSError as err:
            error = ExecError(cmd, f"Failed to start command: {err}")
            return ExecResult(outcome=ExecOutcome.FAILED, error=error)

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.settings.exec_timeout
            )
        except asyncio.TimeoutError:
            await _kill(process)
            error = ExecError(cmd, f"Command timed out after {self.settings.exec_timeout:g}s")
            return ExecResult(outcome=ExecOutcome.FAILED, error=error)

        out, err_text = _decode(stdout), _decode(stderr)
        code = process.returncode

        if code == 0:
            return ExecResult(stdout=out, stderr=err_text)

        if code == -signal.SIGTERM:
            logger.warning("Command terminated: %s", cmd)
            return ExecResult(
                stdout=out,
                stderr=err_text,
                outcome=ExecOutcome.TEMPORARY,
                error=TemporaryError(),
            )

        if code < 0:
            message = f"Command killed by signal {-code}"
        else:
            message = f"Command failed with exit code {code}: {err_text.strip() or cmd}"
        error = ExecError(cmd, message, exit_code=code, stdout=out, stderr=err_text)
        return ExecResult(stdout=out, stderr=err_text, outcome=ExecOutcome.FAILED, error=error)

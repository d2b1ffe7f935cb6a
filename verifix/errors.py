"""Exception types raised across Verifix."""

TEMPORARY_ERROR = "temporary-error"


class VerifixError(Exception):
    """Base class for Verifix failures."""


class TemporaryError(VerifixError):
    """Infrastructure trouble; the whole update should be retried later."""

    def __init__(self, message: str = TEMPORARY_ERROR):
        super().__init__(message)


class ExecError(VerifixError):
    """A command could not be run or exited abnormally."""

    def __init__(
        self,
        cmd: str,
        message: str,
        exit_code: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message)
        self.cmd = cmd
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class StatusError(VerifixError):
    """The repository status could not be read."""

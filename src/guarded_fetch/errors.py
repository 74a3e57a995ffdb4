"""Error types for the guarded fetch layer."""


class UnsafeInputError(ValueError):
    """A URL, header map or command line was rejected by a validator."""


class SecurityValidationError(Exception):
    """A fetch was refused because its input failed a validation gate.

    Never retried. The validator's error is chained as ``__cause__``.
    """


class ShellCommandError(Exception):
    """The shell fallback could not run or exited unsuccessfully.

    Attributes:
        returncode: Exit status, or None if the process never completed.
        stderr: Captured standard error output.
    """

    def __init__(
        self, message: str, returncode: int | None = None, stderr: str = ""
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CurlResponseError(Exception):
    """curl ran but its output does not describe a usable response."""


class RequestBodyError(ValueError):
    """The request body cannot be passed to curl. Never retried."""

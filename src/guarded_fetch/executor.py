"""Shell execution primitive for the curl fallback."""

import asyncio
from typing import Protocol

import structlog

from guarded_fetch.constants import DEFAULT_CURL_TIMEOUT_SECONDS
from guarded_fetch.errors import ShellCommandError
from guarded_fetch.models import ShellResult


logger = structlog.get_logger()


class ShellExecutor(Protocol):
    """Runs one command line and returns its captured output."""

    async def __call__(
        self, command: str, *, timeout: float = DEFAULT_CURL_TIMEOUT_SECONDS
    ) -> ShellResult: ...


async def run_shell_command(
    command: str, *, timeout: float = DEFAULT_CURL_TIMEOUT_SECONDS
) -> ShellResult:
    """Run a command line through the shell.

    The child process is killed and reaped if the timeout elapses or the
    awaiting task is cancelled.

    Args:
        command: Validated command line.
        timeout: Seconds to wait for the process.

    Returns:
        Captured stdout and stderr.

    Raises:
        ShellCommandError: If the process cannot start, times out, or
            exits non-zero.
    """
    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        msg = f"Failed to start shell command: {e}"
        raise ShellCommandError(msg) from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError as e:
        await _terminate(proc)
        msg = f"Shell command timed out after {timeout}s"
        raise ShellCommandError(msg) from e
    except asyncio.CancelledError:
        await _terminate(proc)
        raise

    stderr_text = stderr.decode("utf-8", errors="replace")
    if proc.returncode != 0:
        msg = f"Shell command failed (exit {proc.returncode}): {stderr_text.strip()}"
        raise ShellCommandError(msg, returncode=proc.returncode, stderr=stderr_text)

    return ShellResult(
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr_text,
    )


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:
        return
    await proc.wait()
    logger.debug("shell_process_killed", component="executor", pid=proc.pid)

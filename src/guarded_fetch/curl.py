"""curl command assembly and output parsing for the shell fallback."""

import shlex
from collections.abc import Mapping

from guarded_fetch.constants import CURL_BASE_ARGS, CURL_STATUS_TRAILER
from guarded_fetch.errors import CurlResponseError, RequestBodyError
from guarded_fetch.models import FetchResponse, ShellResult, Transport


HTTP_STATUS_MIN = 100
HTTP_STATUS_MAX = 599


def build_curl_command(
    url: str,
    headers: Mapping[str, str] | None = None,
    method: str = "GET",
    body: str | bytes | None = None,
) -> str:
    """Assemble a curl command line with every argument shell-quoted.

    The response status is appended to stdout after a final newline so
    the fallback can report it like the native path does.

    Args:
        url: Validated request URL.
        headers: Validated request headers.
        method: HTTP method.
        body: Optional request body.

    Returns:
        Command line for the shell.

    Raises:
        RequestBodyError: If a bytes body is not valid UTF-8.
    """
    args: list[str] = [*CURL_BASE_ARGS, "-w", CURL_STATUS_TRAILER]

    if method.upper() != "GET":
        args.extend(["-X", method.upper()])

    for key, value in (headers or {}).items():
        args.extend(["-H", f"{key}: {value}"])

    if body is not None:
        if isinstance(body, bytes):
            try:
                body = body.decode("utf-8")
            except UnicodeDecodeError as e:
                msg = "Request body must be UTF-8 text for the curl fallback"
                raise RequestBodyError(msg) from e
        args.extend(["--data-raw", body])

    args.append(url)
    return " ".join(shlex.quote(arg) for arg in args)


def parse_curl_output(result: ShellResult, url: str) -> FetchResponse:
    """Turn captured curl output into a response.

    Args:
        result: Captured stdout and stderr.
        url: Requested URL.

    Returns:
        FetchResponse from the curl transport.

    Raises:
        CurlResponseError: If curl wrote to stderr or the output has no
            usable status trailer.
    """
    if result.stderr.strip():
        msg = f"Curl command failed with stderr: {result.stderr.strip()}"
        raise CurlResponseError(msg)

    if not result.stdout:
        msg = "Curl command returned empty stdout"
        raise CurlResponseError(msg)

    body, sep, status = result.stdout.rpartition("\n")
    status = status.strip()
    if not sep or not status.isdigit():
        msg = f"Curl output is missing the status trailer: {status[:20]!r}"
        raise CurlResponseError(msg)

    status_code = int(status)
    if not HTTP_STATUS_MIN <= status_code <= HTTP_STATUS_MAX:
        msg = f"Curl reported no HTTP response (status {status})"
        raise CurlResponseError(msg)

    return FetchResponse(
        status_code=status_code,
        url=url,
        body_bytes=body.encode("utf-8"),
        transport=Transport.CURL,
    )

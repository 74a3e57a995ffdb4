"""Retrying fetcher with a validated curl fallback."""

import asyncio
import time
from collections.abc import Mapping
from typing import Any

import structlog

from guarded_fetch.config import FetchConfig
from guarded_fetch.constants import LOG_TRUNCATE_URL, SECURITY_FAILURE_PREFIX
from guarded_fetch.curl import build_curl_command, parse_curl_output
from guarded_fetch.errors import (
    RequestBodyError,
    SecurityValidationError,
    UnsafeInputError,
)
from guarded_fetch.executor import ShellExecutor, run_shell_command
from guarded_fetch.metrics import FetchMetrics
from guarded_fetch.models import FetchResponse
from guarded_fetch.redact import redact_headers, redact_url_credentials, truncate
from guarded_fetch.transport import NativeFetch, send_native_request
from guarded_fetch.validation import (
    validate_curl_command,
    validate_headers,
    validate_method,
    validate_url,
)


logger = structlog.get_logger()


def _emit(level: str, event: str, context: dict[str, Any], **fields: Any) -> None:  # noqa: ANN401
    """Log an event. Logger failures are discarded."""
    try:
        getattr(logger, level)(event, **context, **fields)
    except Exception:  # noqa: BLE001, S110
        pass


class RetryingFetcher:
    """Fetches allow-listed URLs with retries and a curl fallback.

    Each attempt re-validates the URL, method and headers, tries the native
    transport, and on failure runs curl through the shell after validating
    the assembled command line. Validation failures are never retried.
    Attempts within one call run strictly one after another.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        native_fetch: NativeFetch | None = None,
        shell_exec: ShellExecutor | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Fetch configuration (defaults apply when omitted).
            native_fetch: Native request primitive.
            shell_exec: Shell execution primitive for the curl fallback.
        """
        self._config = config or FetchConfig()
        self._native_fetch = native_fetch or send_native_request
        self._shell_exec = shell_exec or run_shell_command
        self._metrics = FetchMetrics.get_instance()

    async def fetch(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        *,
        method: str = "GET",
        body: str | bytes | None = None,
    ) -> FetchResponse:
        """Fetch a URL, retrying transport failures.

        Args:
            url: URL to fetch.
            headers: Caller-supplied request headers.
            method: HTTP method.
            body: Optional request body.

        Returns:
            FetchResponse for any HTTP status.

        Raises:
            SecurityValidationError: If the URL, method, headers or assembled
                curl command fail validation.
            RequestBodyError: If the body cannot be passed to curl.
            Exception: The last transport error once attempts run out.
        """
        start_time_ns = time.perf_counter_ns()
        policy = self._config.retry_policy
        context: dict[str, Any] = {"component": "fetch"}

        attempt = 0
        while True:
            attempt += 1
            request_method, request_headers = self._validate_request(
                url, method, headers, context
            )
            context["method"] = request_method
            context["url"] = truncate(redact_url_credentials(url), LOG_TRUNCATE_URL)
            self._metrics.record_attempt()

            try:
                response = await self._attempt(
                    url,
                    request_headers,
                    request_method,
                    body,
                    {**context, "attempt": attempt},
                )
            except (SecurityValidationError, RequestBodyError):
                raise
            except Exception as e:
                _emit(
                    "error",
                    "fetch_attempt_failed",
                    context,
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                if not policy.has_attempts_left(attempt):
                    self._metrics.record_exhausted()
                    _emit("warning", "fetch_exhausted", context, attempts=attempt)
                    raise

                delay_ms = policy.get_delay_ms(attempt - 1)
                _emit(
                    "debug",
                    "retry_attempt",
                    context,
                    attempt=attempt + 1,
                    delay_ms=delay_ms,
                    max_attempts=policy.max_attempts,
                )
                await asyncio.sleep(delay_ms / 1000.0)
                continue

            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            self._metrics.record_success(duration_ms)
            _emit(
                "info",
                "fetch_complete",
                context,
                attempt=attempt,
                transport=response.transport.value,
                status_code=response.status_code,
                bytes=len(response.body_bytes),
                duration_ms=round(duration_ms, 2),
            )
            return response

    def _validate_request(
        self,
        url: Any,  # noqa: ANN401
        method: Any,  # noqa: ANN401
        headers: Any,  # noqa: ANN401
        context: dict[str, Any],
    ) -> tuple[str, dict[str, str]]:
        """Run the URL, method and header gates.

        Returns:
            Normalized method and the outgoing header map.
        """
        try:
            validate_url(url, self._config.security)
            validate_method(method)
            validate_headers(headers, self._config.security)
        except UnsafeInputError as e:
            raise self._security_failure(e, context) from e

        request_headers = dict(headers or {})
        if not any(key.lower() == "user-agent" for key in request_headers):
            request_headers["User-Agent"] = self._config.user_agent
        return method.upper(), request_headers

    async def _attempt(
        self,
        url: str,
        headers: dict[str, str],
        method: str,
        body: str | bytes | None,
        context: dict[str, Any],
    ) -> FetchResponse:
        """Run one attempt: native fetch, then curl if it raises."""
        try:
            return await self._native_fetch(
                url,
                method=method,
                headers=headers,
                body=body,
                timeout=self._config.timeout_seconds,
            )
        except Exception as e:
            self._metrics.record_native_failure()
            _emit(
                "warning",
                "native_fetch_failed",
                context,
                error_type=type(e).__name__,
                error=str(e),
                headers=redact_headers(headers),
                fallback=self._config.curl_fallback,
            )
            if not self._config.curl_fallback:
                raise

        return await self._curl_fallback(url, headers, method, body, context)

    async def _curl_fallback(
        self,
        url: str,
        headers: dict[str, str],
        method: str,
        body: str | bytes | None,
        context: dict[str, Any],
    ) -> FetchResponse:
        command = build_curl_command(url, headers, method, body)
        try:
            validate_curl_command(command)
        except UnsafeInputError as e:
            raise self._security_failure(e, context) from e

        self._metrics.record_curl_fallback()
        result = await self._shell_exec(
            command, timeout=self._config.curl_timeout_seconds
        )
        return parse_curl_output(result, url)

    def _security_failure(
        self, error: UnsafeInputError, context: dict[str, Any]
    ) -> SecurityValidationError:
        _emit("error", "security_validation_failed", context, reason=str(error))
        return SecurityValidationError(f"{SECURITY_FAILURE_PREFIX}: {error}")


async def fetch_with_retry(
    url: str,
    headers: Mapping[str, str] | None = None,
    *,
    method: str = "GET",
    body: str | bytes | None = None,
    config: FetchConfig | None = None,
) -> FetchResponse:
    """Fetch an allow-listed URL with retries and the curl fallback.

    Raises:
        SecurityValidationError: If validation fails (never retried).
        RequestBodyError: If the body cannot be passed to curl.
        Exception: The last transport error once attempts run out.
    """
    fetcher = RetryingFetcher(config)
    return await fetcher.fetch(url, headers, method=method, body=body)

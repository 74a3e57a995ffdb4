"""Validators that gate every outbound request.

Each validator returns None when its input is safe and raises
``UnsafeInputError`` with a stable message otherwise. Callers and tests
match on those messages, so they must not change.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

import structlog

from guarded_fetch.config import DEFAULT_SECURITY_POLICY, SecurityPolicy
from guarded_fetch.constants import (
    ALLOWED_HTTP_METHODS,
    ALLOWED_URL_SCHEMES,
    CURL_COMMAND_PREFIX,
    CURL_DANGEROUS_PATTERNS,
    HEADER_KEY_DANGEROUS_CHARS,
    HEADER_VALUE_DANGEROUS_CHARS,
    HEADER_VALUE_INJECTION_PATTERNS,
    LOG_TRUNCATE_COMMAND,
    LOG_TRUNCATE_HEADER_VALUE,
    LOG_TRUNCATE_URL,
    URL_DANGEROUS_CHARS,
)
from guarded_fetch.errors import UnsafeInputError
from guarded_fetch.metrics import FetchMetrics
from guarded_fetch.redact import truncate


logger = structlog.get_logger()


def _audit(event: str, **fields: Any) -> None:  # noqa: ANN401
    """Record a security block. Logger failures are discarded."""
    try:
        FetchMetrics.get_instance().record_security_block(event)
        logger.error(event, component="validation", **fields)
    except Exception:  # noqa: BLE001, S110
        pass


def is_allowed_domain(
    hostname: str, policy: SecurityPolicy = DEFAULT_SECURITY_POLICY
) -> bool:
    """Check a hostname against the allow-list.

    Matches an allow-listed domain exactly or as a dot-separated child,
    case-insensitively.

    Args:
        hostname: Hostname to check.
        policy: Security policy holding the allow-list.

    Returns:
        True if the hostname is allowed.
    """
    host = hostname.lower()
    return any(
        host == domain or host.endswith("." + domain)
        for domain in policy.allowed_domains
    )


def validate_url(url: Any, policy: SecurityPolicy = DEFAULT_SECURITY_POLICY) -> None:  # noqa: ANN401
    """Validate that a URL is safe to fetch and to place in a shell command.

    Shell metacharacters are looked for in the raw string, before parsing,
    so a URL is rejected for them whether or not it parses.

    Args:
        url: Candidate URL.
        policy: Security policy to apply.

    Raises:
        UnsafeInputError: If the URL is rejected.
    """
    if not url or not isinstance(url, str):
        msg = "URL must be a non-empty string"
        raise UnsafeInputError(msg)

    if len(url) > policy.max_url_length:
        msg = f"URL exceeds maximum length of {policy.max_url_length} characters"
        raise UnsafeInputError(msg)

    if URL_DANGEROUS_CHARS.search(url):
        _audit("blocked_url_dangerous_characters", url=truncate(url, LOG_TRUNCATE_URL))
        msg = "URL contains potentially dangerous characters"
        raise UnsafeInputError(msg)

    try:
        parsed = urlsplit(url)
        hostname = parsed.hostname
        parsed.port  # noqa: B018
    except ValueError as e:
        msg = "Invalid URL format"
        raise UnsafeInputError(msg) from e

    if not parsed.scheme:
        msg = "Invalid URL format"
        raise UnsafeInputError(msg)

    if parsed.scheme not in ALLOWED_URL_SCHEMES:
        msg = "Only HTTP and HTTPS URLs are allowed"
        raise UnsafeInputError(msg)

    if not hostname:
        msg = "Invalid URL format"
        raise UnsafeInputError(msg)

    if not is_allowed_domain(hostname, policy):
        _audit("blocked_url_domain", hostname=truncate(hostname, LOG_TRUNCATE_URL))
        msg = f"URL domain '{hostname}' is not in the allowed list"
        raise UnsafeInputError(msg)


def validate_method(method: Any) -> None:  # noqa: ANN401
    """Validate an HTTP method against the supported set, case-insensitively.

    Raises:
        UnsafeInputError: If the method is not a supported method name.
    """
    if not method or not isinstance(method, str):
        msg = "Method must be a non-empty string"
        raise UnsafeInputError(msg)

    if method.upper() not in ALLOWED_HTTP_METHODS:
        msg = f"Method must be one of {', '.join(sorted(ALLOWED_HTTP_METHODS))}"
        raise UnsafeInputError(msg)


def validate_headers(
    headers: Mapping[Any, Any] | None,
    policy: SecurityPolicy = DEFAULT_SECURITY_POLICY,
) -> None:
    """Validate request headers before they reach either fetch path.

    Values are checked against a narrower character class than keys because
    the curl builder quotes them; quote and separator characters in values
    are caught by the injection-pattern scan here and by
    ``validate_curl_command`` on the assembled line.

    Args:
        headers: Header map, or None for no headers.
        policy: Security policy to apply.

    Raises:
        UnsafeInputError: On the first invalid pair found.
    """
    if headers is None:
        return

    if not isinstance(headers, Mapping):
        msg = "Headers must be a mapping of strings"
        raise UnsafeInputError(msg)

    for key, value in headers.items():
        _validate_header_pair(key, value, policy)


def _validate_header_pair(
    key: Any,  # noqa: ANN401
    value: Any,  # noqa: ANN401
    policy: SecurityPolicy,
) -> None:
    if not key or not isinstance(key, str):
        msg = "Header key must be a non-empty string"
        raise UnsafeInputError(msg)

    if not value or not isinstance(value, str):
        msg = "Header value must be a non-empty string"
        raise UnsafeInputError(msg)

    if len(key) > policy.max_header_key_length:
        msg = (
            "Header key exceeds maximum length of "
            f"{policy.max_header_key_length} characters"
        )
        raise UnsafeInputError(msg)

    if len(value) > policy.max_header_value_length:
        msg = (
            "Header value exceeds maximum length of "
            f"{policy.max_header_value_length} characters"
        )
        raise UnsafeInputError(msg)

    if HEADER_KEY_DANGEROUS_CHARS.search(key):
        _audit("blocked_header_key", key=truncate(key, LOG_TRUNCATE_HEADER_VALUE))
        msg = "Header key contains potentially dangerous characters"
        raise UnsafeInputError(msg)

    if HEADER_VALUE_DANGEROUS_CHARS.search(value):
        _audit(
            "blocked_header_value",
            key=key,
            value=truncate(value, LOG_TRUNCATE_HEADER_VALUE),
        )
        msg = "Header value contains potentially dangerous characters"
        raise UnsafeInputError(msg)

    for pattern in HEADER_VALUE_INJECTION_PATTERNS:
        if pattern.search(value):
            _audit(
                "blocked_header_injection_pattern",
                key=key,
                value=truncate(value, LOG_TRUNCATE_HEADER_VALUE),
            )
            msg = "Header value contains potential injection pattern"
            raise UnsafeInputError(msg)


def validate_curl_command(command: Any) -> None:  # noqa: ANN401
    """Validate the exact command line that will be handed to the shell.

    A structural regex scan, not a shell parser: it may reject safe quoted
    constructs but never admits an unquoted separator, a backtick pair or
    ``$(...)`` substitution.

    Args:
        command: Fully assembled command line.

    Raises:
        UnsafeInputError: If the command is rejected.
    """
    if not command or not isinstance(command, str):
        msg = "Command must be a non-empty string"
        raise UnsafeInputError(msg)

    if not command.strip().startswith(CURL_COMMAND_PREFIX):
        msg = "Command must start with curl"
        raise UnsafeInputError(msg)

    for pattern in CURL_DANGEROUS_PATTERNS:
        if pattern.search(command):
            _audit(
                "blocked_curl_command",
                command=truncate(command, LOG_TRUNCATE_COMMAND),
            )
            msg = "Curl command contains potentially dangerous patterns"
            raise UnsafeInputError(msg)

"""Guarded outbound fetch for allow-listed Figma hosts.

This package provides:
- Validators for URLs, header maps and assembled curl command lines
- A retrying fetcher that falls back to curl when the native fetch fails
- Header redaction and truncation for audit logging
- Metrics collection for observability
"""

from guarded_fetch.client import RetryingFetcher, fetch_with_retry
from guarded_fetch.config import (
    DEFAULT_SECURITY_POLICY,
    AppSettings,
    FetchConfig,
    SecurityPolicy,
)
from guarded_fetch.errors import (
    CurlResponseError,
    RequestBodyError,
    SecurityValidationError,
    ShellCommandError,
    UnsafeInputError,
)
from guarded_fetch.metrics import FetchMetrics
from guarded_fetch.models import FetchResponse, RetryPolicy, ShellResult, Transport
from guarded_fetch.validation import (
    is_allowed_domain,
    validate_curl_command,
    validate_headers,
    validate_method,
    validate_url,
)


__version__ = "0.1.0"

__all__ = [
    # Client
    "RetryingFetcher",
    "fetch_with_retry",
    # Validation
    "validate_url",
    "validate_headers",
    "validate_method",
    "validate_curl_command",
    "is_allowed_domain",
    # Config
    "AppSettings",
    "FetchConfig",
    "SecurityPolicy",
    "DEFAULT_SECURITY_POLICY",
    # Models
    "FetchResponse",
    "RetryPolicy",
    "ShellResult",
    "Transport",
    # Errors
    "UnsafeInputError",
    "SecurityValidationError",
    "ShellCommandError",
    "CurlResponseError",
    "RequestBodyError",
    # Metrics
    "FetchMetrics",
]

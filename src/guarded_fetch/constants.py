"""Constants for the guarded fetch layer.

Centralizes the allow-list, length ceilings and shell-safety patterns so the
validators and the curl builder agree on a single definition.
"""

import re


# Allow-listed hostname suffixes (exact or dot-suffix match)
DEFAULT_ALLOWED_DOMAINS: tuple[str, ...] = (
    "api.figma.com",
    "figma.com",
    "s3-alpha-sig.figma.com",
    "s3-alpha.figma.com",
)

# Length ceilings
MAX_URL_LENGTH = 2048
MAX_HEADER_KEY_LENGTH = 256
MAX_HEADER_VALUE_LENGTH = 8192

ALLOWED_URL_SCHEMES = frozenset({"http", "https"})

ALLOWED_HTTP_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"}
)

# Shell metacharacters rejected anywhere in a raw URL
URL_DANGEROUS_CHARS = re.compile(r"[;&|`$(){}\[\]\\'\"<>]")

# Header keys must be single-line shell-safe tokens
HEADER_KEY_DANGEROUS_CHARS = re.compile(r"[;&|`$(){}\[\]\\'\"<>\n\r]")

# Header values end up quoted, so ; & | and quotes are left to the pattern scan
HEADER_VALUE_DANGEROUS_CHARS = re.compile(r"[`$(){}\[\]\\<>\n\r]")

HEADER_VALUE_INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r";\s*[a-zA-Z_][a-zA-Z0-9_]*\s*="),  # variable assignment
    re.compile(r"&&(?![^\"]*\"[^\"]*$)"),  # chaining outside double quotes
    re.compile(r"\|\|(?![^\"]*\"[^\"]*$)"),
    re.compile(r"\$\(|\$\{"),  # command substitution
)

CURL_COMMAND_PREFIX = "curl "

CURL_DANGEROUS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r";\s*[^'\"]"),
    re.compile(r"\|\s*[^'\"]"),
    re.compile(r"&&\s*[^'\"]"),
    re.compile(r"\|\|\s*[^'\"]"),
    re.compile(r"`[^`]*`"),
    re.compile(r"\$\([^)]*\)"),
)

# Log truncation limits
LOG_TRUNCATE_URL = 100
LOG_TRUNCATE_HEADER_VALUE = 50
LOG_TRUNCATE_COMMAND = 100

# curl fallback
CURL_BASE_ARGS: tuple[str, ...] = ("curl", "-sS")
CURL_STATUS_TRAILER = "\\n%{http_code}"

# Fetch defaults
DEFAULT_USER_AGENT = "guarded-fetch/0.1.0"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CURL_TIMEOUT_SECONDS = 60.0

SECURITY_FAILURE_PREFIX = "Security validation failed"

"""Unit tests for URL validation."""

import pytest
from structlog.testing import capture_logs

from guarded_fetch.config import SecurityPolicy
from guarded_fetch.errors import UnsafeInputError
from guarded_fetch.validation import is_allowed_domain, validate_url


DANGEROUS_CHARS = [";", "&", "|", "`", "$", "(", ")", "{", "}", "[", "]", "\\", "'", '"', "<", ">"]


class TestValidUrls:
    """URLs that must pass."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://api.figma.com/v1/files/abc123",
            "http://api.figma.com/v1/files/abc123",
            "https://figma.com/file/abc",
            "https://www.figma.com/design/abc",
            "https://s3-alpha-sig.figma.com/img/1234/abcd",
            "https://s3-alpha.figma.com/profile/x.png",
            "https://API.FIGMA.COM/v1/me",
            "https://api.figma.com:443/v1/files/abc?depth=2",
            "https://api.figma.com/v1/images/abc?ids=1:2,3:4#top",
        ],
    )
    def test_accepts_allow_listed_url(self, url: str) -> None:
        """Test that well-formed allow-listed URLs are accepted."""
        assert validate_url(url) is None


class TestInputShape:
    """Tests for missing, empty and oversized input."""

    @pytest.mark.parametrize("url", [None, "", 42, b"https://api.figma.com", ["x"]])
    def test_rejects_non_string_or_empty(self, url: object) -> None:
        """Test that only non-empty strings are accepted."""
        with pytest.raises(UnsafeInputError, match="^URL must be a non-empty string$"):
            validate_url(url)

    def test_rejects_too_long(self) -> None:
        """Test that URLs over 2048 characters are rejected."""
        url = "https://api.figma.com/" + "a" * 3000

        with pytest.raises(
            UnsafeInputError, match="^URL exceeds maximum length of 2048 characters$"
        ):
            validate_url(url)

    def test_length_checked_before_content(self) -> None:
        """Test that an oversized URL reports length even with bad characters."""
        url = "https://evil.com/;rm -rf /" + "a" * 3000

        with pytest.raises(UnsafeInputError, match="maximum length"):
            validate_url(url)

    def test_exactly_max_length_is_accepted(self) -> None:
        """Test the length ceiling is inclusive."""
        prefix = "https://api.figma.com/"
        url = prefix + "a" * (2048 - len(prefix))

        assert len(url) == 2048
        validate_url(url)

    def test_custom_length_ceiling(self) -> None:
        """Test that the policy's ceiling is used in check and message."""
        policy = SecurityPolicy(max_url_length=30)

        with pytest.raises(UnsafeInputError, match="maximum length of 30 characters"):
            validate_url("https://api.figma.com/v1/files/abc", policy)


class TestFormatAndScheme:
    """Tests for parse failures and scheme restrictions."""

    @pytest.mark.parametrize(
        "url",
        ["not-a-url", "api.figma.com/v1/files", "//api.figma.com/v1", "https://"],
    )
    def test_rejects_unparseable(self, url: str) -> None:
        """Test that non-absolute URLs are rejected."""
        with pytest.raises(UnsafeInputError, match="^Invalid URL format$"):
            validate_url(url)

    def test_unclosed_ipv6_literal_hits_character_check(self) -> None:
        """Test that bracketed hosts are stopped by the raw-string check."""
        with pytest.raises(
            UnsafeInputError, match="^URL contains potentially dangerous characters$"
        ):
            validate_url("http://[::1")

    def test_rejects_invalid_port(self) -> None:
        """Test that a non-numeric port is a format error."""
        with pytest.raises(UnsafeInputError, match="^Invalid URL format$"):
            validate_url("https://api.figma.com:abc/v1")

    @pytest.mark.parametrize(
        "url",
        [
            "ftp://api.figma.com/files/abc",
            "file://api.figma.com/etc/passwd",
            "gopher://api.figma.com/",
            "ws://api.figma.com/socket",
            "data:text/plain,hello",
        ],
    )
    def test_rejects_other_schemes(self, url: str) -> None:
        """Test that only http and https are allowed."""
        with pytest.raises(
            UnsafeInputError, match="^Only HTTP and HTTPS URLs are allowed$"
        ):
            validate_url(url)


class TestDangerousCharacters:
    """Tests for shell metacharacters in the raw URL."""

    @pytest.mark.parametrize("char", DANGEROUS_CHARS)
    def test_rejects_each_character_in_path(self, char: str) -> None:
        """Test that every metacharacter is rejected in the path."""
        with pytest.raises(
            UnsafeInputError, match="^URL contains potentially dangerous characters$"
        ):
            validate_url(f"https://api.figma.com/files/a{char}b")

    @pytest.mark.parametrize("char", DANGEROUS_CHARS)
    def test_rejects_even_when_unparseable(self, char: str) -> None:
        """Test that the raw-string check does not depend on parsing."""
        with pytest.raises(UnsafeInputError, match="dangerous characters"):
            validate_url(f"not a url {char}")

    @pytest.mark.parametrize(
        "url",
        [
            "https://api.figma.com/files/abc; rm -rf /",
            "https://api.figma.com/files/abc`whoami`",
            "https://api.figma.com/files/abc$(id)",
            "https://api.figma.com/files/abc|curl evil.com",
            "https://api.figma.com/files/abc&& curl evil.com",
            "https://api.figma.com/v1/files?a=1&b=2",
            "https://api.figma.com/v1/files#frag'quote",
        ],
    )
    def test_rejects_injection_attempts(self, url: str) -> None:
        """Test typical injection payloads anywhere in the URL."""
        with pytest.raises(UnsafeInputError, match="dangerous characters"):
            validate_url(url)

    def test_percent_encoded_characters_pass(self) -> None:
        """Test that encoded metacharacters are not decoded before checking."""
        validate_url("https://api.figma.com/v1/files/a%3Bb")

    def test_logs_truncated_url(self) -> None:
        """Test that blocked URLs are logged truncated to 100 characters."""
        url = "https://api.figma.com/files/abc;" + "x" * 500

        with capture_logs() as logs, pytest.raises(UnsafeInputError):
            validate_url(url)

        events = [e for e in logs if e["event"] == "blocked_url_dangerous_characters"]
        assert len(events) == 1
        assert events[0]["log_level"] == "error"
        assert events[0]["url"] == url[:100] + "..."


class TestDomainAllowList:
    """Tests for the domain allow-list."""

    @pytest.mark.parametrize(
        ("url", "hostname"),
        [
            ("https://evil.com/malicious", "evil.com"),
            ("https://attacker.com/payload", "attacker.com"),
            ("https://not-figma.com/files/abc", "not-figma.com"),
            ("https://figma.com.evil.com/x", "figma.com.evil.com"),
            ("https://evilfigma.com/x", "evilfigma.com"),
            ("https://api.figma.com@evil.com/x", "evil.com"),
            ("https://127.0.0.1/x", "127.0.0.1"),
        ],
    )
    def test_rejects_unlisted_domain(self, url: str, hostname: str) -> None:
        """Test that hosts outside the allow-list are rejected by name."""
        with pytest.raises(UnsafeInputError) as exc_info:
            validate_url(url)

        assert str(exc_info.value) == f"URL domain '{hostname}' is not in the allowed list"

    def test_reported_hostname_is_lower_case(self) -> None:
        """Test that the hostname in the message is lower-cased."""
        with pytest.raises(UnsafeInputError, match="'evil.com'"):
            validate_url("https://EVIL.com/x")

    def test_logs_blocked_domain(self) -> None:
        """Test that a blocked domain leaves an audit log entry."""
        with capture_logs() as logs, pytest.raises(UnsafeInputError):
            validate_url("https://evil.com/x")

        assert [e["event"] for e in logs] == ["blocked_url_domain"]
        assert logs[0]["hostname"] == "evil.com"

    def test_custom_allow_list(self) -> None:
        """Test that a policy can replace the allow-list."""
        policy = SecurityPolicy(allowed_domains=("Example.ORG",))

        validate_url("https://api.example.org/x", policy)
        with pytest.raises(UnsafeInputError, match="not in the allowed list"):
            validate_url("https://api.figma.com/x", policy)


class TestIsAllowedDomain:
    """Tests for suffix matching on dot boundaries."""

    @pytest.mark.parametrize(
        "hostname",
        ["figma.com", "api.figma.com", "a.b.figma.com", "FIGMA.COM", "s3-alpha.figma.com"],
    )
    def test_matches(self, hostname: str) -> None:
        """Test exact and dot-suffix matches."""
        assert is_allowed_domain(hostname) is True

    @pytest.mark.parametrize(
        "hostname", ["xfigma.com", "figma.co", "figma.com.au", "com", ""]
    )
    def test_does_not_match(self, hostname: str) -> None:
        """Test that partial labels do not match."""
        assert is_allowed_domain(hostname) is False


class TestAuditLoggerFailure:
    """Tests that a failing logger cannot change a decision."""

    def test_logger_error_does_not_mask_rejection(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that the validation error still surfaces if logging raises."""

        class BrokenLogger:
            def error(self, *args: object, **kwargs: object) -> None:
                raise RuntimeError("log sink down")

        monkeypatch.setattr("guarded_fetch.validation.logger", BrokenLogger())

        with pytest.raises(UnsafeInputError, match="not in the allowed list"):
            validate_url("https://evil.com/x")

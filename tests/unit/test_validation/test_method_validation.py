"""Unit tests for HTTP method validation."""

import pytest

from guarded_fetch.errors import UnsafeInputError
from guarded_fetch.validation import validate_method


class TestValidateMethod:
    """Tests for validate_method."""

    @pytest.mark.parametrize(
        "method", ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "post", "Get"]
    )
    def test_accepts_supported_methods(self, method: str) -> None:
        """Test that supported methods pass in any case."""
        assert validate_method(method) is None

    @pytest.mark.parametrize("method", [None, "", 5, b"GET"])
    def test_rejects_non_string(self, method: object) -> None:
        """Test that the method must be a non-empty string."""
        with pytest.raises(UnsafeInputError, match="^Method must be a non-empty string$"):
            validate_method(method)

    @pytest.mark.parametrize(
        "method", ["TRACE", "CONNECT", "GET; rm -rf /", "GET\r\nX: y", "G ET"]
    )
    def test_rejects_unsupported(self, method: str) -> None:
        """Test that anything outside the supported set is rejected."""
        with pytest.raises(UnsafeInputError, match="^Method must be one of "):
            validate_method(method)

"""Metrics collection for the guarded fetch layer."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class FetchMetrics:
    """Metrics for guarded fetch operations.

    Singleton class that tracks attempts, fallbacks, security blocks
    and outcomes across all logical fetch calls.
    """

    fetch_attempts_total: int = 0
    native_failures_total: int = 0
    curl_fallbacks_total: int = 0
    security_blocks_total: dict[str, int] = field(default_factory=dict)
    fetch_success_total: int = 0
    fetch_exhausted_total: int = 0
    fetch_duration_ms_total: float = 0.0

    _instance: ClassVar["FetchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_attempt(self) -> None:
        """Record the start of a physical attempt."""
        self.fetch_attempts_total += 1

    def record_native_failure(self) -> None:
        """Record a native fetch failure."""
        self.native_failures_total += 1

    def record_curl_fallback(self) -> None:
        """Record a curl fallback execution."""
        self.curl_fallbacks_total += 1

    def record_security_block(self, reason: str) -> None:
        """Record a validation block.

        Args:
            reason: Audit event name for the block.
        """
        self.security_blocks_total[reason] = (
            self.security_blocks_total.get(reason, 0) + 1
        )

    def record_success(self, duration_ms: float) -> None:
        """Record a successful logical fetch.

        Args:
            duration_ms: Duration of the whole call in milliseconds.
        """
        self.fetch_success_total += 1
        self.fetch_duration_ms_total += duration_ms

    def record_exhausted(self) -> None:
        """Record a logical fetch that ran out of attempts."""
        self.fetch_exhausted_total += 1

    def to_dict(self) -> dict[str, int | float | dict[str, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "fetch_attempts_total": self.fetch_attempts_total,
            "native_failures_total": self.native_failures_total,
            "curl_fallbacks_total": self.curl_fallbacks_total,
            "security_blocks_total": dict(self.security_blocks_total),
            "fetch_success_total": self.fetch_success_total,
            "fetch_exhausted_total": self.fetch_exhausted_total,
            "fetch_duration_ms_total": self.fetch_duration_ms_total,
        }

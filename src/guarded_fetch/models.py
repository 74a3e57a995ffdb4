"""Data models for the guarded fetch layer."""

import json
import random
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field


HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300


class Transport(str, Enum):
    """Which path produced a response."""

    NATIVE = "native"
    CURL = "curl"


class FetchResponse(BaseModel):
    """Response from a guarded fetch.

    HTTP error statuses are carried here as ordinary results; only
    transport failures are raised.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: int = Field(ge=100, le=599, description="HTTP status code")
    url: Annotated[str, Field(min_length=1, description="Requested URL")]
    headers: dict[str, str] = Field(
        default_factory=dict, description="Response headers (native path only)"
    )
    body_bytes: bytes = Field(default=b"", description="Response body")
    transport: Transport = Field(description="Path that produced the response")

    @property
    def is_success(self) -> bool:
        """Check if the status code is 2xx."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    @property
    def text(self) -> str:
        """Decode the body as UTF-8, replacing undecodable bytes."""
        return self.body_bytes.decode("utf-8", errors="replace")

    def parse_json(self) -> Any:  # noqa: ANN401
        """Parse the body as JSON.

        Raises:
            json.JSONDecodeError: If the body is not valid JSON.
        """
        return json.loads(self.body_bytes)


class ShellResult(BaseModel):
    """Captured output of a shell command."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    stdout: str = ""
    stderr: str = ""


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    Bounds the number of attempts for one logical fetch and the backoff
    between them: delay = base_delay_ms * (exponential_base ^ retry_index),
    capped at max_delay_ms, plus jitter.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: Annotated[int, Field(ge=1, le=10)] = 3
    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = 1000
    max_delay_ms: Annotated[int, Field(ge=0, le=300000)] = 30000
    exponential_base: Annotated[float, Field(ge=1.0, le=5.0)] = 2.0
    jitter_factor: Annotated[float, Field(ge=0.0, le=1.0)] = 0.1

    def has_attempts_left(self, attempt: int) -> bool:
        """Determine if another attempt may follow the given one.

        Args:
            attempt: Attempt that just failed (1-indexed).

        Returns:
            True if the budget allows another attempt.
        """
        return attempt < self.max_attempts

    def get_delay_ms(self, retry_index: int) -> int:
        """Calculate delay before the next attempt.

        Args:
            retry_index: Number of retries already performed (0-indexed).

        Returns:
            Delay in milliseconds.
        """
        delay = self.base_delay_ms * (self.exponential_base**retry_index)
        delay = min(delay, self.max_delay_ms)

        # Jitter keeps concurrent callers from retrying in lockstep
        jitter = delay * self.jitter_factor * random.random()  # noqa: S311
        return int(delay + jitter)

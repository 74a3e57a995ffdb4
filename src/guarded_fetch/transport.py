"""Native HTTP transport for the guarded fetch layer."""

from collections.abc import Mapping
from typing import Protocol

import httpx

from guarded_fetch.constants import DEFAULT_TIMEOUT_SECONDS
from guarded_fetch.models import FetchResponse, Transport


class NativeFetch(Protocol):
    """Asynchronous request primitive.

    Returns a response for any HTTP status and raises on transport
    failure.
    """

    async def __call__(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: str | bytes | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> FetchResponse: ...


async def send_native_request(
    url: str,
    *,
    method: str = "GET",
    headers: Mapping[str, str] | None = None,
    body: str | bytes | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> FetchResponse:
    """Send a request with httpx.

    Redirects are not followed, so the response always comes from the
    validated host.

    Raises:
        httpx.HTTPError: On timeout, connection or protocol failure.
    """
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=False) as client:
        response = await client.request(
            method.upper(),
            url,
            headers=dict(headers or {}),
            content=body,
        )

    return FetchResponse(
        status_code=response.status_code,
        url=url,
        headers=dict(response.headers),
        body_bytes=response.content,
        transport=Transport.NATIVE,
    )

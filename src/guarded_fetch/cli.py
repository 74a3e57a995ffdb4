"""Command-line interface for guarded fetches."""

import asyncio
import logging
import sys

import click

from guarded_fetch.client import RetryingFetcher
from guarded_fetch.config import FetchConfig, get_settings
from guarded_fetch.errors import SecurityValidationError, UnsafeInputError
from guarded_fetch.logging import configure_logging
from guarded_fetch.models import RetryPolicy
from guarded_fetch.validation import validate_headers, validate_url


EXIT_SECURITY_FAILURE = 1
EXIT_TRANSPORT_FAILURE = 2


def _parse_header_options(values: tuple[str, ...]) -> dict[str, str]:
    """Split ``Key: Value`` options into a header map."""
    headers: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition(":")
        if not sep:
            msg = f"Header must look like 'Key: Value', got {raw!r}"
            raise click.BadParameter(msg, param_hint="--header")
        headers[key.strip()] = value.strip()
    return headers


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--json-logs/--console-logs",
    default=True,
    help="Log format on stderr",
)
def cli(verbose: bool, json_logs: bool) -> None:
    """Guarded fetch for allow-listed Figma hosts."""
    configure_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        output=sys.stderr,
        json_format=json_logs,
    )


@cli.command()
@click.argument("url")
@click.option(
    "--header",
    "-H",
    "header_values",
    multiple=True,
    help="Request header as 'Key: Value' (repeatable)",
)
def check(url: str, header_values: tuple[str, ...]) -> None:
    """Validate a URL and headers without fetching."""
    headers = _parse_header_options(header_values)
    try:
        validate_url(url)
        validate_headers(headers)
    except UnsafeInputError as e:
        click.echo(str(e), err=True)
        sys.exit(EXIT_SECURITY_FAILURE)
    click.echo("OK")


@cli.command()
@click.argument("url")
@click.option(
    "--header",
    "-H",
    "header_values",
    multiple=True,
    help="Request header as 'Key: Value' (repeatable)",
)
@click.option("--method", "-X", default="GET", show_default=True)
@click.option("--data", "-d", "body", default=None, help="Request body")
@click.option(
    "--max-attempts",
    type=click.IntRange(1, 10),
    default=3,
    show_default=True,
)
@click.option(
    "--no-curl-fallback",
    is_flag=True,
    help="Do not fall back to curl when the native fetch fails",
)
def fetch(  # noqa: PLR0913
    url: str,
    header_values: tuple[str, ...],
    method: str,
    body: str | None,
    max_attempts: int,
    no_curl_fallback: bool,
) -> None:
    """Fetch a URL and print the response body."""
    headers = get_settings().auth_headers()
    headers.update(_parse_header_options(header_values))

    config = FetchConfig(
        retry_policy=RetryPolicy(max_attempts=max_attempts),
        curl_fallback=not no_curl_fallback,
    )
    fetcher = RetryingFetcher(config)

    try:
        response = asyncio.run(fetcher.fetch(url, headers, method=method, body=body))
    except SecurityValidationError as e:
        click.echo(str(e), err=True)
        sys.exit(EXIT_SECURITY_FAILURE)
    except Exception as e:  # noqa: BLE001
        click.echo(f"Fetch failed: {e}", err=True)
        sys.exit(EXIT_TRANSPORT_FAILURE)

    if not response.is_success:
        click.echo(f"HTTP {response.status_code}", err=True)
    click.echo(response.text)


if __name__ == "__main__":
    cli()

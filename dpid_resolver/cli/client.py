"""HTTP helpers shared by the client commands."""

import os
import sys
import time
from collections.abc import Callable
from typing import Any

import httpx

from dpid_resolver.cli.console import get_console

DEFAULT_SERVER_URL = "http://localhost:5460"


def get_server_url() -> str:
    """Get resolver URL from the environment."""
    return os.environ.get("RESOLVER_CLI_URL", DEFAULT_SERVER_URL).rstrip("/")


def with_retry[T](
    fn: Callable[[], T],
    retries: int = 3,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Retry a function on transient errors with linear backoff.

    Raises:
        The last exception if all retries fail.
    """
    last_error: Exception | None = None
    for attempt in range(retries + 1):
        try:
            return fn()
        except exceptions as e:
            last_error = e
            if attempt < retries:
                time.sleep(0.2 * (attempt + 1))
    raise last_error  # type: ignore[misc]


def request_json(method: str, path: str, **kwargs: Any) -> Any:
    """Call the resolver and return the decoded body, exiting on failure."""
    console = get_console()
    url = f"{get_server_url()}{path}"

    try:
        response = with_retry(
            lambda: httpx.request(method, url, timeout=60.0, **kwargs),
            exceptions=(httpx.ReadError, httpx.ConnectError),
        )
    except httpx.HTTPError as e:
        console.error(f"Could not reach resolver at {get_server_url()}: {e}")
        sys.exit(1)

    if response.is_error:
        try:
            body = response.json()
            message = body.get("message") or body.get("detail") or response.text
        except ValueError:
            message = response.text
        console.error(f"{response.status_code}: {message}")
        sys.exit(1)

    return response.json()

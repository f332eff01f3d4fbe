"""Source fetching with a hard deadline and SSRF protection."""

import asyncio
from urllib.parse import urljoin

import httpx

from answer_engine.core.errors import FetchError, FetchTimeoutError, UnsafeURLError
from answer_engine.core.security import validate_url

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_USER_AGENT = "Mozilla/5.0 OllamaIntelligentFetcher"

# Maximum number of redirects to follow
MAX_REDIRECTS = 10

# Bytes read from a response body; the rest is dropped
DEFAULT_MAX_BODY_BYTES = 2_000_000


async def _check_url(url: str) -> None:
    try:
        # validate_url resolves DNS, which blocks
        await asyncio.to_thread(validate_url, url)
    except ValueError as e:
        raise UnsafeURLError(url, str(e)) from e


async def _read_body(response: httpx.Response, max_body_bytes: int) -> str:
    """Decode at most max_body_bytes of the body, then stop reading."""
    body = bytearray()
    async for chunk in response.aiter_bytes():
        body.extend(chunk)
        if len(body) >= max_body_bytes:
            del body[max_body_bytes:]
            break
    return body.decode(response.encoding or "utf-8", errors="replace")


async def _fetch(
    client: httpx.AsyncClient,
    url: str,
    user_agent: str,
    check_urls: bool,
    max_body_bytes: int,
) -> str:
    current_url = url
    redirect_count = 0
    headers = {"User-Agent": user_agent}

    while True:
        if check_urls:
            await _check_url(current_url)

        async with client.stream("GET", current_url, headers=headers) as response:
            if response.is_redirect:
                redirect_count += 1
                if redirect_count > MAX_REDIRECTS:
                    raise FetchError(url, f"Too many redirects (>{MAX_REDIRECTS})")

                location = response.headers.get("location")
                if not location:
                    raise FetchError(url, "Redirect without Location header")

                # Relative redirects resolve against the current hop
                current_url = urljoin(current_url, location)
                continue

            response.raise_for_status()
            return await _read_body(response, max_body_bytes)


async def fetch_source(
    url: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    user_agent: str = DEFAULT_USER_AGENT,
    check_urls: bool = True,
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    client: httpx.AsyncClient | None = None,
) -> str:
    """
    Fetch the raw body of one source URL within a wall-clock deadline.

    The deadline covers URL validation, every redirect hop, and reading the
    body. On expiry the in-flight request is cancelled. There are no retries.

    Args:
        url: The URL to fetch
        timeout_ms: Hard deadline in milliseconds
        user_agent: User-Agent header identifying this client
        check_urls: Validate the URL and each redirect target against SSRF rules
        max_body_bytes: Stop reading the body after this many bytes
        client: Optional shared client (one is created per call otherwise)

    Returns:
        Response body as text

    Raises:
        FetchTimeoutError: If the deadline expired
        UnsafeURLError: If the URL or a redirect target is blocked
        FetchError: On HTTP status errors and other network failures
    """
    timeout = timeout_ms / 1000

    async def run() -> str:
        if client is not None:
            return await _fetch(client, url, user_agent, check_urls, max_body_bytes)
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=False) as own_client:
            return await _fetch(own_client, url, user_agent, check_urls, max_body_bytes)

    try:
        return await asyncio.wait_for(run(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise FetchTimeoutError(url, timeout_ms) from e
    except FetchError:
        raise
    except httpx.HTTPStatusError as e:
        raise FetchError(url, f"HTTP error: {e.response.status_code}") from e
    except httpx.TimeoutException as e:
        # Transport-level timeout fired a hair before our own deadline
        raise FetchTimeoutError(url, timeout_ms) from e
    except httpx.HTTPError as e:
        raise FetchError(url, f"HTTP error: {e}") from e

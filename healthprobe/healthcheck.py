"""HTTP health check probe for container orchestration.

Execute a single HTTP GET against a caller-supplied URL and map the outcome
to a process exit code. The response body is never read.

Exit Codes:
    0: Healthy - Endpoint returned exactly HTTP 200.
    1: Unhealthy - Missing or malformed URL, connection failure, timeout,
       or any non-200 response (redirects are not followed).

Environment Variables:
    HEALTHCHECK_CONNECT_TIMEOUT: Connection timeout in seconds (default: 2).
    HEALTHCHECK_REQUEST_TIMEOUT: Deadline for the whole request in seconds (default: 2).
"""

import asyncio
import time
from typing import Optional, Sequence

import httpx

from healthprobe.config import Settings, get_settings
from healthprobe.core.logging_config import get_logger
from healthprobe.core.types import ProbeResult

logger = get_logger(__name__)

ALLOWED_SCHEMES = ("http", "https")


class InvalidProbeURL(ValueError):
    """Raised when the target is not an absolute http(s) URL with a host."""


def printable_url(raw_url: str) -> str:
    """Return ``raw_url`` with undecodable command-line bytes escaped.

    Arguments that are not valid UTF-8 reach Python as lone surrogates,
    which cannot be encoded for logging or validation.
    """
    return raw_url.encode("utf-8", "backslashreplace").decode("utf-8")


def parse_target(raw_url: str) -> httpx.URL:
    """Parse and validate the probe target.

    Args:
        raw_url: URL string exactly as supplied on the command line.

    Returns:
        httpx.URL: The parsed target.

    Raises:
        InvalidProbeURL: If the URL cannot be parsed or encoded, uses a scheme
            other than http/https, or has no host.
    """
    try:
        url = httpx.URL(raw_url)
    except (httpx.InvalidURL, UnicodeError) as e:
        raise InvalidProbeURL(
            f"Cannot parse URL {printable_url(raw_url)!r}: {printable_url(str(e))}"
        ) from e

    if url.scheme not in ALLOWED_SCHEMES:
        raise InvalidProbeURL(
            f"Unsupported scheme {url.scheme!r} in {printable_url(raw_url)!r}; "
            "expected http or https"
        )
    if not url.host:
        raise InvalidProbeURL(f"Missing host in {printable_url(raw_url)!r}")

    return url


def build_timeout(settings: Settings) -> httpx.Timeout:
    """Build the per-phase httpx timeout with a dedicated connect budget.

    Per-phase timeouts restart on every socket read; the overall deadline is
    enforced separately in `acheck`.
    """
    return httpx.Timeout(settings.REQUEST_TIMEOUT, connect=settings.CONNECT_TIMEOUT)


async def _fetch_status(
    client: httpx.AsyncClient, url: httpx.URL, timeout: httpx.Timeout
) -> int:
    # Streaming returns once headers arrive; closing the response drops the body unread.
    async with client.stream("GET", url, timeout=timeout, follow_redirects=False) as response:
        return response.status_code


async def _request_status(
    url: httpx.URL, timeout: httpx.Timeout, client: Optional[httpx.AsyncClient]
) -> int:
    if client is not None:
        return await _fetch_status(client, url, timeout)
    async with httpx.AsyncClient(timeout=timeout) as owned_client:
        return await _fetch_status(owned_client, url, timeout)


async def acheck(
    url: str,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ProbeResult:
    """Probe a single URL once and describe the outcome.

    The whole exchange, connection included, is bounded by REQUEST_TIMEOUT.
    Network and URL failures are captured in the returned result rather than
    raised. An injected client is used as-is and left open.

    Args:
        url: Target URL.
        settings: Probe settings. Defaults to the cached singleton.
        client: Optional pre-built async HTTP client.

    Returns:
        ProbeResult: Status code on response, error description otherwise.
    """
    settings = settings or get_settings()
    timeout = build_timeout(settings)
    started = time.perf_counter()

    try:
        target = parse_target(url)
        status_code = await asyncio.wait_for(
            _request_status(target, timeout, client),
            timeout=settings.REQUEST_TIMEOUT,
        )
    except asyncio.TimeoutError:
        error = f"DeadlineExceeded: no response within {settings.REQUEST_TIMEOUT}s"
    except (InvalidProbeURL, httpx.InvalidURL, httpx.HTTPError) as e:
        error = f"{type(e).__name__}: {e}"
    else:
        return ProbeResult(
            url=printable_url(url),
            status_code=status_code,
            elapsed_ms=_elapsed_ms(started),
        )

    return ProbeResult(
        url=printable_url(url),
        error=printable_url(error),
        elapsed_ms=_elapsed_ms(started),
    )


def check(
    url: str,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ProbeResult:
    """Blocking wrapper around `acheck` for callers without an event loop."""
    return asyncio.run(acheck(url, settings=settings, client=client))


def _elapsed_ms(started: float) -> float:
    return max(0.0, (time.perf_counter() - started) * 1000)


def run(
    args: Sequence[str],
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> int:
    """Run the probe against ``args[0]`` and return the process exit code.

    An empty argument list fails immediately without touching the network.
    Arguments after the first are ignored.

    Args:
        args: Command-line arguments, program name excluded.
        settings: Probe settings. Defaults to the cached singleton.
        client: Optional pre-built async HTTP client.

    Returns:
        int: 0 if the endpoint answered HTTP 200, 1 otherwise.
    """
    if not args:
        logger.warning("No target URL supplied", usage="healthcheck <url>")
        return 1

    result = check(args[0], settings=settings, client=client)

    if result.healthy:
        logger.debug(
            "Probe healthy",
            url=result.url,
            status_code=result.status_code,
            elapsed_ms=round(result.elapsed_ms, 1),
        )
    else:
        logger.warning(
            "Probe unhealthy",
            url=result.url,
            status_code=result.status_code,
            error=result.error,
            elapsed_ms=round(result.elapsed_ms, 1),
        )

    return result.exit_code

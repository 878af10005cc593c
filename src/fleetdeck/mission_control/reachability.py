"""Preview URL reachability check.

Created: 2026-02-11

Website reviews are useless if the reviewer can't open the preview, so
submissions with a ``previewUrl`` are checked before they are stored. The
check is bounded by ``url_check_timeout``; a timeout counts as unreachable.
"""

import logging
from urllib.parse import urlparse

import httpx

from fleetdeck.errors import ReviewValidationError, UnreachableURLError

logger = logging.getLogger(__name__)

# Some hosts refuse HEAD; retry those with GET
_HEAD_REFUSED = {405, 501}


def validate_url(url: str, field: str = "previewUrl") -> str:
    """Reject anything that is not an absolute http(s) URL."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ReviewValidationError(f"{field} must be an absolute http(s) URL", field=field)
    return url


async def check_url_reachable(url: str, timeout: float = 5.0) -> None:
    """Raise ``UnreachableURLError`` unless ``url`` answers below HTTP 500.

    4xx answers count as reachable: the host is up, and preview deployments
    commonly sit behind auth.
    """
    validate_url(url)
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            resp = await client.head(url)
            if resp.status_code in _HEAD_REFUSED:
                resp = await client.get(url)
    except httpx.TimeoutException as e:
        raise UnreachableURLError(url, f"timed out after {timeout:g}s") from e
    except httpx.HTTPError as e:
        raise UnreachableURLError(url, type(e).__name__) from e

    if resp.status_code >= 500:
        raise UnreachableURLError(url, f"HTTP {resp.status_code}")
    logger.debug(f"Preview URL {url} answered {resp.status_code}")

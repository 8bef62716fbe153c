"""
Blob store fetches for report rendering

Photos and document images are pulled from the storage service over HTTP.
Every attempt carries a deadline covering the whole download; a timeout,
transport error or non-200 response is reported as AssetUnavailable so the caller
can draw a placeholder instead.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

BLOB_FETCH_TIMEOUT = float(os.getenv("BLOB_FETCH_TIMEOUT", "10"))
BLOB_FETCH_RETRIES = int(os.getenv("BLOB_FETCH_RETRIES", "1"))


class AssetUnavailable(Exception):
    """A remote asset could not be fetched."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


@dataclass(frozen=True)
class FetchPolicy:
    timeout: float = BLOB_FETCH_TIMEOUT
    retries: int = BLOB_FETCH_RETRIES


class BlobFetcher:
    """
    Fetch bytes from the blob store.

    A client can be injected (tests pass one built on httpx.MockTransport);
    otherwise a short-lived AsyncClient is opened per fetch.
    """

    def __init__(self, policy: Optional[FetchPolicy] = None, client: Optional[httpx.AsyncClient] = None):
        self.policy = policy or FetchPolicy()
        self.client = client

    async def _get(self, url: str) -> httpx.Response:
        if self.client is not None:
            return await self.client.get(url, timeout=self.policy.timeout)
        async with httpx.AsyncClient(timeout=self.policy.timeout, follow_redirects=True) as client:
            return await client.get(url)

    async def fetch_bytes(self, url: Optional[str]) -> bytes:
        if not url:
            raise AssetUnavailable(str(url), "no url")

        attempts = max(1, self.policy.retries + 1)
        reason = "unknown"
        for attempt in range(1, attempts + 1):
            # httpx timeouts are per network step; wait_for bounds the whole attempt
            try:
                response = await asyncio.wait_for(self._get(url), self.policy.timeout)
            except (asyncio.TimeoutError, httpx.TimeoutException):
                reason = f"timed out after {self.policy.timeout}s"
                logger.warning(f"Blob fetch timeout ({attempt}/{attempts}) for: {url}")
                continue
            except httpx.HTTPError as e:
                reason = str(e) or e.__class__.__name__
                logger.warning(f"Blob fetch error ({attempt}/{attempts}) for '{url}': {reason}")
                continue

            if response.status_code == 200:
                return response.content

            reason = f"HTTP {response.status_code}"
            logger.warning(f"Blob fetch got {reason} ({attempt}/{attempts}) for: {url}")
            # Client errors won't change on retry
            if 400 <= response.status_code < 500:
                break

        raise AssetUnavailable(url, reason)


def get_blob_fetcher() -> BlobFetcher:
    """FastAPI dependency; tests override it with a MockTransport-backed fetcher."""
    return BlobFetcher()

"""
Release Feed

Fetches the latest release descriptor and the changelog from the remote
repository. The latest release is cached for a fixed time so UI polling does
not hit the remote API (and its rate limits) on every request.
"""

import logging
import time
from collections.abc import Callable

import httpx
from pydantic import TypeAdapter, ValidationError

from handoff_updater.core.config import RELEASE_CACHE_TTL_SECONDS
from handoff_updater.core.exceptions import InvalidVersionFormat, UpdateFeedError
from handoff_updater.update.cache import ExpiringCache
from handoff_updater.update.models import ChangelogVersionEntry, Release

logger = logging.getLogger(__name__)

_CHANGELOG_ADAPTER = TypeAdapter(list[ChangelogVersionEntry])


def add_access_token(url: str, token: str | None) -> str:
    """
    Append the access_token query parameter when a token is configured

    Args:
        url: Release or asset URL
        token: Out-of-band access token (empty/None means no token)

    Returns:
        str: URL, token-suffixed if needed
    """
    if not token:
        return url
    return str(httpx.URL(url).copy_merge_params({"access_token": token}))


class ReleaseFeed:
    """
    Client for the release and changelog endpoints

    Example:
        feed = ReleaseFeed(
            "https://api.github.com/repos/owner/project",
            "https://raw.githubusercontent.com/owner/project/master/changelog.json",
        )
        release = await feed.get_latest_release()
        print(release.tag_name)
    """

    def __init__(
        self,
        repository_base_url: str,
        changelog_url: str,
        client: httpx.AsyncClient | None = None,
        access_token: str | None = None,
        cache_ttl_seconds: float = RELEASE_CACHE_TTL_SECONDS,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the feed

        Args:
            repository_base_url: Base URL of the repository API (without /releases)
            changelog_url: URL of the JSON changelog
            client: Shared HTTP client (created and owned by the feed if None)
            access_token: Optional token appended to release URLs
            cache_ttl_seconds: Lifetime of a cached latest release
            timeout: Request timeout in seconds for an owned client
            clock: Monotonic clock used for cache expiry
        """
        self.repository_base_url = repository_base_url.rstrip("/")
        self.changelog_url = changelog_url
        self.access_token = access_token
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._latest_release_cache: ExpiringCache[Release] = ExpiringCache(
            self._fetch_latest_release, cache_ttl_seconds, clock=clock
        )

    async def aclose(self) -> None:
        """Close the HTTP client if the feed created it"""
        if self._owns_client:
            await self.client.aclose()

    async def get_latest_release(self) -> Release:
        """
        Get the latest release, served from cache while it is fresh

        Returns:
            Release: Latest published release

        Raises:
            UpdateFeedError: If the release could not be fetched
        """
        return await self._latest_release_cache.get()

    def invalidate(self) -> None:
        """Drop the cached release so the next call refetches"""
        self._latest_release_cache.invalidate()

    async def _fetch_latest_release(self) -> Release:
        url = f"{self.repository_base_url}/releases/latest"
        logger.debug(f"Retrieving latest release using URL {url}")
        try:
            response = await self.client.get(add_access_token(url, self.access_token))
            response.raise_for_status()
            release = Release.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            raise UpdateFeedError(
                f"Error while getting latest version: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise UpdateFeedError(f"Error while getting latest version: {e}") from e
        except (ValueError, ValidationError) as e:
            raise UpdateFeedError(f"Invalid release descriptor from {url}: {e}") from e

        logger.info(f"Latest release is {release.tag_name}")
        return release

    async def get_all_changes(self) -> list[ChangelogVersionEntry]:
        """
        Get the full changelog, newest version first

        Returns:
            list[ChangelogVersionEntry]: Entries sorted descending by version

        Raises:
            UpdateFeedError: On transport errors, non-success status or bad payload
        """
        try:
            response = await self.client.get(self.changelog_url)
        except httpx.HTTPError as e:
            raise UpdateFeedError(f"Error while getting changelog: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise UpdateFeedError(f"Error while getting changelog: HTTP {response.status_code}")

        try:
            entries = _CHANGELOG_ADAPTER.validate_python(response.json())
            return sorted(entries, key=lambda entry: entry.semantic_version, reverse=True)
        except (ValueError, ValidationError, InvalidVersionFormat) as e:
            raise UpdateFeedError(f"Invalid changelog from {self.changelog_url}: {e}") from e

"""
Version Policy Store

Decides whether a release version may be offered to the user. Two lists are
consulted independently:
- versions the user chose to ignore (persisted locally)
- versions the vendor blocked (fetched from a remote list on every call)
"""

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from handoff_updater.core.exceptions import InvalidVersionFormat, UpdateFeedError
from handoff_updater.core.interfaces import IKeyValueStore
from handoff_updater.update.models import BlockedVersion, UpdateData
from handoff_updater.update.version import SemanticVersion

logger = logging.getLogger(__name__)

UPDATE_DATA_KEY = "UpdateData"

_BLOCKED_ADAPTER = TypeAdapter(list[BlockedVersion])


class VersionPolicyStore:
    """Ignored and blocked versions"""

    def __init__(self, storage: IKeyValueStore, blocked_versions_url: str, client: httpx.AsyncClient):
        self.storage = storage
        self.blocked_versions_url = blocked_versions_url
        self.client = client

    def _load(self) -> UpdateData:
        return self.storage.get(UPDATE_DATA_KEY, UpdateData) or UpdateData()

    def get_ignored_versions(self) -> set[SemanticVersion]:
        return self._load().ignored()

    def is_ignored(self, version: SemanticVersion) -> bool:
        return version in self.get_ignored_versions()

    def ignore(self, version: str | SemanticVersion) -> SemanticVersion:
        """
        Add a version to the ignored set and persist it

        Ignoring an already ignored version changes nothing.

        Args:
            version: Version to ignore

        Returns:
            SemanticVersion: The parsed version
        """
        semantic_version = SemanticVersion.parse(version)
        update_data = self._load()
        if semantic_version in update_data.ignored():
            logger.debug(f"Version {semantic_version} is already ignored")
            return semantic_version

        update_data.ignore_versions.append(str(semantic_version))
        self.storage.save(UPDATE_DATA_KEY, update_data)
        logger.info(f"Version {semantic_version} ignored. Will not show update notices for this version.")
        return semantic_version

    async def get_blocked_versions(self) -> list[BlockedVersion]:
        """
        Fetch the vendor's blocked-version list

        Raises:
            UpdateFeedError: If the list could not be read
        """
        logger.debug(f"Getting blocked versions from {self.blocked_versions_url}")
        try:
            response = await self.client.get(self.blocked_versions_url)
            response.raise_for_status()
            return _BLOCKED_ADAPTER.validate_python(response.json())
        except httpx.HTTPError as e:
            raise UpdateFeedError(f"Unable to read blocked versions: {e}") from e
        except (ValueError, ValidationError) as e:
            raise UpdateFeedError(f"Invalid blocked versions list: {e}") from e

    async def is_blocked(self, version: SemanticVersion) -> bool:
        """
        Check the version against the remote block list

        Raises:
            UpdateFeedError: If the block list could not be determined
        """
        for blocked in await self.get_blocked_versions():
            try:
                if blocked.semantic_version == version:
                    logger.debug(f"Version {version} is blocked: {blocked.comment}")
                    return True
            except InvalidVersionFormat:
                logger.warning(f"Ignoring unparsable blocked version entry {blocked.version!r}")
        return False

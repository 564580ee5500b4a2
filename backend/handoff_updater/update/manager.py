"""
Update Manager

Answers "is there an update?" and runs the update sequence:

    fetch latest release -> select platform asset -> download into
    <data_dir>/update -> backup -> hand off to the wrapper (code 11)

The actual installation is done by the wrapper after this process exited.
An update is never handed off without a successful backup first.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path

import httpx

from handoff_updater.core.config import Settings, get_settings, resolve_current_version
from handoff_updater.core.exceptions import UpdateExecutionError, UpdaterError
from handoff_updater.core.interfaces import IBackupService
from handoff_updater.core.lifecycle import ApplicationContext, get_application_context
from handoff_updater.core.paths import get_control_file, get_update_dir
from handoff_updater.storage import Database, GenericStorage
from handoff_updater.update.assets import AssetSelector
from handoff_updater.update.backup import BackupService, clean_directory
from handoff_updater.update.feed import ReleaseFeed, add_access_token
from handoff_updater.update.handoff import WrapperHandoff
from handoff_updater.update.models import ChangelogVersionEntry, ControlCode, UpdateState
from handoff_updater.update.policy import VersionPolicyStore
from handoff_updater.update.version import SemanticVersion

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 8192
CLIENT_CLOSE_TIMEOUT_SECONDS = 5.0

# A status check never overwrites these
_INSTALL_STATES = {UpdateState.DOWNLOADING, UpdateState.BACKING_UP, UpdateState.HANDING_OFF}


class UpdateManager:
    """
    Self-update orchestration for the running server

    Typical flow:
    1. ``is_update_available()`` - polled by the UI
    2. ``get_changes_since_current_version()`` - shown to the user
    3. ``install_update()`` - download, backup, exit with code 11

    ``install_update`` must not run concurrently with itself; callers
    serialize it (it is a single admin action).
    """

    def __init__(
        self,
        current_version: SemanticVersion,
        feed: ReleaseFeed,
        policy: VersionPolicyStore,
        backup_service: IBackupService,
        handoff: WrapperHandoff,
        data_dir: Path,
        asset_selector: AssetSelector | None = None,
        access_token: str | None = None,
        download_timeout: float = 300.0,
    ):
        self.current_version = current_version
        self.feed = feed
        self.policy = policy
        self.backup_service = backup_service
        self.handoff = handoff
        self.data_dir = data_dir
        self.asset_selector = asset_selector or AssetSelector()
        self.access_token = access_token
        self.download_timeout = download_timeout
        self.state = UpdateState.IDLE
        # Event loop owning the HTTP client's connections, known once a handoff starts
        self._client_loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        app_context: ApplicationContext | None = None,
    ) -> "UpdateManager":
        """
        Wire an update manager from configuration

        Args:
            settings: Settings to use (defaults to get_settings())
            app_context: Context closed on handoff (defaults to the global one)

        Returns:
            UpdateManager instance

        Raises:
            ConfigurationError: If an update URL is missing
        """
        settings = settings or get_settings()
        settings.validate_update_urls()
        app_context = app_context or get_application_context()

        database = Database(settings.database_path)
        app_context.register("database", database.dispose)

        client = httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True)
        token = settings.github_token or None

        manager = cls(
            current_version=resolve_current_version(settings),
            feed=ReleaseFeed(
                settings.repository_base_url,
                settings.changelog_url,
                client=client,
                access_token=token,
                cache_ttl_seconds=settings.release_cache_ttl_seconds,
            ),
            policy=VersionPolicyStore(GenericStorage(database), settings.blocked_versions_url, client),
            backup_service=BackupService(settings.data_dir),
            handoff=WrapperHandoff(
                get_control_file(settings.data_dir),
                app_context=app_context,
                grace_seconds=settings.handoff_grace_seconds,
            ),
            data_dir=settings.data_dir,
            access_token=token,
            download_timeout=settings.download_timeout_seconds,
        )
        # Registered after the database, so it is closed first
        app_context.register("http client", manager.close_client)
        return manager

    async def aclose(self) -> None:
        """Close the shared HTTP client"""
        await self.feed.client.aclose()

    def close_client(self) -> None:
        """
        Close the shared HTTP client from synchronous code

        Used as application context closer, which runs on the handoff thread
        while the event loop owning the client may still be running.
        """
        client = self.feed.client
        if client.is_closed:
            return

        loop = self._client_loop
        if loop is None or not loop.is_running():
            asyncio.run(client.aclose())
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            # Blocking here would deadlock the loop
            loop.create_task(client.aclose())
            return

        future = asyncio.run_coroutine_threadsafe(client.aclose(), loop)
        future.result(timeout=CLIENT_CLOSE_TIMEOUT_SECONDS)

    @property
    def current_version_string(self) -> str:
        return str(self.current_version)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def get_latest_version(self) -> SemanticVersion:
        release = await self.feed.get_latest_release()
        return release.version

    async def get_latest_version_string(self) -> str:
        return str(await self.get_latest_version())

    async def latest_version_ignored(self) -> bool:
        latest_version = await self.get_latest_version()
        if self.policy.is_ignored(latest_version):
            logger.debug(f"Version {latest_version} is in the list of ignored updates")
            return True
        return False

    async def latest_version_blocked(self) -> bool:
        """
        Check the latest version against the remote block list

        An unreadable block list counts as "not blocked".
        """
        latest_version = await self.get_latest_version()
        try:
            blocked = await self.policy.is_blocked(latest_version)
        except UpdaterError as e:
            # TODO: confirm with the release team whether this should fail closed
            logger.error(f"Unable to determine if version {latest_version} is blocked, assuming it is not: {e}")
            return False
        if blocked:
            logger.debug(f"Version {latest_version} is in the list of blocked updates")
        return blocked

    async def is_update_available(self) -> bool:
        """
        Check if a newer, neither ignored nor blocked version exists

        Never raises: feed problems are logged and reported as no update.
        Updates ``state`` unless an install is in progress.

        Returns:
            bool: True if an update can be offered
        """
        self._set_check_state(UpdateState.CHECKING)
        try:
            available = await self._check_update_available()
        except Exception as e:
            logger.error(
                f"Error while checking if new version is available: {e}",
                exc_info=not isinstance(e, UpdaterError),
            )
            self._set_check_state(UpdateState.FAILED)
            return False

        self._set_check_state(UpdateState.UPDATE_AVAILABLE if available else UpdateState.UP_TO_DATE)
        return available

    async def _check_update_available(self) -> bool:
        latest_version = await self.get_latest_version()
        if not latest_version.is_update_for(self.current_version):
            logger.debug(f"No update available (running {self.current_version}, latest {latest_version})")
            return False
        return not await self.latest_version_ignored() and not await self.latest_version_blocked()

    def _set_check_state(self, state: UpdateState) -> None:
        if self.state not in _INSTALL_STATES:
            self.state = state

    async def check_status(self) -> UpdateState:
        """
        Run an availability check and return the resulting state

        Returns:
            UpdateState: UPDATE_AVAILABLE, UP_TO_DATE or FAILED, or the
            install phase if an install is in progress
        """
        await self.is_update_available()
        return self.state

    def ignore(self, version: str | SemanticVersion) -> SemanticVersion:
        return self.policy.ignore(version)

    # ------------------------------------------------------------------
    # Changelog
    # ------------------------------------------------------------------

    async def get_all_changes(self) -> list[ChangelogVersionEntry]:
        return await self.feed.get_all_changes()

    async def get_changes_since_current_version(self) -> list[ChangelogVersionEntry]:
        """
        Changelog entries newer than the running version

        Relies on the changelog being sorted newest first: collection stops
        at the first entry that is not newer than the running version.
        """
        collected = []
        for entry in await self.get_all_changes():
            if self.current_version.is_same_or_newer(entry.semantic_version):
                break
            collected.append(entry)
        return collected

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    async def install_update(
        self,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> threading.Thread:
        """
        Download the latest release, back up and hand off to the wrapper

        Returns once the handoff thread is started; the process exits
        shortly after.

        Args:
            progress_callback: Optional callback(downloaded_bytes, total_bytes)

        Returns:
            threading.Thread: The started handoff thread

        Raises:
            UpdateFeedError: If the latest release could not be fetched
            NoAssetForPlatform: If the release has no asset for this platform
            UpdateExecutionError: If the asset name is unsafe or download or backup failed
        """
        try:
            release = await self.feed.get_latest_release()
            logger.info(f"Starting update process to {release.tag_name}")
            asset = self.asset_selector.select(release)
            target = self._update_file_path(asset.name)
        except UpdaterError:
            self.state = UpdateState.FAILED
            raise

        url = add_access_token(asset.browser_download_url, self.access_token)
        self.state = UpdateState.DOWNLOADING
        try:
            await self._download(url, target, progress_callback)
        except (httpx.HTTPError, OSError) as e:
            self.state = UpdateState.FAILED
            raise UpdateExecutionError(f"Error while downloading or saving update file: {e}") from e

        self.state = UpdateState.BACKING_UP
        try:
            logger.info("Creating backup before shutting down")
            self.backup_service.backup()
        except Exception as e:
            self.state = UpdateState.FAILED
            raise UpdateExecutionError(
                f"Unable to create backup before update: {e}",
                recovery_hint="Fix the backup problem and retry; the update was not started",
            ) from e

        logger.info("Shutting down to let wrapper execute the update")
        return self._hand_off(ControlCode.UPDATE)

    def _update_file_path(self, file_name: str) -> Path:
        """
        Location of the downloaded artifact, always directly inside the update dir

        Raises:
            UpdateExecutionError: If the asset name is not a plain file name
        """
        update_dir = get_update_dir(self.data_dir)
        target = update_dir / file_name
        if (
            not file_name
            or "\\" in file_name
            or Path(file_name).name != file_name
            or file_name in (".", "..")
            or target.resolve().parent != update_dir.resolve()
        ):
            raise UpdateExecutionError(
                f"Refusing to save update file with unsafe name {file_name!r}",
                recovery_hint="Check the asset names of the published release",
            )
        return target

    async def _download(
        self,
        url: str,
        target: Path,
        progress_callback: Callable[[int, int], None] | None,
    ) -> Path:
        clean_directory(target.parent)

        # Token may be part of the URL, only log the asset name
        logger.info(f"Downloading update file {target.name}")
        async with self.feed.client.stream("GET", url, timeout=self.download_timeout) as response:
            response.raise_for_status()
            total_size = _content_length(response)
            downloaded = 0
            with open(target, "wb") as f:
                async for chunk in response.aiter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    f.write(chunk)
                    downloaded += len(chunk)
                    if progress_callback and total_size > 0:
                        progress_callback(downloaded, total_size)

        logger.info(f"Saved update file as {target} ({downloaded} bytes)")
        return target

    # ------------------------------------------------------------------
    # Other wrapper actions
    # ------------------------------------------------------------------

    def shutdown(self) -> threading.Thread:
        logger.info("Shutting down")
        return self._hand_off(ControlCode.SHUTDOWN)

    def restart(self) -> threading.Thread:
        logger.info("Shutting down to let wrapper restart")
        return self._hand_off(ControlCode.RESTART)

    def restore_from_backup(self, backup_file: Path) -> threading.Thread:
        """
        Stage a backup and let the wrapper restore it (code 33)

        Raises:
            BackupError: If the backup could not be staged; no handoff happens
        """
        self.backup_service.stage_restore(backup_file)
        logger.info("Shutting down to let wrapper restore the backup")
        return self._hand_off(ControlCode.RESTORE)

    def _hand_off(self, code: ControlCode) -> threading.Thread:
        self.state = UpdateState.HANDING_OFF
        try:
            self._client_loop = asyncio.get_running_loop()
        except RuntimeError:
            self._client_loop = None
        return self.handoff.signal_and_exit(code)


def _content_length(response: httpx.Response) -> int:
    """Announced size of the response body, 0 if missing or malformed"""
    try:
        return max(int(response.headers.get("content-length", 0)), 0)
    except ValueError:
        logger.debug(f"Ignoring invalid content-length header {response.headers.get('content-length')!r}")
        return 0

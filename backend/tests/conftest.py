"""
Shared fixtures for updater tests
"""

import os

import pytest

from handoff_updater.core.paths import get_control_file
from handoff_updater.update.assets import AssetSelector
from handoff_updater.update.feed import ReleaseFeed
from handoff_updater.update.handoff import WrapperHandoff
from handoff_updater.update.manager import UpdateManager
from handoff_updater.update.policy import VersionPolicyStore
from handoff_updater.update.version import SemanticVersion
from tests.fakes import (
    BLOCKED_URL,
    CHANGELOG_URL,
    REPO_URL,
    FakeBackupService,
    FakeRemote,
    InMemoryStore,
    RecordingExit,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep UPDATER_* variables of the developer shell out of the tests"""
    for name in list(os.environ):
        if name.startswith("UPDATER_"):
            monkeypatch.delenv(name)


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def backup_service():
    return FakeBackupService()


@pytest.fixture
def exit_recorder():
    return RecordingExit()


@pytest.fixture
def make_manager(tmp_path, remote, store, backup_service, exit_recorder):
    """Factory building an UpdateManager wired to the fake remote"""

    def factory(
        current: str = "1.5.0",
        platform_hint: str = "linux",
        access_token: str | None = None,
    ) -> UpdateManager:
        client = remote.client()
        return UpdateManager(
            current_version=SemanticVersion(current),
            feed=ReleaseFeed(REPO_URL, CHANGELOG_URL, client=client, access_token=access_token),
            policy=VersionPolicyStore(store, BLOCKED_URL, client),
            backup_service=backup_service,
            handoff=WrapperHandoff(
                get_control_file(tmp_path),
                grace_seconds=0,
                exit_func=exit_recorder,
            ),
            data_dir=tmp_path,
            asset_selector=AssetSelector(platform_hint),
            access_token=access_token,
        )

    return factory

"""
Tests for platform asset selection
"""

from unittest.mock import patch

import pytest

from handoff_updater.core.exceptions import NoAssetForPlatform
from handoff_updater.update.assets import AssetSelector, detect_platform_hint
from handoff_updater.update.models import Release
from tests.fakes import release_json


def make_release(*names: str) -> Release:
    return Release.model_validate(release_json("v2.0.0", list(names)))


class TestDetectPlatformHint:
    """Tests for detect_platform_hint"""

    def test_windows(self):
        """Test Windows detection"""
        with patch("platform.system", return_value="Windows"):
            assert detect_platform_hint() == "windows"

    def test_linux(self):
        """Test Linux detection"""
        with patch("platform.system", return_value="Linux"):
            assert detect_platform_hint() == "linux"

    def test_other_platforms_are_not_mapped(self):
        """Test that other systems keep their own name"""
        with patch("platform.system", return_value="Darwin"):
            assert detect_platform_hint() == "darwin"

    def test_unknown_platform(self):
        """Test an empty system name"""
        with patch("platform.system", return_value=""):
            assert detect_platform_hint() == "unknown"


class TestAssetSelector:
    """Test asset matching"""

    def test_selects_windows_asset_on_windows(self):
        """Test asset choice on a Windows host"""
        release = make_release("app-windows.zip", "app-linux.tar.gz")
        with patch("platform.system", return_value="Windows"):
            assert AssetSelector().select(release).name == "app-windows.zip"

    def test_selects_linux_asset_on_linux(self):
        """Test asset choice on a Linux host"""
        release = make_release("app-windows.zip", "app-linux.tar.gz")
        with patch("platform.system", return_value="Linux"):
            assert AssetSelector().select(release).name == "app-linux.tar.gz"

    def test_match_is_case_insensitive(self):
        """Test that asset names match regardless of case"""
        release = make_release("App-WINDOWS.zip")
        assert AssetSelector("windows").select(release).name == "App-WINDOWS.zip"

    def test_first_match_wins(self):
        """Test that the first matching asset is chosen"""
        release = make_release("app-linux-arm.tar.gz", "app-linux.tar.gz")
        assert AssetSelector("linux").select(release).name == "app-linux-arm.tar.gz"

    def test_explicit_hint_overrides_detection(self):
        """Test that a per-call hint wins over the default"""
        release = make_release("app-windows.zip", "app-linux.tar.gz")
        assert AssetSelector("linux").select(release, "windows").name == "app-windows.zip"

    def test_empty_asset_list_fails(self):
        """Test a release without assets"""
        with pytest.raises(NoAssetForPlatform, match="No assets found"):
            AssetSelector("linux").select(make_release())

    def test_no_matching_asset_fails(self):
        """Test a release without an asset for the platform"""
        release = make_release("app-windows.zip")
        with pytest.raises(NoAssetForPlatform) as exc_info:
            AssetSelector("linux").select(release)
        assert exc_info.value.platform_hint == "linux"

    def test_macos_falls_through_to_no_asset(self):
        """Test that macOS hosts get no asset"""
        release = make_release("app-windows.zip", "app-linux.tar.gz")
        with patch("platform.system", return_value="Darwin"):
            with pytest.raises(NoAssetForPlatform):
                AssetSelector().select(release)

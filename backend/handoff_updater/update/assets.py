"""
Platform asset selection

Only Windows and Linux artifacts are published. Any other host OS produces a
hint that matches no asset name, so selection fails with NoAssetForPlatform.
"""

import logging
import platform

from handoff_updater.core.exceptions import NoAssetForPlatform
from handoff_updater.update.models import Asset, Release

logger = logging.getLogger(__name__)

WINDOWS = "windows"
LINUX = "linux"


def detect_platform_hint() -> str:
    """
    Map the host OS to the substring expected in asset names

    Returns:
        str: "windows", "linux" or the lower-cased OS name otherwise
    """
    system = platform.system().lower()
    if WINDOWS in system:
        return WINDOWS
    if LINUX in system:
        return LINUX
    # TODO: publish macOS artifacts and map "darwin" to them
    return system or "unknown"


class AssetSelector:
    """Picks the release asset built for the running platform"""

    def __init__(self, platform_hint: str | None = None):
        self.platform_hint = platform_hint or detect_platform_hint()

    def select(self, release: Release, platform_hint: str | None = None) -> Asset:
        """
        Select the first asset whose name contains the platform hint

        Args:
            release: Release to pick from (asset order is kept)
            platform_hint: Overrides the detected platform

        Returns:
            Asset: Matching asset

        Raises:
            NoAssetForPlatform: If the release has no assets or none matches
        """
        hint = (platform_hint or self.platform_hint).lower()
        if not release.assets:
            raise NoAssetForPlatform(f"No assets found for release {release.tag_name}", hint)

        for asset in release.assets:
            if hint in asset.name.lower():
                return asset

        names = ", ".join(asset.name for asset in release.assets)
        logger.error(f"Unable to find asset for platform {hint} in these assets: {names}")
        raise NoAssetForPlatform(f"Unable to find asset for current platform {hint}", hint)

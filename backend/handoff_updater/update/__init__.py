"""
Update Management Package

Provides self-update functionality for the running server.

Features:
- Check a remote repository for newer releases (cached for 15 minutes)
- Respect user-ignored and vendor-blocked versions
- Download the artifact for the current platform
- Backup the data directory before updating
- Hand off to the external wrapper via control file and exit code
"""

from handoff_updater.update.manager import UpdateManager
from handoff_updater.update.models import ControlCode, UpdateState
from handoff_updater.update.version import SemanticVersion

__all__ = [
    "UpdateManager",
    "ControlCode",
    "UpdateState",
    "SemanticVersion",
]

"""
Handoff Updater

Self-update orchestration for long-running server processes. Checks for new
releases, downloads the platform artifact, takes a backup and hands the actual
replacement over to an external wrapper process.
"""

__version__ = "1.4.2"
__license__ = "MIT"

from handoff_updater.update.manager import UpdateManager
from handoff_updater.update.models import ControlCode
from handoff_updater.update.version import SemanticVersion

__all__ = [
    "UpdateManager",
    "ControlCode",
    "SemanticVersion",
]

"""
Path resolution for the updater data directory.

Everything the updater writes lives below a single data directory:

    <data_dir>/
        control.id        handoff code read by the wrapper
        update/           downloaded release artifact (cleaned per attempt)
        restore/          extracted backup staged for the wrapper
        backups/          backup archives
        updater.db        generic key-value storage

All helpers take the data directory explicitly so they can be used with
temporary directories in tests.
"""

import os
import sys
from pathlib import Path

CONTROL_FILE_NAME = "control.id"
UPDATE_DIR_NAME = "update"
RESTORE_DIR_NAME = "restore"
BACKUPS_DIR_NAME = "backups"
DATABASE_FILE_NAME = "updater.db"


def is_frozen() -> bool:
    """
    Check if running as a frozen PyInstaller executable.

    Returns:
        bool: True if running as frozen executable, False otherwise
    """
    return getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS")


def get_package_root() -> Path:
    """
    Get the directory containing the handoff_updater package.

    Returns:
        Path: Absolute path to the package root (the backend/ directory)
    """
    # This file is at: handoff_updater/core/paths.py
    return Path(__file__).parent.parent.parent.resolve()


def get_default_data_dir() -> Path:
    """
    Get the default data directory.

    Priority order:
    1. UPDATER_DATA_DIR environment variable
    2. Directory next to the executable (frozen builds only)
    3. ~/.handoff-updater

    Returns:
        Path to data directory (not created)
    """
    env_path = os.getenv("UPDATER_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()

    if is_frozen():
        return Path(sys.executable).parent / "data"

    return Path.home() / ".handoff-updater"


def get_control_file(data_dir: Path) -> Path:
    """Handoff file polled by the wrapper"""
    return data_dir / CONTROL_FILE_NAME


def get_update_dir(data_dir: Path) -> Path:
    return data_dir / UPDATE_DIR_NAME


def get_restore_dir(data_dir: Path) -> Path:
    return data_dir / RESTORE_DIR_NAME


def get_backups_dir(data_dir: Path) -> Path:
    return data_dir / BACKUPS_DIR_NAME


def get_database_file(data_dir: Path) -> Path:
    return data_dir / DATABASE_FILE_NAME

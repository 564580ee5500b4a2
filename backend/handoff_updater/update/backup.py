"""
Backup Service

Preserves the data directory before updates and stages backups for the
wrapper to restore.
"""

import logging
import shutil
import zipfile
from datetime import datetime
from pathlib import Path

from handoff_updater.core.exceptions import BackupError
from handoff_updater.core.paths import (
    BACKUPS_DIR_NAME,
    CONTROL_FILE_NAME,
    RESTORE_DIR_NAME,
    UPDATE_DIR_NAME,
    get_backups_dir,
    get_restore_dir,
)

logger = logging.getLogger(__name__)

MANIFEST_NAME = "MANIFEST.txt"

# Entries at the top of the data directory that never go into a backup
EXCLUDED_ENTRIES = {BACKUPS_DIR_NAME, UPDATE_DIR_NAME, RESTORE_DIR_NAME, CONTROL_FILE_NAME}


def clean_directory(directory: Path) -> None:
    """Create directory if missing, otherwise delete everything inside it"""
    if not directory.exists():
        directory.mkdir(parents=True)
        return
    for entry in directory.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


class BackupService:
    """
    Zip backups of the data directory

    Example:
        service = BackupService(settings.data_dir)
        archive = service.backup()
    """

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir
        self.backups_dir = get_backups_dir(data_dir)

    def _files_to_back_up(self) -> list[Path]:
        if not self.data_dir.exists():
            return []
        files = []
        for entry in sorted(self.data_dir.iterdir()):
            if entry.name in EXCLUDED_ENTRIES:
                continue
            if entry.is_file():
                files.append(entry)
            elif entry.is_dir():
                files.extend(sorted(p for p in entry.rglob("*") if p.is_file()))
        return files

    def backup(self) -> Path:
        """
        Back up the data directory

        Returns:
            Path: Path to the backup archive

        Raises:
            BackupError: If the backup could not be written
        """
        backup_file = self.backups_dir / f"backup-{datetime.now():%Y%m%d-%H%M%S}.zip"

        try:
            self.backups_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Creating backup at {backup_file}")

            files = self._files_to_back_up()
            manifest = [f"Backup created: {datetime.now().isoformat()}", "Files backed up:"]
            with zipfile.ZipFile(backup_file, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for path in files:
                    relative = path.relative_to(self.data_dir).as_posix()
                    archive.write(path, relative)
                    manifest.append(f"  - {relative} ({path.stat().st_size} bytes)")
                archive.writestr(MANIFEST_NAME, "\n".join(manifest) + "\n")

            logger.info(f"Backup complete: {backup_file} ({len(files)} files)")
            return backup_file

        except (OSError, zipfile.BadZipFile) as e:
            logger.error(f"Backup failed: {e}")
            if backup_file.exists():
                backup_file.unlink()
            raise BackupError(f"Unable to create backup: {e}") from e

    def list_backups(self) -> list[Path]:
        """
        List all available backups

        Returns:
            list[Path]: Backup archives (newest first)
        """
        if not self.backups_dir.exists():
            return []

        backups = [p for p in self.backups_dir.glob("*.zip") if p.is_file()]
        backups.sort(key=lambda p: (p.stat().st_mtime, p.name), reverse=True)
        return backups

    def stage_restore(self, backup_file: Path) -> Path:
        """
        Extract a backup into the restore folder for the wrapper to apply

        Args:
            backup_file: Backup archive to restore

        Returns:
            Path: The restore directory

        Raises:
            BackupError: If the archive is missing or invalid
        """
        if not backup_file.is_file():
            raise BackupError(f"Backup file not found: {backup_file}", recovery_hint="Choose one of the listed backups")

        restore_dir = get_restore_dir(self.data_dir)
        try:
            with zipfile.ZipFile(backup_file) as archive:
                bad_member = archive.testzip()
                if bad_member is not None:
                    raise BackupError(f"Backup archive is corrupt at {bad_member}")
                clean_directory(restore_dir)
                archive.extractall(restore_dir)
        except (OSError, zipfile.BadZipFile) as e:
            raise BackupError(f"Unable to extract backup {backup_file.name}: {e}") from e

        logger.info(f"Backup {backup_file.name} staged for restore in {restore_dir}")
        return restore_dir

"""
Core interfaces and protocols

Defines the collaborators the update manager depends on but does not own,
so storage and backup implementations can be swapped (or faked in tests).
"""

from pathlib import Path
from typing import Protocol, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class IKeyValueStore(Protocol):
    """Protocol for generic key-value storage of pydantic records"""

    def get(self, key: str, model_type: type[ModelT]) -> ModelT | None:
        """Load the record stored under key, or None if absent"""
        ...

    def save(self, key: str, value: BaseModel) -> None:
        """Create or replace the record stored under key"""
        ...


class IBackupService(Protocol):
    """Protocol for backup implementations"""

    def backup(self) -> Path:
        """
        Create a backup now

        Returns:
            Path: Location of the created backup

        Raises:
            Exception: Any failure; callers treat it as fatal
        """
        ...

    def stage_restore(self, backup_file: Path) -> Path:
        """
        Prepare a backup so the wrapper can restore it after exit

        Returns:
            Path: Directory the wrapper restores from
        """
        ...

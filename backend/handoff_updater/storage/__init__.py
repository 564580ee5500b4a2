"""
Data persistence layer using SQLite
"""

from handoff_updater.storage.database import Database
from handoff_updater.storage.generic import GenericStorage
from handoff_updater.storage.models import GenericStorageModel

__all__ = [
    "Database",
    "GenericStorage",
    "GenericStorageModel",
]

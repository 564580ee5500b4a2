"""
Generic key-value storage for pydantic records
"""

import logging

from pydantic import BaseModel
from sqlalchemy import select

from handoff_updater.core.interfaces import ModelT
from handoff_updater.storage.database import Database
from handoff_updater.storage.models import GenericStorageModel

logger = logging.getLogger(__name__)


class GenericStorage:
    """
    Stores one JSON document per key

    Example:
        storage = GenericStorage(database)
        storage.save("UpdateData", UpdateData(ignore_versions=["2.0.0"]))
        data = storage.get("UpdateData", UpdateData)
    """

    def __init__(self, database: Database):
        self.database = database

    def get(self, key: str, model_type: type[ModelT]) -> ModelT | None:
        with self.database.session_scope() as session:
            row = session.execute(
                select(GenericStorageModel).where(GenericStorageModel.key == key)
            ).scalar_one_or_none()
            if row is None:
                return None
            return model_type.model_validate(row.data)

    def save(self, key: str, value: BaseModel) -> None:
        data = value.model_dump(mode="json")
        with self.database.session_scope() as session:
            row = session.execute(
                select(GenericStorageModel).where(GenericStorageModel.key == key)
            ).scalar_one_or_none()
            if row is None:
                session.add(GenericStorageModel(key=key, data=data))
            else:
                row.data = data
        logger.debug(f"Saved generic storage entry {key}")

    def delete(self, key: str) -> bool:
        """
        Remove the entry stored under key

        Returns:
            bool: True if an entry was removed
        """
        with self.database.session_scope() as session:
            row = session.execute(
                select(GenericStorageModel).where(GenericStorageModel.key == key)
            ).scalar_one_or_none()
            if row is None:
                return False
            session.delete(row)
            return True

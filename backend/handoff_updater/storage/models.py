"""
SQLAlchemy database models
"""

from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow():
    """Return current UTC time"""
    return datetime.now(UTC)


class GenericStorageModel(Base):
    """
    Stores arbitrary JSON records under a unique key

    Used for small pieces of application state such as the ignored
    update versions.
    """

    __tablename__ = "generic_storage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(255), unique=True, nullable=False, index=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<GenericStorageModel(key={self.key!r})>"

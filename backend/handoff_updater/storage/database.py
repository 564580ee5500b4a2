"""
SQLite database connection and session management
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from handoff_updater.storage.models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Database connection manager

    Handles SQLite connection, session management, and table creation.
    """

    def __init__(self, database_path: Path):
        """
        Initialize database connection

        Args:
            database_path: Path to SQLite database file
        """
        self.database_path = database_path

        # Ensure data directory exists
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(
            f"sqlite:///{self.database_path}",
            echo=False,
            pool_pre_ping=True,
        )

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

        self.create_tables()

        logger.info(f"Database initialized: {self.database_path}")

    def create_tables(self) -> None:
        """Create all database tables"""
        Base.metadata.create_all(bind=self.engine)
        logger.debug("Database tables created/verified")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope for database operations

        Yields:
            SQLAlchemy Session object

        Usage:
            with db.session_scope() as session:
                # Use session
                pass
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Release all pooled connections"""
        self.engine.dispose()

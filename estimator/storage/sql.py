"""
SQLAlchemy storage backend.

The project collection and the settings are each stored as one JSON
document row, so a write replaces the whole collection in one transaction.
"""
import json
from typing import Any, List, Optional

import structlog
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import func

from estimator.database import Base, init_db, make_session_factory
from estimator.exceptions import StorageError
from estimator.models import EstimatorSettings, Project
from estimator.storage.base import EstimatorStorage

logger = structlog.get_logger(__name__)


class StoredDocument(Base):
    """Keyed JSON document."""

    __tablename__ = "estimator_documents"

    key = Column(String(64), primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SqlStorage(EstimatorStorage):
    """Storage backed by any SQLAlchemy-supported database."""

    PROJECTS_KEY = "projects"
    SETTINGS_KEY = "settings"

    def __init__(self, engine: Engine):
        super().__init__()
        self.engine = engine
        self._session_factory = make_session_factory(engine)
        init_db(engine)

    @property
    def backend_name(self) -> str:
        return "sql"

    def _read(self, key: str) -> Optional[Any]:
        session = self._session_factory()
        try:
            document = session.get(StoredDocument, key)
            return json.loads(document.payload) if document else None
        except SQLAlchemyError as e:
            logger.error("storage_read_failed", key=key, error=str(e))
            raise StorageError(f"Failed to read {key}", details={"key": key})
        finally:
            session.close()

    def _write(self, key: str, payload: Any) -> None:
        session = self._session_factory()
        try:
            document = session.get(StoredDocument, key)
            if document is None:
                document = StoredDocument(key=key)
                session.add(document)
            document.payload = json.dumps(payload)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("storage_write_failed", key=key, error=str(e))
            raise StorageError(f"Failed to write {key}", details={"key": key})
        finally:
            session.close()

    def load_all_projects(self) -> List[Project]:
        data = self._read(self.PROJECTS_KEY) or []
        return [Project.from_dict(item) for item in data]

    def write_all_projects(self, projects: List[Project]) -> None:
        self._write(self.PROJECTS_KEY, [project.to_dict() for project in projects])

    def load_settings(self) -> Optional[EstimatorSettings]:
        data = self._read(self.SETTINGS_KEY)
        if data is None:
            return None
        return EstimatorSettings.from_dict(data)

    def write_settings(self, settings: EstimatorSettings) -> None:
        self._write(self.SETTINGS_KEY, settings.to_dict())

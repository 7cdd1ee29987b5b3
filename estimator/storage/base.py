"""
Base storage interface for estimator data.

Every backend reads and writes the full project collection in one call;
there is no partial-update API.
"""
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

from estimator.models import EstimatorSettings, Project


class EstimatorStorage(ABC):
    """Abstract persistence collaborator for projects and settings."""

    def __init__(self):
        # Held by callers around a read-modify-write of the collection.
        self.lock = threading.RLock()

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier."""
        pass

    @abstractmethod
    def load_all_projects(self) -> List[Project]:
        """Return every stored project in storage order."""
        pass

    @abstractmethod
    def write_all_projects(self, projects: List[Project]) -> None:
        """Replace the stored collection with ``projects``."""
        pass

    @abstractmethod
    def load_settings(self) -> Optional[EstimatorSettings]:
        """Return persisted settings, or None if never written."""
        pass

    @abstractmethod
    def write_settings(self, settings: EstimatorSettings) -> None:
        """Persist ``settings``."""
        pass

"""
Storage backends for projects and settings.
"""
from estimator.config import AppSettings
from estimator.storage.base import EstimatorStorage
from estimator.storage.json_file import JsonFileStorage
from estimator.storage.memory import InMemoryStorage

__all__ = [
    "EstimatorStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "create_storage",
]


def create_storage(settings: AppSettings) -> EstimatorStorage:
    """Build the backend selected by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        return InMemoryStorage()
    if settings.storage_backend == "sql":
        from estimator.database import make_engine
        from estimator.storage.sql import SqlStorage

        return SqlStorage(make_engine(settings.database_url))
    return JsonFileStorage(settings.data_dir)

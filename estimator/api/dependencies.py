"""
FastAPI dependencies for the estimator routes.
"""
from functools import lru_cache, partial

from fastapi import Depends

from estimator.config import get_settings
from estimator.services.llm_providers import get_llm_client
from estimator.services.repository import ProjectRepository
from estimator.services.task_generation import TaskGenerator
from estimator.storage import EstimatorStorage, create_storage


@lru_cache
def get_storage() -> EstimatorStorage:
    """Process-wide storage backend selected by configuration."""
    return create_storage(get_settings())


def get_repository(storage: EstimatorStorage = Depends(get_storage)) -> ProjectRepository:
    return ProjectRepository(storage)


def get_task_generator() -> TaskGenerator:
    settings = get_settings()
    return TaskGenerator(
        client_factory=partial(
            get_llm_client,
            timeout=settings.llm_timeout_seconds,
            max_tokens=settings.llm_max_tokens,
        )
    )

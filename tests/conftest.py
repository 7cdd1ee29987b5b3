"""
Pytest configuration and fixtures.
"""
import json
from typing import Generator, List

import httpx
import pytest
from fastapi.testclient import TestClient

from estimator.api.dependencies import get_storage, get_task_generator
from estimator.main import app
from estimator.models import LLMProvider
from estimator.services.llm_providers import get_llm_client
from estimator.services.repository import ProjectRepository
from estimator.services.task_generation import TaskGenerator
from estimator.storage import InMemoryStorage
from tests.llm_stubs import SAMPLE_TASKS, Handler, claude_reply


@pytest.fixture
def storage() -> InMemoryStorage:
    """Fresh in-memory storage for each test."""
    return InMemoryStorage()


@pytest.fixture
def repository(storage: InMemoryStorage) -> ProjectRepository:
    return ProjectRepository(storage)


@pytest.fixture
def llm_requests() -> List[httpx.Request]:
    """Requests captured by ``make_generator`` transports."""
    return []


@pytest.fixture
def make_generator(llm_requests: List[httpx.Request]):
    """Factory for a TaskGenerator whose HTTP calls go to ``handler``."""
    def factory(handler: Handler) -> TaskGenerator:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            llm_requests.append(request)
            return handler(request)

        def client_factory(provider: LLMProvider):
            return get_llm_client(provider, transport=httpx.MockTransport(recording_handler))

        return TaskGenerator(client_factory=client_factory)
    return factory


@pytest.fixture
def llm_handler() -> dict:
    """Handler behind the API client's generator; tests may swap it."""
    return {"handler": claude_reply(json.dumps(SAMPLE_TASKS))}


@pytest.fixture(scope="function")
def client(storage: InMemoryStorage, make_generator, llm_handler: dict) -> Generator[TestClient, None, None]:
    """Create a test client backed by in-memory storage and a mock LLM."""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_task_generator] = lambda: make_generator(
        lambda request: llm_handler["handler"](request)
    )

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()

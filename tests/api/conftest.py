"""API-specific test fixtures."""

import pytest
from fastapi.testclient import TestClient

from progress_engine.api.deps import get_progress_service, get_retry_attempts
from progress_engine.main import create_app
from progress_engine.services.progress_service import ProgressService


@pytest.fixture
def api_client(memory_store):
    """FastAPI test client backed by the in-memory store.

    The client is not entered as a context manager, so the lifespan (database
    and Redis startup) does not run.
    """
    app = create_app()
    service = ProgressService(memory_store)
    app.dependency_overrides[get_progress_service] = lambda: service
    app.dependency_overrides[get_retry_attempts] = lambda: 1
    yield TestClient(app)
    app.dependency_overrides.clear()

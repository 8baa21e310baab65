"""
Pytest configuration and fixtures for course feedback tests.
"""

import pytest
from pathlib import Path
import sys

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def local_store(tmp_path):
    """Provide an empty local key-value store."""
    from coursefeedback.feedback.storage import LocalFeedbackStore
    return LocalFeedbackStore(tmp_path / "local_storage.json")


@pytest.fixture
def table_store(tmp_path):
    """Provide an empty DuckDB table store."""
    from coursefeedback.feedback.table import TableFeedbackStore
    store = TableFeedbackStore(tmp_path / "feedback.duckdb")
    yield store
    store.close()


@pytest.fixture(params=["local", "table"])
def backend(request):
    """Each backend that can run without a network."""
    if request.param == "local":
        return request.getfixturevalue("local_store")
    return request.getfixturevalue("table_store")


@pytest.fixture
def service(local_store):
    """Provide a service over an empty local store."""
    from coursefeedback.feedback.service import FeedbackService
    return FeedbackService(local_store)


@pytest.fixture
def client(service):
    """Provide a test client for API tests (no seeding)."""
    from fastapi.testclient import TestClient
    from coursefeedback.api.main import create_app
    with TestClient(create_app(service, seed=False)) as c:
        yield c


@pytest.fixture
def valid_input():
    """A submission that passes every rule."""
    return {
        "name": "Jane Doe",
        "course": "Data Structures",
        "rating": 4,
        "comments": "Good pace.",
    }


@pytest.fixture
def make_submission():
    """Build validated submissions, overriding fields of a default input."""
    from coursefeedback.feedback.validation import FeedbackSubmission

    def _make(**overrides):
        data = {
            "name": "Sam Lee",
            "course": "Algorithms",
            "rating": 3,
            "comments": "Solid material.",
        }
        data.update(overrides)
        return FeedbackSubmission(**data)

    return _make

"""
Tests for the feedback service facade.
"""

import asyncio
from unittest.mock import patch

import pytest

from coursefeedback.feedback.errors import PersistenceError, ValidationError
from coursefeedback.feedback.models import utc_now
from coursefeedback.feedback.service import (
    FeedbackService,
    LatestResult,
    SubmitResult,
    create_backend,
)
from coursefeedback.feedback.storage import LocalFeedbackStore


class TestSubmitFeedback:
    """Tests for submit_feedback()."""

    def test_scenario_without_email(self, service, valid_input):
        """Jane Doe's feedback is stored and listed first."""
        result = asyncio.run(service.submit_feedback(valid_input))

        assert isinstance(result, SubmitResult)
        assert result.success is True
        assert result.id == result.record.id
        assert result.record.email is None
        assert result.record.rating == 4

        latest = asyncio.run(service.get_latest_feedback(5))
        assert latest.items[0].course == "Data Structures"

    def test_submit_then_fetch_one(self, service, valid_input):
        before = utc_now()
        asyncio.run(service.submit_feedback(dict(valid_input, email="jane@example.com")))

        record = asyncio.run(service.get_latest_feedback(1)).items[0]
        assert record.id
        assert record.submitted_at >= before
        assert record.email == "jane@example.com"
        assert (record.name, record.course, record.rating, record.comments) == (
            "Jane Doe", "Data Structures", 4, "Good pace.",
        )

    def test_invalid_input_not_stored(self, service, local_store):
        """Empty name fails validation and nothing is written."""
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(service.submit_feedback({"name": "", "course": "X", "rating": 3, "comments": "ok"}))

        assert exc_info.value.errors == {"name": "Name is required"}
        assert local_store.count() == 0
        assert not local_store.feedback_file.exists()

    def test_backend_failure_leaves_store_unchanged(self, service, local_store, valid_input):
        asyncio.run(service.submit_feedback(valid_input))

        with patch.object(local_store, "_save", side_effect=PersistenceError("storage unavailable", "write")):
            with pytest.raises(PersistenceError) as exc_info:
                asyncio.run(service.submit_feedback(dict(valid_input, name="Lost Update")))

        assert exc_info.value.cause == "storage unavailable"
        items = asyncio.run(service.get_latest_feedback(10)).items
        assert len(items) == 1
        assert items[0].name == "Jane Doe"

    def test_submit_to_table_backend(self, table_store, valid_input):
        service = FeedbackService(table_store)
        result = asyncio.run(service.submit_feedback(valid_input))
        assert table_store.fetch_latest(1)[0].id == result.id


class TestGetLatestFeedback:
    """Tests for get_latest_feedback()."""

    def test_empty(self, service):
        result = asyncio.run(service.get_latest_feedback())
        assert isinstance(result, LatestResult)
        assert result.success is True
        assert result.items == []

    def test_limit(self, service, valid_input):
        for i in range(4):
            asyncio.run(service.submit_feedback(dict(valid_input, name=f"Student {i}")))

        assert len(asyncio.run(service.get_latest_feedback(2)).items) == 2
        assert len(asyncio.run(service.get_latest_feedback(0)).items) == 0
        names = [r.name for r in asyncio.run(service.get_latest_feedback(10)).items]
        assert names == ["Student 3", "Student 2", "Student 1", "Student 0"]

    @pytest.mark.parametrize("limit", [-1, 2.5, "5", True])
    def test_bad_limit(self, service, limit):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(service.get_latest_feedback(limit))
        assert "limit" in exc_info.value.errors

    def test_read_failure(self, service, local_store):
        local_store.feedback_file.write_text("garbage")
        with pytest.raises(PersistenceError):
            asyncio.run(service.get_latest_feedback())

    def test_to_dict(self, service, valid_input):
        asyncio.run(service.submit_feedback(valid_input))
        data = asyncio.run(service.get_latest_feedback()).to_dict()
        assert data["success"] is True
        assert data["items"][0]["name"] == "Jane Doe"
        assert "email" not in data["items"][0]


class TestSeedSampleData:
    """Tests for seed_sample_data()."""

    def test_seed_twice(self, service, local_store):
        asyncio.run(service.seed_sample_data())
        asyncio.run(service.seed_sample_data())
        assert local_store.count() == 1

    def test_seed_failure_is_logged_not_raised(self, service, local_store, caplog):
        local_store.feedback_file.write_text("garbage")
        asyncio.run(service.seed_sample_data())
        assert "Could not seed sample feedback" in caplog.text

    def test_seed_undecodable_file_is_logged_not_raised(self, service, local_store, caplog):
        local_store.feedback_file.write_bytes(b"\xff\xfe garbage")
        asyncio.run(service.seed_sample_data())
        assert "Could not seed sample feedback" in caplog.text
        assert local_store.feedback_file.read_bytes() == b"\xff\xfe garbage"

    def test_unexpected_seed_error_is_logged_not_raised(self, service, local_store, caplog):
        with patch.object(local_store, "submit", side_effect=RuntimeError("backend bug")):
            asyncio.run(service.seed_sample_data())
        assert "Unexpected error while seeding" in caplog.text
        assert local_store.count() == 0


class TestHealthAndBackends:
    """Tests for health checks and backend selection."""

    def test_health_ok(self, service):
        health = asyncio.run(service.health_check())
        assert health == {"status": "healthy", "backend": "local"}

    def test_health_error(self, service, local_store):
        local_store.feedback_file.write_text("garbage")
        health = asyncio.run(service.health_check())
        assert health["status"] == "error"
        assert "error" in health

    def test_create_local_backend(self):
        assert isinstance(create_backend("local"), LocalFeedbackStore)

    def test_create_remote_backend(self):
        from coursefeedback.feedback.remote import RemoteFeedbackTable
        with patch("coursefeedback.feedback.remote.REMOTE_TABLE_URL", "https://example.supabase.co"):
            backend = create_backend("remote")
        assert isinstance(backend, RemoteFeedbackTable)
        backend.close()

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_backend("mongo")

    def test_close_releases_backend(self, table_store):
        service = FeedbackService(table_store)
        service.close()
        assert table_store.db._connection is None

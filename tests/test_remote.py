"""
Tests for the hosted table backend (HTTP transport mocked).
"""

from unittest.mock import Mock, patch

import pytest
import requests

from coursefeedback.feedback.errors import PersistenceError
from coursefeedback.feedback.remote import RemoteFeedbackTable


ROW = {
    "id": "6f1c2a9e-0000-4000-8000-000000000001",
    "name": "Jane Doe",
    "email": None,
    "course": "Data Structures",
    "rating": 4,
    "comments": "Good pace.",
    "submitted_at": "2024-01-15T10:00:00.123456+00:00",
}


def mock_response(payload, status_ok=True):
    response = Mock()
    response.json.return_value = payload
    if status_ok:
        response.raise_for_status = Mock()
    else:
        response.raise_for_status = Mock(side_effect=requests.HTTPError("500 Server Error"))
    return response


@pytest.fixture
def table():
    client = RemoteFeedbackTable(base_url="https://example.supabase.co/", api_key="test-key", timeout=5)
    yield client
    client.close()


class TestRemoteSetup:
    """Test client configuration."""

    def test_headers(self, table):
        assert table.session.headers["apikey"] == "test-key"
        assert table.session.headers["Authorization"] == "Bearer test-key"

    def test_table_url(self, table):
        assert table._table_url() == "https://example.supabase.co/rest/v1/feedback"

    def test_requires_base_url(self):
        with patch("coursefeedback.feedback.remote.REMOTE_TABLE_URL", ""):
            with pytest.raises(ValueError):
                RemoteFeedbackTable()


class TestRemoteSubmit:
    """Test inserting through the REST endpoint."""

    @patch("requests.Session.post")
    def test_submit_returns_inserted_row(self, mock_post, table, make_submission):
        mock_post.return_value = mock_response([ROW])

        record = table.submit(make_submission(name="Jane Doe", course="Data Structures", rating=4))

        assert record.id == ROW["id"]
        assert record.email is None
        assert record.submitted_at == ROW["submitted_at"]

        args, kwargs = mock_post.call_args
        assert args[0] == "https://example.supabase.co/rest/v1/feedback"
        assert kwargs["headers"]["Prefer"] == "return=representation"
        assert kwargs["timeout"] == 5
        # Server generates id and timestamp; absent email is not sent
        assert set(kwargs["json"]) == {"name", "course", "rating", "comments"}

    @patch("requests.Session.post")
    def test_network_error(self, mock_post, table, make_submission):
        mock_post.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(PersistenceError) as exc_info:
            table.submit(make_submission())
        assert "Connection refused" in exc_info.value.cause

    @patch("requests.Session.post")
    def test_http_error(self, mock_post, table, make_submission):
        mock_post.return_value = mock_response({"message": "boom"}, status_ok=False)
        with pytest.raises(PersistenceError):
            table.submit(make_submission())

    @patch("requests.Session.post")
    def test_unexpected_payload(self, mock_post, table, make_submission):
        mock_post.return_value = mock_response([])
        with pytest.raises(PersistenceError):
            table.submit(make_submission())

    @patch("requests.Session.post")
    def test_not_json(self, mock_post, table, make_submission):
        response = mock_response(None)
        response.json.side_effect = ValueError("Expecting value")
        mock_post.return_value = response
        with pytest.raises(PersistenceError):
            table.submit(make_submission())


class TestRemoteFetchLatest:
    """Test reading through the REST endpoint."""

    @patch("requests.Session.get")
    def test_server_side_order_and_limit(self, mock_get, table):
        newer = dict(ROW, id="b", submitted_at="2024-02-01T00:00:00+00:00")
        mock_get.return_value = mock_response([newer, ROW])

        items = table.fetch_latest(2)

        assert [item.id for item in items] == ["b", ROW["id"]]
        params = mock_get.call_args.kwargs["params"]
        assert params["order"] == "submitted_at.desc"
        assert params["limit"] == 2

    @patch("requests.Session.get")
    def test_timeout_error(self, mock_get, table):
        mock_get.side_effect = requests.Timeout("timed out")
        with pytest.raises(PersistenceError):
            table.fetch_latest()

    @patch("requests.Session.get")
    def test_malformed_row(self, mock_get, table):
        mock_get.return_value = mock_response([{"id": "x"}])
        with pytest.raises(PersistenceError):
            table.fetch_latest()

    @pytest.mark.parametrize("submitted_at", [None, 1700000000])
    @patch("requests.Session.get")
    def test_timestamp_wrong_type(self, mock_get, table, submitted_at):
        mock_get.return_value = mock_response([dict(ROW, submitted_at=submitted_at)])
        with pytest.raises(PersistenceError):
            table.fetch_latest()

    @patch("requests.Session.get")
    def test_too_many_rows(self, mock_get, table):
        """A server ignoring the limit is an error, not a silent truncation."""
        mock_get.return_value = mock_response([ROW, ROW])
        with pytest.raises(PersistenceError):
            table.fetch_latest(1)

    def test_negative_limit(self, table):
        with pytest.raises(ValueError):
            table.fetch_latest(-2)

"""Tests for backend error classification."""

import pytest

from agentloop import strings
from agentloop.errors import BackendError, ErrorKind, classify_backend_error


class TestBackendErrorKind:
    @pytest.mark.parametrize(
        "status,expected",
        [
            (429, ErrorKind.QUOTA_EXCEEDED),
            (401, ErrorKind.AUTH_FAILURE),
            (403, ErrorKind.AUTH_FAILURE),
            (404, ErrorKind.AUTH_FAILURE),
            (500, ErrorKind.TRANSIENT_BACKEND_FAILURE),
            (502, ErrorKind.TRANSIENT_BACKEND_FAILURE),
        ],
    )
    def test_kind_from_status(self, status, expected):
        assert BackendError("failed", status=status).kind == expected

    def test_kind_from_message_without_status(self):
        assert BackendError("You exceeded your current quota").kind == ErrorKind.QUOTA_EXCEEDED
        assert BackendError("Incorrect API key provided").kind == ErrorKind.AUTH_FAILURE
        assert BackendError("connection reset").kind == ErrorKind.TRANSIENT_BACKEND_FAILURE

    def test_explicit_kind_wins(self):
        error = BackendError("quota", status=429, kind=ErrorKind.TRANSIENT_BACKEND_FAILURE)

        assert error.kind == ErrorKind.TRANSIENT_BACKEND_FAILURE

    def test_repr_includes_status_and_kind(self):
        text = repr(BackendError("slow down", status=429))

        assert "429" in text
        assert "quota_exceeded" in text


class TestClassifyBackendError:
    def test_quota(self):
        classification = classify_backend_error(BackendError("limit", status=429))

        assert classification.kind == ErrorKind.QUOTA_EXCEEDED
        assert classification.status == 429
        assert classification.user_message == strings.get("ERROR_API_KEY_QUOTA")

    def test_missing_model_access(self):
        classification = classify_backend_error(BackendError("no such model", status=404))

        assert classification.message_key == "ERROR_API_KEY_NO_MODEL_ACCESS"

    def test_rejected_key(self):
        classification = classify_backend_error(BackendError("bad key", status=401))

        assert classification.kind == ErrorKind.AUTH_FAILURE
        assert classification.message_key == "ERROR_ACCESSING_API_KEY"

    def test_server_error(self):
        classification = classify_backend_error(BackendError("boom", status=500))

        assert classification.kind == ErrorKind.TRANSIENT_BACKEND_FAILURE
        assert classification.message_key == "ERROR_ACCESSING_API_KEY"

    def test_non_backend_error_is_unclassified(self):
        classification = classify_backend_error(ValueError("bad json"))

        assert classification.kind == ErrorKind.UNCLASSIFIED
        assert classification.status is None
        assert classification.user_message == strings.get("ERROR_RETRIEVE_INITIAL_TASKS")
        assert classification.to_dict() == {
            "kind": "unclassified",
            "status": None,
            "message_key": "ERROR_RETRIEVE_INITIAL_TASKS",
            "detail": "bad json",
        }

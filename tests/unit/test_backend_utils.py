"""Tests for backend response and error helpers."""

from types import SimpleNamespace

from appwrite.exception import AppwriteException

from lazyappwrite.backend.utils import (
    field,
    is_conflict,
    is_not_found,
    is_retryable,
    items,
    remote_kind,
    status_code,
)
from tests.helpers import remote_column


class TestField:
    """Tests for reading response fields."""

    def test_field_reads_dicts(self):
        assert field({"$permissions": ["a"]}, "$permissions") == ["a"]
        assert field({}, "missing", 5) == 5

    def test_field_reads_models(self):
        """Model objects drop the $ prefix."""
        model = SimpleNamespace(permissions=["a"], status="available")
        assert field(model, "$permissions") == ["a"]
        assert field(model, "status") == "available"
        assert field(model, "missing", "x") == "x"

    def test_field_of_none(self):
        assert field(None, "anything", 1) == 1

    def test_items_reads_list_responses(self):
        assert items({"columns": [1, 2]}, "columns") == [1, 2]
        assert items({"total": 0}, "columns") == []


class TestErrorClassification:
    """Tests for status code classification."""

    def test_status_code_from_exception(self):
        assert status_code(AppwriteException("x", 404)) == 404
        assert status_code(AppwriteException("x")) is None
        assert status_code(ValueError("x")) is None

    def test_status_code_from_response_body(self):
        error = AppwriteException("x", None, None, {"code": 429})
        assert status_code(error) == 429

    def test_not_found_and_conflict(self):
        assert is_not_found(AppwriteException("x", 404))
        assert not is_not_found(AppwriteException("x", 409))
        assert is_conflict(AppwriteException("x", 409))

    def test_retryable_codes(self):
        """429, 5xx and code-less errors retry; other codes do not."""
        assert is_retryable(AppwriteException("x", 429))
        assert is_retryable(AppwriteException("x", 500))
        assert is_retryable(AppwriteException("x", 503))
        assert is_retryable(ConnectionError("reset"))
        assert not is_retryable(AppwriteException("x", 400))
        assert not is_retryable(AppwriteException("x", 401))
        assert not is_retryable(AppwriteException("x", 404))
        assert not is_retryable(AppwriteException("x", 409))


class TestRemoteKind:
    """Tests for normalising backend column kinds."""

    def test_formatted_strings(self):
        assert remote_kind(remote_column("email", "e")) == "email"
        assert remote_kind(remote_column("url", "u")) == "url"
        assert remote_kind(remote_column("ip", "i")) == "ip"
        assert remote_kind(remote_column("enum", "r")) == "enum"

    def test_plain_string(self):
        assert remote_kind(remote_column("string", "s")) == "string"

    def test_aliases(self):
        assert remote_kind(remote_column("float", "f")) == "float"
        assert remote_kind(remote_column("line", "l")) == "line"

    def test_passthrough(self):
        assert remote_kind(remote_column("integer", "n")) == "integer"
        assert remote_kind(remote_column("relationship", "r")) == "relationship"

"""Tests for error codes and exceptions."""

from unleash_client import (
    BackupUnavailable,
    DecodeError,
    ErrorCode,
    TransportError,
    UnleashError,
)


class TestErrors:
    """Tests for the error taxonomy."""

    def test_codes(self):
        assert TransportError("x").code == ErrorCode.NETWORK_ERROR
        assert DecodeError("x").code == ErrorCode.PARSE_FAILED
        assert BackupUnavailable("x").code == ErrorCode.BACKUP_UNAVAILABLE

    def test_hierarchy(self):
        for error in (TransportError("x"), DecodeError("x"), BackupUnavailable("x")):
            assert isinstance(error, UnleashError)

    def test_message(self):
        error = TransportError("Feature endpoint returned 502", status_code=502)
        assert error.message == "Feature endpoint returned 502"
        assert error.status_code == 502
        assert str(error) == "[NETWORK_ERROR] Feature endpoint returned 502"

    def test_base_error_is_not_a_network_error(self):
        error = UnleashError("unexpected")
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert str(error) == "[INTERNAL_ERROR] unexpected"

    def test_error_code_is_string(self):
        assert ErrorCode.PARSE_FAILED == "PARSE_FAILED"

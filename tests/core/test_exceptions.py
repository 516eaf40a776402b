"""Tests for daybook.core.exceptions."""

import pytest

from daybook.core.exceptions import (
    APIError,
    AuthenticationError,
    CacheError,
    ConfigurationError,
    DaybookError,
    EntryValidationError,
    TransportError,
    UploadError,
)


def test_hierarchy():
    """All exceptions should inherit from DaybookError."""
    for exc_cls in [
        ConfigurationError,
        EntryValidationError,
        APIError,
        TransportError,
        UploadError,
        CacheError,
        AuthenticationError,
    ]:
        assert issubclass(exc_cls, DaybookError)


def test_remote_errors_are_api_errors():
    for exc_cls in [TransportError, UploadError, AuthenticationError]:
        assert issubclass(exc_cls, APIError)


def test_validation_error_is_value_error():
    assert issubclass(EntryValidationError, ValueError)


def test_catch_base():
    with pytest.raises(DaybookError):
        raise UploadError("upload of a.png failed (413)")

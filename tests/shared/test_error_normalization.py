"""Tests for mapping auditable exceptions onto shared error details."""

from __future__ import annotations

from pathlib import Path

from packages.auditable.errors import (
    AuditableError,
    CacheWriteError,
    InvalidMappingError,
    NoSessionFoundError,
)
from packages.auditable_shared.errors import ErrorCategory, codes, exception_to_error


def test_invalid_mapping_maps_to_validation() -> None:
    error = exception_to_error(
        InvalidMappingError("Collections are not supported", class_name="shop.Basket")
    )

    assert error.category is ErrorCategory.VALIDATION
    assert error.code == codes.INVALID_MAPPING
    assert error.message == "Collections are not supported"
    assert error.metadata == {
        "exception_type": "InvalidMappingError",
        "class_name": "shop.Basket",
    }
    assert error.retryable is False


def test_no_session_maps_to_not_found() -> None:
    error = exception_to_error(NoSessionFoundError("no session"))

    assert error.category is ErrorCategory.NOT_FOUND
    assert error.code == codes.NO_SESSION


def test_cache_write_failure_maps_to_retryable_dependency_error() -> None:
    error = exception_to_error(CacheWriteError("disk full", path=Path("/tmp/x.json")))

    assert error.category is ErrorCategory.DEPENDENCY
    assert error.code == codes.CACHE_WRITE_FAILED
    assert error.retryable is True
    assert error.metadata["path"] == "/tmp/x.json"


def test_generic_exceptions_fall_back_by_type() -> None:
    assert exception_to_error(ValueError("bad")).code == codes.INVALID_ARGUMENT
    assert exception_to_error(OSError("io")).category is ErrorCategory.DEPENDENCY
    unexpected = exception_to_error(RuntimeError())
    assert unexpected.code == codes.UNEXPECTED_EXCEPTION
    assert unexpected.message == "unexpected exception"


def test_error_detail_serializes_to_plain_dict() -> None:
    payload = exception_to_error(NoSessionFoundError("no session")).as_dict()

    assert payload == {
        "code": "NO_SESSION",
        "message": "no session",
        "category": "not_found",
        "retryable": False,
        "metadata": {"exception_type": "NoSessionFoundError"},
    }


def test_auditable_errors_share_a_base_and_message() -> None:
    error = InvalidMappingError("broken", class_name="shop.Order")

    assert isinstance(error, AuditableError)
    assert str(error) == "broken"

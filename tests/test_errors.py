# ruff: noqa: E501
from __future__ import annotations

import pytest
from sqlalchemy import exc as sa_exc

from statement_ingest.errors import (
    MSG_DUPLICATE_HASH,
    MSG_DUPLICATE_OTHER,
    MSG_OVERLOADED,
    MSG_TOO_LARGE,
    RETRY_HINT,
    ClassifiedError,
    ErrorType,
    UploadTooLargeError,
    check_upload_size,
    classify_database_error,
    classify_error,
)

# ---- Helpers ----------------------------------------------------------------


class _Diag:
    def __init__(self, constraint_name: str | None) -> None:
        self.constraint_name = constraint_name


class FakeDriverError(Exception):
    """Shape of a psycopg error: ``sqlstate`` plus ``diag.constraint_name``."""

    def __init__(self, message: str, sqlstate: str, constraint: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate
        self.diag = _Diag(constraint)


def _wrapped(cls: type[sa_exc.DBAPIError], message: str, sqlstate: str, constraint=None):
    return cls("INSERT INTO expenses ...", {}, FakeDriverError(message, sqlstate, constraint))


# ---- SQLSTATE ----------------------------------------------------------------


def test_unique_violation_on_hash_is_not_retryable() -> None:
    err = classify_database_error(
        _wrapped(sa_exc.IntegrityError, "duplicate key value", "23505", "unique_hash")
    )

    assert err.type == ErrorType.DUPLICATE_KEY
    assert err.retryable is False
    assert err.technical_detail.startswith("23505: ")


def test_other_unique_violation_is_retryable() -> None:
    err = classify_database_error(
        _wrapped(sa_exc.IntegrityError, "duplicate key value", "23505", "expenses_pkey")
    )

    assert err.type == ErrorType.DUPLICATE_KEY
    assert err.retryable is True


@pytest.mark.parametrize(
    ("sqlstate", "expected_type", "retryable"),
    [
        ("57014", ErrorType.TIMEOUT, True),
        ("08006", ErrorType.CONNECTION, True),
        ("53300", ErrorType.CONNECTION, True),
        ("57P01", ErrorType.CONNECTION, True),
        ("40001", ErrorType.CONSTRAINT, True),
        ("40P01", ErrorType.CONSTRAINT, True),
        ("23503", ErrorType.CONSTRAINT, False),
        ("23502", ErrorType.VALIDATION, False),
        ("23514", ErrorType.VALIDATION, False),
    ],
)
def test_sqlstate_mapping(sqlstate: str, expected_type: ErrorType, retryable: bool) -> None:
    err = classify_database_error(_wrapped(sa_exc.DBAPIError, "boom", sqlstate))

    assert (err.type, err.retryable) == (expected_type, retryable)


def test_pgcode_attribute_is_honored() -> None:
    class LegacyDriverError(Exception):
        pgcode = "08001"

    err = classify_database_error(
        sa_exc.OperationalError("SELECT 1", {}, LegacyDriverError("could not connect"))
    )

    assert err.type == ErrorType.CONNECTION


# ---- Exception classes without SQLSTATE -------------------------------------


def test_sqlite_unique_failure_on_hash() -> None:
    err = classify_database_error(
        sa_exc.IntegrityError(
            "INSERT", {}, Exception("UNIQUE constraint failed: expenses.content_hash")
        )
    )

    assert err.type == ErrorType.DUPLICATE_KEY
    assert err.retryable is False


@pytest.mark.parametrize(
    ("exc", "expected_type", "retryable"),
    [
        (sa_exc.IntegrityError("INSERT", {}, Exception("CHECK constraint failed")), ErrorType.CONSTRAINT, False),
        (sa_exc.DataError("INSERT", {}, Exception("value too long")), ErrorType.VALIDATION, False),
        (sa_exc.OperationalError("SELECT", {}, Exception("database is locked")), ErrorType.CONNECTION, True),
        (sa_exc.InterfaceError("SELECT", {}, Exception("closed")), ErrorType.CONNECTION, True),
        (sa_exc.TimeoutError("QueuePool limit reached"), ErrorType.TIMEOUT, True),
        (ValueError("weird"), ErrorType.UNKNOWN, False),
    ],
)
def test_exception_class_mapping(exc: BaseException, expected_type: ErrorType, retryable: bool) -> None:
    err = classify_database_error(exc)

    assert (err.type, err.retryable) == (expected_type, retryable)


# ---- Generic classification --------------------------------------------------


@pytest.mark.parametrize(
    ("exc", "expected_type", "retryable"),
    [
        (TimeoutError("slow"), ErrorType.TIMEOUT, True),
        (ConnectionResetError("reset"), ErrorType.CONNECTION, True),
        (OSError("disk"), ErrorType.CONNECTION, True),
        (RuntimeError("?"), ErrorType.UNKNOWN, True),
        (sa_exc.DataError("INSERT", {}, Exception("bad")), ErrorType.VALIDATION, False),
    ],
)
def test_classify_error(exc: BaseException, expected_type: ErrorType, retryable: bool) -> None:
    err = classify_error(exc)

    assert (err.type, err.retryable) == (expected_type, retryable)


def test_unknown_error_detail_names_the_class() -> None:
    assert classify_error(RuntimeError("kaboom")).technical_detail == "RuntimeError: kaboom"


# ---- User messages -----------------------------------------------------------


def test_duplicate_on_hash_tells_the_user_about_duplicates() -> None:
    err = classify_database_error(
        _wrapped(sa_exc.IntegrityError, "duplicate key value", "23505", "uq_expenses_content_hash")
    )

    assert err.user_message == MSG_DUPLICATE_HASH
    assert err.display_message() == MSG_DUPLICATE_HASH
    assert "23505" not in err.user_message


def test_retryable_errors_suggest_a_retry() -> None:
    other = classify_database_error(_wrapped(sa_exc.IntegrityError, "duplicate key value", "23505", "expenses_pkey"))
    overloaded = classify_database_error(_wrapped(sa_exc.OperationalError, "too many connections", "53300"))

    assert other.user_message == MSG_DUPLICATE_OTHER
    assert overloaded.display_message() == MSG_OVERLOADED + RETRY_HINT


@pytest.mark.parametrize(
    "exc",
    [
        sa_exc.DataError("INSERT", {}, Exception("bad")),
        sa_exc.OperationalError("SELECT", {}, Exception("database is locked")),
        ConnectionResetError("reset"),
        RuntimeError("?"),
    ],
)
def test_every_classification_carries_a_user_message(exc: BaseException) -> None:
    assert classify_error(exc).user_message


def test_oversized_upload_has_its_own_message() -> None:
    err = classify_error(UploadTooLargeError(20, 10))

    assert (err.type, err.retryable, err.user_message) == (ErrorType.VALIDATION, False, MSG_TOO_LARGE)


def test_missing_user_message_falls_back_to_generic_text() -> None:
    err = ClassifiedError(ErrorType.UNKNOWN, "boom", retryable=False)

    assert err.display_message().startswith("Wystąpił nieoczekiwany błąd.")


# ---- Upload size -------------------------------------------------------------


def test_check_upload_size() -> None:
    check_upload_size(100, 100, 100)

    with pytest.raises(UploadTooLargeError) as excinfo:
        check_upload_size(10, 101, 100)
    assert (excinfo.value.size, excinfo.value.limit) == (101, 100)

    # A lying declared size is caught as well.
    with pytest.raises(UploadTooLargeError):
        check_upload_size(5_000_000_000, 10, 100)

"""Error taxonomy for the ingestion pipeline.

Persistence failures are fatal to an upload; they are mapped to a
:class:`ClassifiedError` so the caller can decide whether suggesting a retry
makes sense. PostgreSQL errors are classified by SQLSTATE (read from the
DBAPI exception wrapped by SQLAlchemy); other drivers fall back to the
SQLAlchemy exception class.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy import exc as sa_exc


class ErrorType(StrEnum):
    DUPLICATE_KEY = "duplicate_key"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    CONSTRAINT = "constraint"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    """A classified failure.

    ``user_message`` is the Polish text shown to the person who uploaded the
    statement; ``technical_detail`` goes to logs and diagnostics only.
    """

    type: ErrorType
    technical_detail: str
    retryable: bool
    user_message: str = ""

    def display_message(self) -> str:
        """``user_message`` with a retry suggestion appended when retrying may help."""

        message = self.user_message or MSG_UNKNOWN
        return message + RETRY_HINT if self.retryable else message


MSG_DUPLICATE_HASH = "Te transakcje już istnieją w bazie (wykryto duplikaty)."
MSG_DUPLICATE_OTHER = "Niektóre dane już istnieją w bazie. Spróbuj ponownie."
MSG_CONNECTION = "Problem z połączeniem do bazy danych. Spróbuj za chwilę."
MSG_TIMEOUT = "Operacja trwała za długo i została przerwana. Spróbuj z mniejszym plikiem."
MSG_CONFLICT = "Konflikt przy zapisie danych. Spróbuj ponownie za chwilę."
MSG_OVERLOADED = "Serwer jest przeciążony. Spróbuj ponownie za kilka minut."
MSG_UNAVAILABLE = "Serwer jest chwilowo niedostępny. Spróbuj za kilka minut."
MSG_FOREIGN_KEY = "Błąd spójności danych. Skontaktuj się z administratorem."
MSG_MISSING_DATA = "Brakuje wymaganych danych w transakcjach. Sprawdź plik CSV."
MSG_INVALID_DATA = "Nieprawidłowe dane w transakcjach. Sprawdź format pliku CSV."
MSG_NETWORK = "Problem z połączeniem sieciowym. Sprawdź internet i spróbuj ponownie."
MSG_TOO_LARGE = "Plik jest za duży. Podziel wyciąg na mniejsze części."
MSG_UNKNOWN = "Wystąpił nieoczekiwany błąd. Spróbuj ponownie lub skontaktuj się z administratorem."
RETRY_HINT = " Możesz spróbować ponownie."


class UploadTooLargeError(ValueError):
    """Raised when an upload exceeds the configured size cap."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"upload of {size} bytes exceeds the limit of {limit} bytes")
        self.size = size
        self.limit = limit


def check_upload_size(declared_size: int, actual_size: int, limit: int) -> None:
    """Raise :class:`UploadTooLargeError` when either size exceeds ``limit``."""

    size = max(declared_size, actual_size)
    if size > limit:
        raise UploadTooLargeError(size, limit)


# ---------------------------------------------------------------------------
# Database errors
# ---------------------------------------------------------------------------


def _sqlstate(exc: BaseException) -> str | None:
    orig = getattr(exc, "orig", None) or exc
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if isinstance(code, str) and code:
            return code
    return None


def _constraint_name(exc: BaseException) -> str:
    orig = getattr(exc, "orig", None) or exc
    diag = getattr(orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    return name if isinstance(name, str) else ""


def _from_sqlstate(code: str, exc: BaseException) -> ClassifiedError | None:
    detail = f"{code}: {exc}"
    if code == "23505":
        constraint = _constraint_name(exc)
        on_hash = "hash" in constraint.lower() or "content_hash" in str(exc).lower()
        message = MSG_DUPLICATE_HASH if on_hash else MSG_DUPLICATE_OTHER
        return ClassifiedError(
            ErrorType.DUPLICATE_KEY, detail, retryable=not on_hash, user_message=message
        )
    if code == "57014":
        return ClassifiedError(ErrorType.TIMEOUT, detail, retryable=True, user_message=MSG_TIMEOUT)
    if code.startswith("08"):
        return ClassifiedError(
            ErrorType.CONNECTION, detail, retryable=True, user_message=MSG_CONNECTION
        )
    if code.startswith("53"):
        return ClassifiedError(
            ErrorType.CONNECTION, detail, retryable=True, user_message=MSG_OVERLOADED
        )
    if code.startswith("57"):
        return ClassifiedError(
            ErrorType.CONNECTION, detail, retryable=True, user_message=MSG_UNAVAILABLE
        )
    if code in ("40001", "40P01"):
        return ClassifiedError(
            ErrorType.CONSTRAINT, detail, retryable=True, user_message=MSG_CONFLICT
        )
    if code == "23503":
        return ClassifiedError(
            ErrorType.CONSTRAINT, detail, retryable=False, user_message=MSG_FOREIGN_KEY
        )
    if code == "23502":
        return ClassifiedError(
            ErrorType.VALIDATION, detail, retryable=False, user_message=MSG_MISSING_DATA
        )
    if code == "23514":
        return ClassifiedError(
            ErrorType.VALIDATION, detail, retryable=False, user_message=MSG_INVALID_DATA
        )
    return None


def classify_database_error(exc: BaseException) -> ClassifiedError:
    """Map a database exception to a :class:`ClassifiedError`."""

    code = _sqlstate(exc)
    if code is not None:
        classified = _from_sqlstate(code, exc)
        if classified is not None:
            return classified

    detail = str(exc)
    if isinstance(exc, sa_exc.TimeoutError):
        return ClassifiedError(ErrorType.TIMEOUT, detail, retryable=True, user_message=MSG_TIMEOUT)
    if isinstance(exc, sa_exc.IntegrityError):
        lowered = detail.lower()
        if "unique" in lowered and "hash" in lowered:
            return ClassifiedError(
                ErrorType.DUPLICATE_KEY, detail, retryable=False, user_message=MSG_DUPLICATE_HASH
            )
        return ClassifiedError(
            ErrorType.CONSTRAINT, detail, retryable=False, user_message=MSG_FOREIGN_KEY
        )
    if isinstance(exc, sa_exc.DataError):
        return ClassifiedError(
            ErrorType.VALIDATION, detail, retryable=False, user_message=MSG_INVALID_DATA
        )
    if isinstance(exc, (sa_exc.OperationalError, sa_exc.InterfaceError)):
        return ClassifiedError(
            ErrorType.CONNECTION, detail, retryable=True, user_message=MSG_CONNECTION
        )
    return ClassifiedError(ErrorType.UNKNOWN, detail, retryable=False, user_message=MSG_UNKNOWN)


def classify_error(exc: BaseException) -> ClassifiedError:
    """Classify any pipeline exception; unrecognized errors are retryable ``unknown``."""

    if isinstance(exc, sa_exc.SQLAlchemyError):
        return classify_database_error(exc)
    detail = f"{exc.__class__.__name__}: {exc}"
    if isinstance(exc, UploadTooLargeError):
        return ClassifiedError(
            ErrorType.VALIDATION, detail, retryable=False, user_message=MSG_TOO_LARGE
        )
    if isinstance(exc, TimeoutError):
        return ClassifiedError(ErrorType.TIMEOUT, detail, retryable=True, user_message=MSG_TIMEOUT)
    if isinstance(exc, (ConnectionError, OSError)):
        return ClassifiedError(
            ErrorType.CONNECTION, detail, retryable=True, user_message=MSG_NETWORK
        )
    return ClassifiedError(ErrorType.UNKNOWN, detail, retryable=True, user_message=MSG_UNKNOWN)


__all__ = [
    "MSG_CONNECTION",
    "MSG_DUPLICATE_HASH",
    "MSG_DUPLICATE_OTHER",
    "MSG_OVERLOADED",
    "MSG_TOO_LARGE",
    "MSG_UNKNOWN",
    "RETRY_HINT",
    "ClassifiedError",
    "ErrorType",
    "UploadTooLargeError",
    "check_upload_size",
    "classify_database_error",
    "classify_error",
]

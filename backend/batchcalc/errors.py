"""Error taxonomy shared by the production services and their routes."""

from __future__ import annotations

import logging
import re

from sqlalchemy.exc import IntegrityError

# purpose: classify domain and store failures into client-facing categories
# inputs: service-level failures, SQLAlchemy IntegrityError instances
# outputs: BatchCalcError subclasses carrying an HTTP status
# status: active

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"
_NOT_NULL_VIOLATION = "23502"
_CHECK_VIOLATION = "23514"

_PG_DETAIL_FIELD = re.compile(r"\((.+?)\)")
_SQLITE_COLUMN = re.compile(r"constraint failed: \w+\.(\w+)")


class BatchCalcError(RuntimeError):
    """Base error for formulation and production flows."""

    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
        self.message = message

    @property
    def detail(self):
        return self.message


class ValidationError(BatchCalcError):
    """Raised when required input is missing or malformed."""

    status_code = 400


class InvalidSize(ValidationError):
    """Raised when a target batch size is missing, non-numeric, zero, or negative."""


class NotFound(BatchCalcError):
    """Raised when a referenced formulation, batch, or line is absent."""

    status_code = 404


def _join_choices(choices) -> str:
    if len(choices) <= 1:
        return "".join(choices)
    if len(choices) == 2:
        return f"{choices[0]} or {choices[1]}"
    return ", ".join(choices[:-1]) + f", or {choices[-1]}"


class ProductionNotAllowed(BatchCalcError):
    """Raised when a formulation's lifecycle status blocks batch creation."""

    status_code = 400

    def __init__(self, current_status: str, allowed_statuses) -> None:
        super().__init__(f"Cannot create batch for {current_status} formulation")
        self.current_status = current_status
        self.allowed_statuses = list(allowed_statuses)

    @property
    def detail(self):
        return {
            "error": self.message,
            "message": f"Only {_join_choices(self.allowed_statuses)} formulations can be produced",
            "current_status": self.current_status,
            "allowed_statuses": self.allowed_statuses,
        }


class ConflictError(BatchCalcError):
    """Raised when the store reports a uniqueness or referential violation."""

    status_code = 409


class InternalError(BatchCalcError):
    """Raised for unexpected failures; never exposes internal detail."""

    status_code = 500


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def classify_integrity_error(exc: IntegrityError) -> BatchCalcError:
    """Map a store constraint violation onto the error taxonomy."""

    code = _sqlstate(exc)
    text = str(getattr(exc, "orig", exc))

    if code == _UNIQUE_VIOLATION or "UNIQUE constraint failed" in text:
        field = "value"
        diag = getattr(getattr(exc, "orig", None), "diag", None)
        detail = getattr(diag, "message_detail", None) or ""
        match = _PG_DETAIL_FIELD.search(detail) or _SQLITE_COLUMN.search(text)
        if match:
            field = match.group(1)
        error: BatchCalcError = ConflictError(f"A record with that {field} already exists")
    elif code == _FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in text:
        error = ConflictError(
            "This record is referenced by another record and cannot be modified"
        )
    elif code == _NOT_NULL_VIOLATION or "NOT NULL constraint failed" in text:
        column = getattr(getattr(getattr(exc, "orig", None), "diag", None), "column_name", None)
        if column is None:
            match = _SQLITE_COLUMN.search(text)
            column = match.group(1) if match else "unknown"
        error = ValidationError(f"Missing required field: {column}")
    elif code == _CHECK_VIOLATION or "CHECK constraint failed" in text:
        error = ValidationError("A value is outside its allowed range")
    else:
        logger.error("Unclassified integrity error: %s", text)
        return InternalError()

    logger.warning("Store constraint violation mapped to %s: %s", type(error).__name__, text)
    return error

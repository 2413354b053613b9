"""Shared helpers for translating path input and service failures."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..errors import BatchCalcError


def parse_uuid(value: str, *, label: str = "ID") -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} format - expected UUID",
        ) from exc


def http_error(db: Session, exc: BatchCalcError) -> HTTPException:
    """Roll back the request session and build the matching HTTP error."""

    db.rollback()
    return HTTPException(status_code=exc.status_code, detail=exc.detail)

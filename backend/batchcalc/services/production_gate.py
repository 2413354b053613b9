"""Lifecycle check deciding which formulations may originate a batch."""

from __future__ import annotations

import logging

from ..errors import ProductionNotAllowed

logger = logging.getLogger(__name__)

# ordered for error payloads
PRODUCTION_ALLOWED_STATUSES: tuple[str, ...] = ("finalized", "freeze", "archived")


def is_production_allowed(status: str | None) -> bool:
    return status in PRODUCTION_ALLOWED_STATUSES


def ensure_production_allowed(formulation) -> None:
    """Raise ProductionNotAllowed unless the formulation's status is on the allow-list."""

    if is_production_allowed(formulation.status):
        return
    logger.warning(
        "Batch creation rejected for formulation %s in status %s",
        formulation.id,
        formulation.status,
    )
    raise ProductionNotAllowed(formulation.status, PRODUCTION_ALLOWED_STATUSES)

"""Percentage-recipe scaling used for previews and batch planning."""

from __future__ import annotations

import math
from dataclasses import dataclass
from uuid import UUID

from ..errors import InvalidSize, ValidationError

# purpose: turn a percentage formulation plus a target size into concrete per-line amounts
# inputs: formulation snapshot (base_batch_size, unit, lines with percentage/phase/ingredient)
# outputs: ScaleResult with scale factor, original and planned amounts
# status: active


@dataclass(frozen=True, slots=True)
class ScaledLine:
    ingredient_id: UUID
    ingredient_name: str | None
    inci_name: str | None
    percentage: float
    phase: str | None
    unit: str
    original_amount: float
    planned_amount: float


@dataclass(frozen=True, slots=True)
class ScaleResult:
    base_batch_size: float
    target_size: float
    scale_factor: float
    unit: str
    lines: tuple[ScaledLine, ...]


def parse_target_size(raw, *, field: str = "batch_size") -> float:
    """Return ``raw`` as a finite positive float or raise InvalidSize."""

    message = f"{field} is required and must be a positive number"
    if raw is None or isinstance(raw, bool):
        raise InvalidSize(message)
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            raise InvalidSize(message)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidSize(message) from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidSize(message)
    return value


def planned_amount(percentage: float, target_size: float) -> float:
    # no rounding; the value is persisted as computed
    return (percentage / 100) * target_size


def scale(formulation, target_size, *, field: str = "batch_size") -> ScaleResult:
    """Scale every formulation line to ``target_size``.

    Pure computation: nothing is read from or written to the store, so the
    preview endpoint can call this as often as it likes.
    """

    size = parse_target_size(target_size, field=field)
    base = formulation.base_batch_size
    if base is None or not base > 0:
        raise ValidationError("Formulation base_batch_size must be a positive number")

    unit = formulation.unit or "g"
    lines = tuple(
        ScaledLine(
            ingredient_id=line.ingredient_id,
            ingredient_name=line.ingredient.name if line.ingredient is not None else None,
            inci_name=line.ingredient.inci_name if line.ingredient is not None else None,
            percentage=line.percentage,
            phase=line.phase,
            unit=unit,
            original_amount=planned_amount(line.percentage, base),
            planned_amount=planned_amount(line.percentage, size),
        )
        for line in formulation.ordered_lines
    )
    return ScaleResult(
        base_batch_size=base,
        target_size=size,
        scale_factor=size / base,
        unit=unit,
        lines=lines,
    )

"""Read-time deviation metrics for batch lines."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Variance:
    variance: float | None
    variance_percent: float | None


def compute_variance(planned_amount: float, actual_amount: float | None) -> Variance:
    """Derive variance from the stored planned/actual pair.

    ``variance_percent`` is 0 whenever nothing was planned for the line, and
    otherwise stays null until an actual amount has been recorded.
    """

    if actual_amount is None or planned_amount is None:
        variance = None
    else:
        variance = actual_amount - planned_amount
    if planned_amount is None or planned_amount <= 0:
        variance_percent = 0.0
    elif variance is None:
        variance_percent = None
    else:
        variance_percent = round(variance / planned_amount * 100, 2)
    return Variance(variance=variance, variance_percent=variance_percent)

"""Vote statistics shown once a round is revealed."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class VoteSummary:
    total: int
    average: float | None
    breakdown: dict[str, int] = field(default_factory=dict)


def _numeric(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def summarize_votes(votes: Mapping[str, str]) -> VoteSummary:
    """Count, numeric average and per-card breakdown of *votes*.

    Cards such as ``"?"`` and ``"☕"`` count toward ``total`` and the
    breakdown but not the average.  ``average`` is rounded to one decimal
    and is None when no card is numeric.
    """
    breakdown: dict[str, int] = {}
    numbers: list[float] = []
    for value in votes.values():
        breakdown[value] = breakdown.get(value, 0) + 1
        number = _numeric(value)
        if number is not None:
            numbers.append(number)

    average = round(sum(numbers) / len(numbers), 1) if numbers else None
    return VoteSummary(total=len(votes), average=average, breakdown=breakdown)

from __future__ import annotations

import re
from dataclasses import dataclass

_NUMBER_RE = re.compile(r"\d{1,3}(?:,\d{3})+(?!\d)|\d+")


@dataclass(frozen=True)
class CalorieEstimate:
    """First integer found in a model reply.

    ``parsed`` is False when the reply held no digits; ``kcal`` is then 0,
    which would otherwise be indistinguishable from an empty plate.
    """

    kcal: int
    parsed: bool


def parse_calorie_estimate(text: str | None) -> CalorieEstimate:
    match = _NUMBER_RE.search(text or "")
    if not match:
        return CalorieEstimate(kcal=0, parsed=False)
    return CalorieEstimate(kcal=int(match.group(0).replace(",", "")), parsed=True)

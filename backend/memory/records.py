from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

METRIC_FIELDS = ("weight", "fat", "exercise")


def _float_list(raw: Any) -> list[float]:
    if not isinstance(raw, list):
        return []
    values: list[float] = []
    for item in raw:
        if isinstance(item, bool):
            continue
        if isinstance(item, (int, float)) and math.isfinite(item):
            values.append(float(item))
    return values


def _int_list(raw: Any) -> list[int]:
    if not isinstance(raw, list):
        return []
    return [int(item) for item in raw if isinstance(item, (int, float)) and not isinstance(item, bool)]


def _history_list(raw: Any) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    history: list[dict[str, Any]] = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("message"), str):
            continue
        role = item.get("role") if item.get("role") in {"user", "assistant"} else "user"
        timestamp = item.get("timestamp")
        history.append(
            {
                "timestamp": int(timestamp) if isinstance(timestamp, (int, float)) else 0,
                "message": item["message"],
                "role": role,
            }
        )
    return history


@dataclass
class PatientRecord:
    """Everything the bot remembers about one user.

    All sequences are append-only and kept in arrival order. History entries
    written before roles were tracked are read back as user turns.
    """

    history: list[dict[str, Any]] = field(default_factory=list)
    weight: list[float] = field(default_factory=list)
    fat: list[float] = field(default_factory=list)
    exercise: list[float] = field(default_factory=list)
    calories: list[int] = field(default_factory=list)

    def append_message(self, message: str, *, timestamp: int, role: str = "user") -> None:
        self.history.append({"timestamp": timestamp, "message": message, "role": role})

    def append_metric(self, name: str, value: float) -> None:
        if name not in METRIC_FIELDS:
            raise ValueError(f"Unknown metric: {name}")
        getattr(self, name).append(float(value))

    def to_dict(self) -> dict[str, Any]:
        return {
            "history": [dict(item) for item in self.history],
            "weight": list(self.weight),
            "fat": list(self.fat),
            "exercise": list(self.exercise),
            "calories": list(self.calories),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PatientRecord:
        return cls(
            history=_history_list(payload.get("history")),
            weight=_float_list(payload.get("weight")),
            fat=_float_list(payload.get("fat")),
            exercise=_float_list(payload.get("exercise")),
            calories=_int_list(payload.get("calories")),
        )

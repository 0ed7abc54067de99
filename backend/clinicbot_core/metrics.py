from __future__ import annotations

import re

_NUM = r"(\d+(?:\.\d+)?)"

_METRIC_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "weight": [
        re.compile(rf"(?:weight|weigh|体重)\s*(?:is|was|now|:|：|は)?\s*{_NUM}", re.IGNORECASE),
        re.compile(rf"{_NUM}\s*(?:kg|kilos?|キロ)(?![A-Za-z])", re.IGNORECASE),
    ],
    "fat": [
        re.compile(rf"(?:body\s*fat|fat\s*%|体脂肪率?)\s*(?:is|was|now|:|：|は)?\s*{_NUM}", re.IGNORECASE),
    ],
    "exercise": [
        re.compile(
            rf"(?:exercised?|workout|worked out|walked|ran|jogged|運動)\s*(?:for|:|：|は|を)?\s*{_NUM}\s*(?:min(?:ute)?s?|分)",
            re.IGNORECASE,
        ),
    ],
}

_PLAUSIBLE = {
    "weight": (20.0, 400.0),
    "fat": (1.0, 80.0),
    "exercise": (1.0, 1440.0),
}


def extract_metrics(text: str) -> dict[str, float]:
    """Pull self-reported weight (kg), body fat (%) and exercise (minutes) out of a message."""
    found: dict[str, float] = {}
    cleaned = (text or "").strip()
    if not cleaned:
        return found
    for name, patterns in _METRIC_PATTERNS.items():
        for pattern in patterns:
            match = pattern.search(cleaned)
            if not match:
                continue
            value = float(match.group(1))
            low, high = _PLAUSIBLE[name]
            if low <= value <= high:
                found[name] = value
                break
    return found

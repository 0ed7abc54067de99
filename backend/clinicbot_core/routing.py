from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class RoutingDecision:
    code: str
    reply: str


class RoutingPolicy:
    """Fixed replies for intents that must never go through the model."""

    _URGENT_PATTERNS = [
        re.compile(r"\burgent(ly)?\b", re.IGNORECASE),
        re.compile(r"\bemergency\b", re.IGNORECASE),
        re.compile(r"\bright away\b", re.IGNORECASE),
        re.compile(r"至急|緊急|急ぎ"),
    ]
    _CALL_PATTERNS = [
        re.compile(r"\bcall (you|the clinic|me back)\b", re.IGNORECASE),
        re.compile(r"\b(your|the clinic'?s?|clinic) (tele)?phone( number)?\b", re.IGNORECASE),
        re.compile(r"\bphone number\b", re.IGNORECASE),
        re.compile(r"電話番号|電話(し|でき|をかけ)"),
    ]
    _BOOKING_PATTERNS = [
        re.compile(r"\bbook(ing)?\b.*\b(appointment|visit|slot)\b", re.IGNORECASE),
        re.compile(r"\bmake (an )?(appointment|reservation)\b", re.IGNORECASE),
        re.compile(r"\breserv(e|ation)\b", re.IGNORECASE),
        re.compile(r"予約"),
    ]

    def __init__(self, clinic_phone: str) -> None:
        self.clinic_phone = clinic_phone

    def match(self, text: str) -> RoutingDecision | None:
        cleaned = (text or "").strip()
        if not cleaned:
            return None
        if any(pattern.search(cleaned) for pattern in self._URGENT_PATTERNS):
            return RoutingDecision(
                code="urgent",
                reply=(
                    "If this is urgent, please call the clinic directly at "
                    f"{self.clinic_phone}. In a life-threatening emergency call 119."
                ),
            )
        if any(pattern.search(cleaned) for pattern in self._BOOKING_PATTERNS):
            return RoutingDecision(
                code="booking",
                reply=f"To book an appointment, please call us at {self.clinic_phone}. We look forward to seeing you.",
            )
        if any(pattern.search(cleaned) for pattern in self._CALL_PATTERNS):
            return RoutingDecision(
                code="call",
                reply=f"You can reach the clinic by phone at {self.clinic_phone}.",
            )
        return None

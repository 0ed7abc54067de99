"""Reply generation for a single inbound event.

Text messages go through three paths, first match wins:

1. routing override: fixed reply for urgent/call/booking wording, no model call;
2. model switch: ``<prefix> question`` goes verbatim to an alternate backend;
3. default: persona + metric snapshot + recent history to the default backend.

Image messages are treated as meal photos and sent to the vision backend for
a calorie estimate. Every backend failure turns into ``FALLBACK_REPLY`` so
each event still gets an answer.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Callable, Protocol

from charts import ChartStore, render_line_chart
from memory import PatientRecord
from memory.time_utils import now_ms

from .calories import CalorieEstimate, parse_calorie_estimate
from .metrics import extract_metrics
from .models import ConversationTurn, InboundEvent, OrchestratorResult, text_message
from .routing import RoutingPolicy

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "We're a little busy right now. Please try again shortly."
UNSUPPORTED_REPLY = "I can read text messages and photos of your meals. Please send one of those."

PERSONA_PROMPT = (
    "You are the director of an osteopathic clinic, 56 years old, and you stay as close "
    "to your patients as you can. Quote the patient's own words and empathise naturally "
    '("I see, so it is ... "). '
    "Praise every effort on weight, body fat, exercise and calorie intake. "
    "Use the recorded data to comment on progress and change. "
    "Ease worry or low mood and suggest calm, one-step-at-a-time improvements. "
    "Always finish with warm encouragement."
)

CALORIE_PROMPT = (
    "You are the director of an osteopathic clinic. Estimate the approximate total calories "
    "of the meal in the patient's photo. Start your answer with the number of kcal, then add "
    "a short, encouraging comment the patient can easily understand."
)


class ChatBackend(Protocol):
    name: str

    async def complete(self, messages: list[dict[str, Any]], *, temperature: float | None = None) -> str: ...


class ContentFetcher(Protocol):
    async def get_content(self, message_id: str) -> bytes: ...


def _image_mime(content: bytes) -> str:
    if content.startswith(b"\x89PNG"):
        return "image/png"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def _metric_snapshot(record: PatientRecord) -> dict[str, Any]:
    return {
        "weight_kg": record.weight[-5:],
        "body_fat_pct": record.fat[-5:],
        "exercise_min": record.exercise[-5:],
        "calories_kcal": record.calories[-5:],
    }


class ConversationOrchestrator:
    def __init__(
        self,
        *,
        chat_backend: ChatBackend,
        vision_backend: ChatBackend,
        routing: RoutingPolicy,
        charts: ChartStore,
        content_fetcher: ContentFetcher,
        alternate_backends: dict[str, ChatBackend] | None = None,
        history_turns: int = 10,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.chat_backend = chat_backend
        self.vision_backend = vision_backend
        self.routing = routing
        self.charts = charts
        self.content_fetcher = content_fetcher
        self.alternate_backends = dict(alternate_backends or {})
        self.history_turns = max(1, history_turns)
        self._clock = clock

    async def handle(self, event: InboundEvent, record: PatientRecord) -> OrchestratorResult:
        if event.kind == "text":
            return await self.handle_text(record, event.text)
        if event.kind == "image" and event.event_id:
            return await self.handle_image(record, event.event_id)
        return OrchestratorResult(messages=[text_message(UNSUPPORTED_REPLY)], mutated=False)

    async def handle_text(self, record: PatientRecord, text: str) -> OrchestratorResult:
        record.append_message(text, timestamp=self._clock())
        for name, value in extract_metrics(text).items():
            record.append_metric(name, value)

        decision = self.routing.match(text)
        if decision:
            logger.info("Routing override (%s); model not called", decision.code)
            return OrchestratorResult(messages=[text_message(decision.reply)], mutated=True)

        switched = self._match_switch(text)
        if switched:
            prefix, backend, remainder = switched
            if not remainder:
                return OrchestratorResult(
                    messages=[text_message(f"Add your question after {prefix}, for example: {prefix} hello")],
                    mutated=True,
                )
            reply = await self._ask(backend, [ConversationTurn("user", remainder).as_message()])
            if reply is None:
                return OrchestratorResult(messages=[text_message(FALLBACK_REPLY)], mutated=True)
            record.append_message(reply, timestamp=self._clock(), role="assistant")
            return OrchestratorResult(messages=[text_message(reply)], mutated=True)

        reply = await self._ask(self.chat_backend, self.build_context(record), temperature=0.7)
        if reply is None:
            return OrchestratorResult(messages=[text_message(FALLBACK_REPLY)], mutated=True)
        record.append_message(reply, timestamp=self._clock(), role="assistant")

        messages: list[dict[str, Any]] = [text_message(reply)]
        if record.weight:
            self._prepend_chart(messages, record.weight, "Weight trend")
        return OrchestratorResult(messages=messages, mutated=True)

    async def handle_image(self, record: PatientRecord, message_id: str) -> OrchestratorResult:
        try:
            content = await self.content_fetcher.get_content(message_id)
        except Exception as exc:
            logger.warning("Could not fetch image %s: %s", message_id, exc)
            return OrchestratorResult(messages=[text_message(FALLBACK_REPLY)], mutated=False)

        data_url = f"data:{_image_mime(content)};base64," + base64.b64encode(content).decode("ascii")
        answer = await self._ask(
            self.vision_backend,
            [
                ConversationTurn("system", CALORIE_PROMPT).as_message(),
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "Please estimate the calories of this meal."},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                },
            ],
        )
        if answer is None:
            return OrchestratorResult(messages=[text_message(FALLBACK_REPLY)], mutated=False)

        estimate = parse_calorie_estimate(answer)
        record.calories.append(estimate.kcal)
        messages: list[dict[str, Any]] = [text_message(self._calorie_reply(estimate))]
        if len(record.calories) >= 2:
            self._prepend_chart(messages, record.calories, "Calories")
        return OrchestratorResult(messages=messages, mutated=True)

    def build_context(self, record: PatientRecord) -> list[dict[str, Any]]:
        turns = [ConversationTurn("system", PERSONA_PROMPT)]
        turns.append(
            ConversationTurn(
                "system",
                "Patient's recorded data (oldest to newest, most recent five):\n"
                + json.dumps(_metric_snapshot(record), ensure_ascii=False),
            )
        )
        recent = record.history[-self.history_turns :]
        for index, entry in enumerate(recent):
            limit = 2000 if index == len(recent) - 1 else 1200
            content = str(entry.get("message") or "").strip()[:limit]
            if content:
                turns.append(ConversationTurn(entry.get("role", "user"), content))
        return [turn.as_message() for turn in turns]

    def _match_switch(self, text: str) -> tuple[str, ChatBackend, str] | None:
        stripped = text.strip()
        for prefix, backend in self.alternate_backends.items():
            if stripped == prefix or stripped.startswith(prefix + " ") or stripped.startswith(prefix + "\n"):
                return prefix, backend, stripped[len(prefix) :].strip()
        return None

    async def _ask(
        self,
        backend: ChatBackend,
        messages: list[dict[str, Any]],
        *,
        temperature: float | None = None,
    ) -> str | None:
        try:
            text = await backend.complete(messages, temperature=temperature)
        except Exception as exc:
            logger.warning("AI backend %s failed: %s", getattr(backend, "name", "unknown"), exc)
            return None
        text = (text or "").strip()
        if not text:
            logger.warning("AI backend %s returned an empty reply", getattr(backend, "name", "unknown"))
            return None
        return text

    def _prepend_chart(self, messages: list[dict[str, Any]], series: list[float] | list[int], label: str) -> None:
        if not self.charts.enabled:
            return
        image = self.charts.image_message(render_line_chart(series, label))
        if image is not None:
            messages.insert(0, image)

    @staticmethod
    def _calorie_reply(estimate: CalorieEstimate) -> str:
        if not estimate.parsed:
            return (
                "I couldn't read a clear calorie estimate from this photo, so I noted it as 0 kcal for now. "
                "A photo of the whole plate from above helps a lot."
            )
        return f"Your meal is about {estimate.kcal} kcal. Great effort keeping track!"

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

from fastapi import BackgroundTasks, FastAPI, Header, HTTPException, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, Field, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from charts import ChartStore
from clinicbot_core import (
    AuthenticationError,
    BotSettings,
    ConversationOrchestrator,
    EventDeduplicator,
    EventPipeline,
    ReplyDispatcher,
    RoutingPolicy,
    ensure_valid_signature,
    parse_events,
)
from clinicbot_providers import AnthropicChatBackend, LineMessagingClient, OpenAIChatBackend
from memory import PatientRecordStore

_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

logger = logging.getLogger(__name__)


def _load_local_env_file(path: Path) -> None:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not _ENV_KEY_RE.fullmatch(key):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _bootstrap_local_env() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    candidates = [
        repo_root / ".env",
        repo_root / "backend/.env",
    ]
    for candidate in candidates:
        if candidate.exists():
            _load_local_env_file(candidate)


_bootstrap_local_env()


class WebhookPayload(BaseModel):
    destination: str | None = None
    events: list[Any] = Field(default_factory=list)


class ClinicBotApp:
    def __init__(self, settings: BotSettings | None = None) -> None:
        self.settings = settings or BotSettings.from_env()
        s = self.settings

        self.store = PatientRecordStore(s.data_dir)
        self.dedup = EventDeduplicator(max_entries=s.dedup_max_entries, ttl_seconds=s.dedup_ttl_seconds)
        self.charts = ChartStore(public_base_url=s.public_base_url)
        self.line = LineMessagingClient(
            access_token=s.line_channel_access_token,
            api_base=s.line_api_base,
            data_api_base=s.line_data_api_base,
        )

        chat_backend = OpenAIChatBackend(
            api_key=s.openai_api_key,
            model=s.chat_model,
            base_url=s.openai_api_base,
            timeout_seconds=s.ai_timeout_seconds,
        )
        vision_backend = OpenAIChatBackend(
            api_key=s.openai_api_key,
            model=s.vision_model,
            base_url=s.openai_api_base,
            timeout_seconds=s.ai_timeout_seconds,
        )
        alternate_backends = {}
        if s.switch_prefix:
            alternate_backends[s.switch_prefix] = AnthropicChatBackend(
                api_key=s.anthropic_api_key,
                model=s.anthropic_model,
                base_url=s.anthropic_api_base,
                api_version=s.anthropic_api_version,
                timeout_seconds=s.ai_timeout_seconds,
            )

        self.orchestrator = ConversationOrchestrator(
            chat_backend=chat_backend,
            vision_backend=vision_backend,
            routing=RoutingPolicy(clinic_phone=s.clinic_phone),
            charts=self.charts,
            content_fetcher=self.line,
            alternate_backends=alternate_backends,
            history_turns=s.history_turns,
        )
        self.dispatcher = ReplyDispatcher(self.line)
        self.pipeline = EventPipeline(
            dedup=self.dedup,
            store=self.store,
            orchestrator=self.orchestrator,
            dispatcher=self.dispatcher,
        )

        if not s.line_channel_secret:
            logger.error("LINE_CHANNEL_SECRET is not set; every webhook will be refused")
        if not s.line_channel_access_token:
            logger.error("LINE_CHANNEL_ACCESS_TOKEN is not set; replies cannot be delivered")
        if not s.openai_api_key:
            logger.error("OPENAI_API_KEY is not set; AI replies will fall back to the busy message")


container = ClinicBotApp()
logging.basicConfig(
    level=container.settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
app = FastAPI(title="Clinic LINE Bot")


@app.exception_handler(StarletteHTTPException)
async def _plain_not_found(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return PlainTextResponse("Not Found", status_code=404)
    return await http_exception_handler(request, exc)


@app.get("/")
def health() -> PlainTextResponse:
    return PlainTextResponse("LINE AI server is running")


@app.get("/charts/{chart_id}.png")
def get_chart(chart_id: str) -> Response:
    png = container.charts.get(chart_id)
    if png is None:
        raise HTTPException(status_code=404, detail="Chart not found.")
    return Response(content=png, media_type="image/png")


@app.post("/webhook")
async def line_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_line_signature: str | None = Header(default=None),
):
    secret = container.settings.line_channel_secret
    if not secret:
        raise HTTPException(status_code=503, detail="Webhook secret is not configured.")

    body = await request.body()
    try:
        ensure_valid_signature(body, x_line_signature, secret)
    except AuthenticationError:
        logger.warning("Rejected webhook with invalid signature")
        return PlainTextResponse("Forbidden", status_code=403)

    try:
        payload = WebhookPayload.model_validate_json(body)
    except ValidationError:
        logger.warning("Rejected signed webhook with malformed body")
        return PlainTextResponse("Bad Request", status_code=400)

    events = parse_events(payload.events)
    if events:
        # Runs after the response is sent; LINE times out slow webhooks.
        background_tasks.add_task(container.pipeline.process_batch, events)
    return PlainTextResponse("OK")

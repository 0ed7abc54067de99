from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "patients_data"


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_float(name: str, default: float) -> float:
    try:
        return float(_env(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(_env(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class BotSettings:
    line_channel_secret: str
    line_channel_access_token: str
    line_api_base: str
    line_data_api_base: str
    openai_api_key: str
    openai_api_base: str
    chat_model: str
    vision_model: str
    anthropic_api_key: str
    anthropic_api_base: str
    anthropic_model: str
    anthropic_api_version: str
    switch_prefix: str
    ai_timeout_seconds: float
    data_dir: str
    clinic_phone: str
    history_turns: int
    dedup_max_entries: int
    dedup_ttl_seconds: float
    public_base_url: str
    log_level: str

    @classmethod
    def from_env(cls) -> BotSettings:
        return cls(
            line_channel_secret=_env("LINE_CHANNEL_SECRET"),
            line_channel_access_token=_env("LINE_CHANNEL_ACCESS_TOKEN"),
            line_api_base=_env("LINE_API_BASE_URL", "https://api.line.me/v2/bot").rstrip("/"),
            line_data_api_base=_env("LINE_DATA_API_BASE_URL", "https://api-data.line.me/v2/bot").rstrip("/"),
            openai_api_key=_env("OPENAI_API_KEY"),
            openai_api_base=_env("OPENAI_API_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
            chat_model=_env("CLINICBOT_CHAT_MODEL", "gpt-4o-mini"),
            vision_model=_env("CLINICBOT_VISION_MODEL", "gpt-4o-mini"),
            anthropic_api_key=_env("ANTHROPIC_API_KEY"),
            anthropic_api_base=_env("ANTHROPIC_API_BASE_URL", "https://api.anthropic.com/v1").rstrip("/"),
            anthropic_model=_env("ANTHROPIC_MODEL", "claude-3-5-sonnet-latest"),
            anthropic_api_version=_env("ANTHROPIC_API_VERSION", "2023-06-01"),
            switch_prefix=_env("CLINICBOT_SWITCH_PREFIX", "/claude"),
            ai_timeout_seconds=_env_float("CLINICBOT_AI_TIMEOUT_SECONDS", 25.0),
            data_dir=_env("CLINICBOT_DATA_DIR", str(_DEFAULT_DATA_DIR)),
            clinic_phone=_env("CLINICBOT_CLINIC_PHONE", "03-0000-0000"),
            history_turns=_env_int("CLINICBOT_HISTORY_TURNS", 10),
            dedup_max_entries=_env_int("CLINICBOT_DEDUP_MAX_ENTRIES", 10_000),
            dedup_ttl_seconds=_env_float("CLINICBOT_DEDUP_TTL_SECONDS", 3600.0),
            public_base_url=_env("CLINICBOT_PUBLIC_BASE_URL").rstrip("/"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
        )

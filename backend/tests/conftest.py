from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from clinicbot_core.signature import compute_signature  # noqa: E402
from fakes import FakeChatBackend, FakeLineClient  # noqa: E402

TEST_SECRET = "test-channel-secret"
TEST_PHONE = "03-1234-5678"


@pytest.fixture
def backend_module(tmp_path, monkeypatch):
    monkeypatch.setenv("CLINICBOT_DATA_DIR", str(tmp_path / "patients_data"))
    monkeypatch.setenv("LINE_CHANNEL_SECRET", TEST_SECRET)
    monkeypatch.setenv("LINE_CHANNEL_ACCESS_TOKEN", "test-access-token")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("CLINICBOT_CLINIC_PHONE", TEST_PHONE)
    monkeypatch.setenv("CLINICBOT_PUBLIC_BASE_URL", "")

    if "main" in sys.modules:
        module = importlib.reload(sys.modules["main"])
    else:
        module = importlib.import_module("main")
    return module


@pytest.fixture
def fakes(backend_module):
    """Swap the network-facing collaborators of the app container for fakes."""
    container = backend_module.container
    chat = FakeChatBackend(name="fake-chat", replies=["I see, thank you for telling me. Keep it up!"])
    vision = FakeChatBackend(name="fake-vision", replies=["approximately 650 kcal, well done"])
    alternate = FakeChatBackend(name="fake-alt", replies=["Alternate backend reply."])
    line = FakeLineClient()
    container.orchestrator.chat_backend = chat
    container.orchestrator.vision_backend = vision
    container.orchestrator.alternate_backends = {"/claude": alternate}
    container.orchestrator.content_fetcher = line
    container.dispatcher.client = line
    return {"chat": chat, "vision": vision, "alternate": alternate, "line": line}


@pytest.fixture
def client(backend_module):
    with TestClient(backend_module.app) as test_client:
        yield test_client


@pytest.fixture
def signed_post() -> Callable[..., Any]:
    def _post(client: TestClient, payload: dict[str, Any] | bytes, *, secret: str = TEST_SECRET):
        body = payload if isinstance(payload, bytes) else json.dumps(payload, ensure_ascii=False).encode("utf-8")
        return client.post(
            "/webhook",
            content=body,
            headers={"X-Line-Signature": compute_signature(body, secret), "Content-Type": "application/json"},
        )

    return _post

from __future__ import annotations

import base64
import os
from pathlib import Path
from typing import Iterator

import pytest

# The module-level app in ``main`` is built at import time; keep it offline.
os.environ.setdefault("MEDIA_TICKET_VALIDATE_MODELS", "false")

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.media_ticket.config import AppConfig
from src.media_ticket.main import create_app
from tests.mocks.providers import FakeModelProvider

PNG_BASE64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/x8AAwMB/kwL7ZkAAAAASUVORK5CYII="
VIDEO_BASE64 = base64.b64encode(b"fake-mp4-bytes").decode("ascii")


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        gemini_api_key="test-key",
        inter_call_delay_seconds=0,
        rate_limit_per_hour=0,
        prompt_settings_path=tmp_path / "prompt_settings.json",
        validate_models=False,
    )


@pytest.fixture
def fake_provider() -> FakeModelProvider:
    return FakeModelProvider()


@pytest.fixture
def app(app_config: AppConfig, fake_provider: FakeModelProvider) -> FastAPI:
    return create_app(app_config, provider=fake_provider)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client

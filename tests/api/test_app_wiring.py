from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from src.media_ticket.analysis.analysis_errors import ProviderCallError
from src.media_ticket.config import AppConfig, load_config
from src.media_ticket.exceptions import ConfigurationError
from src.media_ticket.main import create_app
from tests.mocks.providers import FakeModelProvider, model_output

pytestmark = pytest.mark.integration


def test_create_app_registers_routes(client: TestClient) -> None:
    signatures = {
        (route.path, method)
        for route in client.app.routes
        for method in getattr(route, "methods", None) or ()
    }

    for expected in [
        ("/health", "GET"),
        ("/api/analyze-media", "POST"),
        ("/api/analyze-video", "POST"),
        ("/api/create-chat", "POST"),
        ("/api/chat/{session_id}/message", "POST"),
        ("/api/prompt-settings", "GET"),
        ("/api/prompt-settings", "PUT"),
        ("/api/prompt-settings", "DELETE"),
    ]:
        assert expected in signatures


def test_health_reports_key_configuration(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["apiKeyConfigured"] is True
    assert payload["timestamp"]


def test_api_routes_are_rate_limited_per_client(app_config: AppConfig) -> None:
    app_config.rate_limit_per_hour = 2
    app = create_app(app_config, provider=FakeModelProvider())

    with TestClient(app) as client:
        statuses = [client.post("/api/create-chat", json={}).status_code for _ in range(3)]
        limited = client.post("/api/create-chat", json={})
        health = client.get("/health")

    assert statuses == [200, 200, 429]
    assert limited.json() == {"error": "Too many requests, please try again later."}
    assert int(limited.headers["Retry-After"]) > 0
    assert health.status_code == status.HTTP_200_OK


def test_cors_allows_configured_frontend(client: TestClient) -> None:
    response = client.options(
        "/api/create-chat",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-credentials"] == "true"


def test_prompt_settings_round_trip(client: TestClient, app_config: AppConfig) -> None:
    assert client.get("/api/prompt-settings").json()["severityMode"] == "all"

    updated = client.put(
        "/api/prompt-settings", json={"severityMode": "critical", "focusAreas": ["keyboard"]}
    )
    assert updated.json()["severityMode"] == "critical"
    assert client.get("/api/prompt-settings").json()["focusAreas"] == ["keyboard"]
    assert Path(app_config.prompt_settings_path).exists()

    reset = client.delete("/api/prompt-settings")
    assert reset.json()["severityMode"] == "all"
    assert reset.json()["focusAreas"] == []


def test_prompt_setting_options(client: TestClient) -> None:
    options = client.get("/api/prompt-settings/options").json()

    assert [area["id"] for area in options["focusAreas"]] == [
        "keyboard",
        "screenReader",
        "contrast",
        "forms",
        "touchTargets",
        "cognitive",
    ]
    assert [mode["id"] for mode in options["severityModes"]] == ["all", "critical", "quickWins"]


def test_startup_aborts_on_unknown_model(app_config: AppConfig) -> None:
    app_config.validate_models = True
    provider = FakeModelProvider(
        results=[ProviderCallError("Gemini request failed (status=404): NOT_FOUND models/x is not found")]
    )
    app = create_app(app_config, provider=provider)

    with pytest.raises(ConfigurationError, match="is not available"):
        with TestClient(app):
            pass


def test_startup_tolerates_transient_probe_errors(app_config: AppConfig) -> None:
    app_config.validate_models = True
    app_config.chat_model = "chat-model"
    provider = FakeModelProvider(
        results=[ProviderCallError("Gemini request failed (status=429): quota"), model_output()]
    )
    app = create_app(app_config, provider=provider)

    with TestClient(app) as client:
        assert client.get("/health").status_code == status.HTTP_200_OK

    assert [request.model for request in provider.requests] == [
        app_config.analysis_model,
        "chat-model",
    ]
    assert all(request.max_output_tokens == 1 for request in provider.requests)


def test_startup_skips_probes_without_api_key(app_config: AppConfig) -> None:
    app_config.validate_models = True
    app_config.gemini_api_key = None
    provider = FakeModelProvider()

    with TestClient(create_app(app_config, provider=provider)) as client:
        assert client.get("/health").json()["apiKeyConfigured"] is False

    assert provider.requests == []


def test_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    monkeypatch.setenv("MEDIA_TICKET_RATE_LIMIT_PER_HOUR", "25")
    monkeypatch.setenv("MEDIA_TICKET_ANALYSIS_MODEL", "gemini-3-pro-preview")
    monkeypatch.setenv("MEDIA_TICKET_MODEL_PRICING", '{"custom": {"input": 1.5, "output": 3}}')

    config = load_config()

    assert config.gemini_api_key == "env-key"
    assert config.rate_limit_per_hour == 25
    assert config.analysis_model == "gemini-3-pro-preview"
    pricing = config.pricing_table()
    assert pricing["custom"].input == 1.5
    assert pricing["gemini-2.5-flash"].output == 2.5

import json

import pytest

httpx = pytest.importorskip("httpx")

from incidesk.ai.analysis_client import (
    DISABLED_ANALYSIS,
    ERROR_ANALYSIS,
    MISSING_STEPS,
    MISSING_SUMMARY,
    ChatCompletionsAnalysisClient,
    GeminiAnalysisClient,
    build_analysis_client,
)
from incidesk.config import Settings


class _DummyResponse:
    def __init__(self, status_code: int, payload: dict | None = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise httpx.HTTPStatusError(
                message=f"status={self.status_code}",
                request=httpx.Request("POST", "https://generativelanguage.googleapis.com/v1beta"),
                response=httpx.Response(self.status_code),
            )

    def json(self) -> dict:
        return self._payload


class _DummyClient:
    def __init__(self, response: _DummyResponse | None = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.calls = 0
        self.last_url = ""
        self.last_headers: dict = {}
        self.last_json: dict = {}

    def __enter__(self) -> "_DummyClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def post(self, url: str, headers: dict, json: dict) -> _DummyResponse:  # noqa: A002
        self.calls += 1
        self.last_url = url
        self.last_headers = headers
        self.last_json = json
        if self._error is not None:
            raise self._error
        return self._response


def _gemini_reply(obj) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": json.dumps(obj)}]}}]}


def _gemini(key: str = "key") -> GeminiAnalysisClient:
    return GeminiAnalysisClient(key, "gemini-2.5-flash", "https://generativelanguage.googleapis.com/v1beta/")


def test_missing_key_returns_disabled_fallback_without_calls(monkeypatch) -> None:
    client_mock = _DummyClient(_DummyResponse(200, _gemini_reply({})))
    monkeypatch.setattr(httpx, "Client", lambda timeout: client_mock)

    result = _gemini(key="").analyze("Projector not turning on")

    assert result == DISABLED_ANALYSIS
    assert result.fallback is True
    assert client_mock.calls == 0


def test_gemini_success_parses_summary_and_steps(monkeypatch) -> None:
    reply = _gemini_reply({
        "summary": "The classroom projector does not power on.",
        "actionable_steps": ["Check the power cable", "Try another outlet", "Replace the lamp"],
    })
    client_mock = _DummyClient(_DummyResponse(200, reply))
    monkeypatch.setattr(httpx, "Client", lambda timeout: client_mock)

    result = _gemini().analyze("Projector not turning on", "Maybe the cable")

    assert result.summary == "The classroom projector does not power on."
    assert result.steps == ("Check the power cable", "Try another outlet", "Replace the lamp")
    assert result.fallback is False
    assert client_mock.last_url == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
    )
    assert client_mock.last_headers["x-goog-api-key"] == "key"
    config = client_mock.last_json["generationConfig"]
    assert config["responseMimeType"] == "application/json"
    prompt = client_mock.last_json["contents"][0]["parts"][0]["text"]
    assert "Projector not turning on" in prompt
    assert "Maybe the cable" in prompt


def test_blank_suggestion_is_sent_as_none(monkeypatch) -> None:
    client_mock = _DummyClient(_DummyResponse(200, _gemini_reply({"summary": "s", "actionable_steps": ["a"]})))
    monkeypatch.setattr(httpx, "Client", lambda timeout: client_mock)

    _gemini().analyze("Leaking tap", "   ")

    prompt = client_mock.last_json["contents"][0]["parts"][0]["text"]
    assert 'suggestion: "none"' in prompt


def test_missing_fields_use_per_field_fallback(monkeypatch) -> None:
    client_mock = _DummyClient(_DummyResponse(200, _gemini_reply({"other": 1})))
    monkeypatch.setattr(httpx, "Client", lambda timeout: client_mock)

    result = _gemini().analyze("Broken window")

    assert result.summary == MISSING_SUMMARY
    assert result.steps == MISSING_STEPS


def test_unparseable_reply_returns_error_fallback(monkeypatch) -> None:
    reply = {"candidates": [{"content": {"parts": [{"text": "not json at all"}]}}]}
    client_mock = _DummyClient(_DummyResponse(200, reply))
    monkeypatch.setattr(httpx, "Client", lambda timeout: client_mock)

    assert _gemini().analyze("Broken window") == ERROR_ANALYSIS


def test_network_error_returns_error_fallback(monkeypatch) -> None:
    client_mock = _DummyClient(error=httpx.ConnectError("connection refused"))
    monkeypatch.setattr(httpx, "Client", lambda timeout: client_mock)

    result = _gemini().analyze("Broken window")

    assert result == ERROR_ANALYSIS
    assert len(result.steps) == 2


def test_server_error_does_not_disable_client(monkeypatch) -> None:
    client_mock = _DummyClient(_DummyResponse(500))
    monkeypatch.setattr(httpx, "Client", lambda timeout: client_mock)
    client = _gemini()

    assert client.analyze("a") == ERROR_ANALYSIS
    assert client.analyze("b") == ERROR_ANALYSIS
    assert client_mock.calls == 2
    assert client.is_enabled() is True


def test_rejected_key_disables_client_for_the_run(monkeypatch) -> None:
    client_mock = _DummyClient(_DummyResponse(403, {"error": {"message": "API key not valid"}}))
    monkeypatch.setattr(httpx, "Client", lambda timeout: client_mock)
    client = _gemini()

    client.analyze("a")
    client.analyze("b")

    assert client_mock.calls == 1
    assert client.is_enabled() is False


def test_chat_completions_client_parses_fenced_json(monkeypatch) -> None:
    content = '```json\n{"summary": "Heating is off.", "actionable_steps": ["Check boiler", "Check thermostat", "Call supplier"]}\n```'
    payload = {"choices": [{"message": {"content": content}}]}
    client_mock = _DummyClient(_DummyResponse(200, payload))
    monkeypatch.setattr(httpx, "Client", lambda timeout: client_mock)
    client = ChatCompletionsAnalysisClient(
        "key",
        "google/gemini-2.5-flash",
        "https://openrouter.ai/api/v1",
        extra_headers={"X-Title": "incidesk"},
    )

    result = client.analyze("No heating in gym")

    assert result.summary == "Heating is off."
    assert len(result.steps) == 3
    assert client_mock.last_url == "https://openrouter.ai/api/v1/chat/completions"
    assert client_mock.last_headers["Authorization"] == "Bearer key"
    assert client_mock.last_headers["X-Title"] == "incidesk"
    assert client_mock.last_json["response_format"] == {"type": "json_object"}


def _settings(monkeypatch, **env: str) -> Settings:
    for name in ("AI_PROVIDER", "GEMINI_API_KEY", "API_KEY", "OPENROUTER_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return Settings.from_env()


def test_build_client_auto_prefers_gemini(monkeypatch) -> None:
    client = build_analysis_client(_settings(monkeypatch, GEMINI_API_KEY="g", OPENROUTER_API_KEY="o"))
    assert isinstance(client, GeminiAnalysisClient)
    assert client.is_enabled() is True


def test_build_client_auto_uses_openrouter_when_only_its_key_is_set(monkeypatch) -> None:
    client = build_analysis_client(_settings(monkeypatch, OPENROUTER_API_KEY="o"))
    assert isinstance(client, ChatCompletionsAnalysisClient)
    assert client.provider_name == "openrouter"


def test_build_client_without_keys_is_disabled(monkeypatch) -> None:
    client = build_analysis_client(_settings(monkeypatch))
    assert client.is_enabled() is False

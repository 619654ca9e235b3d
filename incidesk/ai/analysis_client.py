from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from incidesk.ai.prompt_templates import RESPONSE_SCHEMA, SYSTEM_PROMPT, build_user_prompt
from incidesk.config import Settings
from incidesk.domain.models import Analysis

logger = logging.getLogger(__name__)

DISABLED_ANALYSIS = Analysis(
    summary="AI analysis not available. API key not configured.",
    steps=("Check the AI service API key configuration.",),
    fallback=True,
)

ERROR_ANALYSIS = Analysis(
    summary="Error contacting the AI service.",
    steps=("Check the connection and the AI service configuration.", "Try again later."),
    fallback=True,
)

MISSING_SUMMARY = "No summary could be generated."
MISSING_STEPS = ("No action steps could be generated.",)

# Credential and billing problems will not fix themselves within one run.
DISABLING_STATUS_CODES = {401, 402, 403}


class AnalysisClient:
    """
    One-shot incident analysis against an LLM service.

    analyze() never raises: a missing key, an HTTP error or an unparseable
    reply all turn into one of the fixed fallback pairs above.
    """

    provider_name = "llm"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 40.0,
        extra_headers: dict[str, str] | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._extra_headers = extra_headers or {}
        self._disabled_reason = ""

    def is_enabled(self) -> bool:
        return bool(self._api_key) and not self._disabled_reason

    def analyze(self, description: str, suggestion: str = "") -> Analysis:
        if not self._api_key:
            return DISABLED_ANALYSIS

        if self._disabled_reason:
            logger.info(
                "%s disabled for current run (%s), using fallback.",
                self.provider_name,
                self._disabled_reason,
            )
            return ERROR_ANALYSIS

        prompt = build_user_prompt(description, suggestion or "")

        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(
                    self._endpoint(), headers=self._headers(), json=self._payload(prompt)
                )
                response.raise_for_status()
                data = response.json()
            return self._parse_analysis(self._extract_text(data))
        except httpx.HTTPStatusError as exc:
            details = self._extract_error_details(exc.response)
            if exc.response.status_code in DISABLING_STATUS_CODES:
                self._disabled_reason = f"{self.provider_name}_{exc.response.status_code}"
                logger.warning(
                    "%s rejected credentials (status=%s). Disabling analysis until restart. details=%s",
                    self.provider_name,
                    exc.response.status_code,
                    details,
                )
            else:
                logger.warning("%s API error, using fallback analysis: %s", self.provider_name, details)
            return ERROR_ANALYSIS
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s unavailable, using fallback analysis: %s", self.provider_name, exc)
            return ERROR_ANALYSIS

    def _endpoint(self) -> str:
        raise NotImplementedError

    def _headers(self) -> dict[str, str]:
        raise NotImplementedError

    def _payload(self, prompt: str) -> dict[str, Any]:
        raise NotImplementedError

    def _extract_text(self, data: dict[str, Any]) -> str:
        raise NotImplementedError

    @staticmethod
    def _parse_analysis(text: str) -> Analysis:
        parsed = json.loads(_strip_code_fence(text))
        if not isinstance(parsed, dict):
            raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")

        summary = str(parsed.get("summary") or "").strip() or MISSING_SUMMARY

        raw_steps = parsed.get("actionable_steps")
        steps: tuple[str, ...] = ()
        if isinstance(raw_steps, list):
            steps = tuple(str(step).strip() for step in raw_steps if str(step).strip())
        return Analysis(summary=summary, steps=steps or MISSING_STEPS)

    @staticmethod
    def _extract_error_details(response: httpx.Response) -> str:
        try:
            data = response.json()
            if isinstance(data, dict):
                error = data.get("error")
                if isinstance(error, dict) and "message" in error:
                    return str(error["message"])
                for key in ("error", "message", "detail"):
                    if key in data:
                        return str(data[key])
        except Exception:  # noqa: BLE001
            pass
        return response.text.strip() or f"status={response.status_code}"


def _strip_code_fence(text: str) -> str:
    # Some models wrap JSON in ```json fences even when asked not to.
    body = text.strip()
    if body.startswith("```"):
        body = body.split("\n", 1)[1] if "\n" in body else ""
        body = body.rsplit("```", 1)[0]
    return body.strip()


class GeminiAnalysisClient(AnalysisClient):
    provider_name = "gemini"

    def _endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def _headers(self) -> dict[str, str]:
        return {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
            **self._extra_headers,
        }

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.2,
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def _extract_text(self, data: dict[str, Any]) -> str:
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)


class ChatCompletionsAnalysisClient(AnalysisClient):
    """OpenAI-compatible /chat/completions (OpenRouter, DeepSeek, OpenAI)."""

    def __init__(self, *args: Any, provider_name: str = "openrouter", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.provider_name = provider_name

    def _endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            **self._extra_headers,
        }

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
        }

    def _extract_text(self, data: dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]


def build_analysis_client(settings: Settings) -> AnalysisClient:
    provider_mode = settings.ai_provider

    if provider_mode == "auto":
        if settings.gemini_api_key:
            provider_mode = "gemini"
        elif settings.openrouter_api_key:
            provider_mode = "openrouter"
        else:
            provider_mode = "gemini"

    if provider_mode == "openrouter":
        client: AnalysisClient = ChatCompletionsAnalysisClient(
            settings.openrouter_api_key,
            settings.openrouter_model,
            settings.openrouter_base_url,
            timeout=settings.ai_timeout_seconds,
            extra_headers={"X-Title": settings.app_name},
            provider_name="openrouter",
        )
        model = settings.openrouter_model
    else:
        if provider_mode != "gemini":
            logger.warning("unknown AI_PROVIDER=%s, falling back to gemini", provider_mode)
        client = GeminiAnalysisClient(
            settings.gemini_api_key,
            settings.gemini_model,
            settings.gemini_base_url,
            timeout=settings.ai_timeout_seconds,
        )
        model = settings.gemini_model

    if client.is_enabled():
        logger.info(
            "AI provider mode: %s -> active: %s | model: %s",
            settings.ai_provider,
            client.provider_name,
            model,
        )
    else:
        logger.warning("API key for %s is not set. AI analysis will be disabled.", client.provider_name)
    return client

# pranveda/core/llm.py
import json
import logging
import time
from typing import Any

from fastapi import Request
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from pranveda.core.config import Settings
from pranveda.core.errors import ProviderError, ServiceUnavailableError

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7
TOP_P = 0.8
TOP_K = 40
MAX_OUTPUT_TOKENS = 2048


class LLMClient:
    """
    Gemini wrapper that always asks for a JSON reply.

    `generate_json` returns the parsed object and the latency in ms. Any SDK
    failure, empty reply or non-JSON reply becomes a ProviderError.
    """

    def __init__(self, client: genai.Client, model: str):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMClient":
        return cls(genai.Client(api_key=settings.GEMINI_API_KEY), settings.GEMINI_MODEL)

    def generate_json(self, system_prompt: str, user_prompt: str) -> tuple[dict[str, Any], int]:
        config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=TEMPERATURE,
            top_p=TOP_P,
            top_k=TOP_K,
            max_output_tokens=MAX_OUTPUT_TOKENS,
            response_mime_type="application/json",
        )

        start = time.monotonic()
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=user_prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise ProviderError("AI request failed", details=str(exc)) from exc
        latency_ms = int((time.monotonic() - start) * 1000)

        text = response.text or ""
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ProviderError("AI returned a non-JSON reply", details=text[:500]) from exc
        if not isinstance(payload, dict):
            raise ProviderError("AI returned an unexpected payload", details=text[:500])

        logger.debug("Gemini %s answered in %d ms", self.model, latency_ms)
        return payload, latency_ms


def get_optional_llm_client(request: Request) -> LLMClient | None:
    return getattr(request.app.state, "llm", None)


def get_llm_client(request: Request) -> LLMClient:
    """FastAPI dependency; 503 when no Gemini key is configured."""
    client = get_optional_llm_client(request)
    if client is None:
        raise ServiceUnavailableError("AI service is not configured")
    return client

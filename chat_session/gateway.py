"""Sends the conversation to Gemini ``generateContent`` and returns the reply text."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from chat_session.errors import ApiError, ConfigurationError, TransportError
from chat_session.models import PendingTurn, Turn
from config.settings import Settings, get_settings


logger = logging.getLogger(__name__)

ATTACHMENT_INSTRUCTION = "Please analyze the image."
MISSING_KEY_MESSAGE = (
    "Missing GOOGLE_API_KEY credential. Add it to a .env file and restart the server."
)


class ModelGateway(Protocol):
    async def send(self, history: Sequence[Turn], new_turn: PendingTurn) -> str:
        ...


def require_api_key(settings: Settings) -> str:
    if not settings.google_api_key:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    return settings.google_api_key


def history_to_contents(history: Sequence[Turn]) -> List[Dict[str, Any]]:
    return [{"role": turn.role.value, "parts": [{"text": turn.text}]} for turn in history]


def new_turn_parts(new_turn: PendingTurn) -> List[Dict[str, Any]]:
    if new_turn.attachment is None:
        return [{"text": new_turn.text}]
    return [
        {
            "inlineData": {
                "data": new_turn.attachment.data,
                "mimeType": new_turn.attachment.mime_type,
            }
        },
        {"text": ATTACHMENT_INSTRUCTION},
    ]


def build_request_body(
    history: Sequence[Turn],
    new_turn: PendingTurn,
    temperature: Optional[float] = None,
    top_p: Optional[float] = None,
) -> Dict[str, Any]:
    contents = history_to_contents(history)
    contents.append({"role": "user", "parts": new_turn_parts(new_turn)})
    body: Dict[str, Any] = {"contents": contents}
    generation_config: Dict[str, float] = {}
    if temperature is not None:
        generation_config["temperature"] = temperature
    if top_p is not None:
        generation_config["topP"] = top_p
    if generation_config:
        body["generationConfig"] = generation_config
    return body


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.reason_phrase


def extract_reply_text(data: Dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        feedback = data.get("promptFeedback") or {}
        reason = feedback.get("blockReason")
        if reason:
            raise ApiError(f"Request was blocked: {reason}")
        raise ApiError("Empty response from Gemini API.")

    parts = (candidates[0].get("content") or {}).get("parts") or []
    texts = [part["text"] for part in parts if isinstance(part, dict) and part.get("text")]
    if not texts:
        reason = candidates[0].get("finishReason") or "no text"
        raise ApiError(f"Gemini API returned no text ({reason}).")
    return "".join(texts)


class GeminiGateway:
    """Calls the Gemini REST API over httpx."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client

    @property
    def endpoint(self) -> str:
        base = self.settings.api_base_url.rstrip("/")
        return f"{base}/models/{self.settings.gemini_model}:generateContent"

    async def send(self, history: Sequence[Turn], new_turn: PendingTurn) -> str:
        api_key = require_api_key(self.settings)
        body = build_request_body(
            history,
            new_turn,
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
        )
        logger.info(
            "Gemini request: model=%s history_turns=%s attachment=%s",
            self.settings.gemini_model,
            len(history),
            new_turn.attachment is not None,
        )

        headers = {"x-goog-api-key": api_key}
        try:
            if self._client is not None:
                response = await self._client.post(self.endpoint, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
                    response = await client.post(self.endpoint, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"Gemini API call failed: {exc}") from exc

        if response.is_error:
            raise ApiError(
                f"[{response.status_code}] {_error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ApiError("Gemini API returned invalid JSON.", status_code=response.status_code) from exc
        return extract_reply_text(data)


def build_gateway(settings: Optional[Settings] = None) -> ModelGateway:
    settings = settings or get_settings()
    if settings.gateway_backend == "langchain":
        from chat_session.lc_gateway import LangChainGateway

        return LangChainGateway(settings)
    if settings.gateway_backend != "rest":
        raise ConfigurationError(f"Unknown CHAT_GATEWAY backend: {settings.gateway_backend}")
    return GeminiGateway(settings)

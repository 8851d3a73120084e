from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import httpx
from google.genai import errors as genai_errors
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_google_genai.chat_models import ChatGoogleGenerativeAIError

from chat_session.errors import ApiError, TransportError
from chat_session.gateway import ATTACHMENT_INSTRUCTION, require_api_key
from chat_session.models import PendingTurn, Role, Turn
from config.settings import Settings, get_settings


logger = logging.getLogger(__name__)


def to_lc_messages(history: Sequence[Turn]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for turn in history:
        if turn.role is Role.MODEL:
            messages.append(AIMessage(content=turn.text))
        else:
            messages.append(HumanMessage(content=turn.text))
    return messages


def new_turn_message(new_turn: PendingTurn) -> HumanMessage:
    if new_turn.attachment is None:
        return HumanMessage(content=new_turn.text)
    attachment = new_turn.attachment
    return HumanMessage(
        content=[
            {
                "type": "image_url",
                "image_url": f"data:{attachment.mime_type};base64,{attachment.data}",
            },
            {"type": "text", "text": ATTACHMENT_INSTRUCTION},
        ]
    )


def _content_text(content) -> str:
    if isinstance(content, str):
        return content
    texts = []
    for part in content or []:
        if isinstance(part, str):
            texts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            texts.append(part.get("text") or "")
    return "".join(texts)


class LangChainGateway:
    """Same contract as ``GeminiGateway``, routed through ChatGoogleGenerativeAI."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def build_llm(self, api_key: str) -> ChatGoogleGenerativeAI:
        return ChatGoogleGenerativeAI(
            model=self.settings.gemini_model,
            google_api_key=api_key,
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
            timeout=self.settings.request_timeout,
            max_retries=0,
        )

    async def send(self, history: Sequence[Turn], new_turn: PendingTurn) -> str:
        api_key = require_api_key(self.settings)
        llm = self.build_llm(api_key)
        messages = to_lc_messages(history)
        messages.append(new_turn_message(new_turn))
        logger.info(
            "LangChain request: model=%s messages=%s attachment=%s",
            self.settings.gemini_model,
            len(messages),
            new_turn.attachment is not None,
        )

        try:
            result = await llm.ainvoke(messages)
        except (httpx.HTTPError, ConnectionError, TimeoutError) as exc:
            raise TransportError(f"Gemini API call failed: {exc}") from exc
        except genai_errors.APIError as exc:
            raise ApiError(str(exc), status_code=exc.code) from exc
        except ChatGoogleGenerativeAIError as exc:
            raise ApiError(str(exc)) from exc

        text = _content_text(result.content)
        if not text:
            raise ApiError("Empty response from Gemini API.")
        return text

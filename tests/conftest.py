"""Shared fixtures: settings with a fake key and scriptable gateways."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from chat_session.controller import SessionController
from config.settings import Settings


def make_settings(**overrides):
    settings = Settings()
    settings.google_api_key = "test-key"
    settings.gemini_model = "gemini-1.5-flash"
    settings.api_base_url = "https://gemini.test/v1beta"
    settings.temperature = 0.7
    settings.top_p = 0.95
    settings.gateway_backend = "rest"
    settings.notice_seconds = 4.0
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def make_gateway(reply="Hi there", side_effect=None):
    gateway = AsyncMock()
    if side_effect is not None:
        gateway.send.side_effect = side_effect
    else:
        gateway.send.return_value = reply
    return gateway


class BlockingGateway:
    """Gateway whose reply is held until ``release`` is called."""

    def __init__(self, reply="late reply"):
        self.reply = reply
        self.calls = []
        self._event = asyncio.Event()
        self.error = None

    def release(self, error=None):
        self.error = error
        self._event.set()

    async def send(self, history, new_turn):
        self.calls.append((tuple(history), new_turn))
        await self._event.wait()
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def gateway():
    return make_gateway()


@pytest.fixture
def controller(gateway):
    return SessionController(gateway, notice_seconds=0.05)

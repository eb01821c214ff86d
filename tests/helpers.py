"""Shared builders and fakes for the test suite."""

from __future__ import annotations

import json
from typing import Any, Optional

from src.config import (
    AppConfig,
    ScraperConfig,
    ServerConfig,
    StoreConfig,
    TelegramConfig,
)


def make_card(comp: dict[str, Any], key: str = "x") -> str:
    """One card as it appears in the decoded chunk (quotes still escaped)."""
    body = json.dumps({"competition": comp}, ensure_ascii=False)
    return '[\\"$\\",\\"div\\",\\"card-view-' + key + '\\",' + body.replace('"', '\\"') + "]"


def make_chunk(*cards: str) -> str:
    return '1:[\\"$\\",\\"section\\",null,{\\"children\\":[' + ",".join(cards) + "]}]"


def make_document(*fragments: str) -> str:
    """A listing page whose inline scripts push the given payload fragments."""
    scripts = "".join(
        f'<script>self.__next_f.push([1,"{fragment}"])</script>' for fragment in fragments
    )
    return f"<!DOCTYPE html><html><head></head><body><main></main>{scripts}</body></html>"


def make_config(
    bot_token: str = "",
    chat_id: str = "",
    max_message_length: int = 4096,
) -> AppConfig:
    return AppConfig(
        scraper=ScraperConfig(
            target_url="https://competehub.test/zh/competitions",
            competition_page_base="https://competehub.test/competitions/",
        ),
        telegram=TelegramConfig(
            bot_token=bot_token,
            chat_id=chat_id,
            max_message_length=max_message_length,
            send_delay_seconds=0,
        ),
        store=StoreConfig(path=":memory:"),
        server=ServerConfig(),
    )


class MemoryStore:
    """Dict-backed KeyValueStore that records writes."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.ttls: dict[str, int] = {}
        self.gets: list[str] = []

    async def get(self, key: str) -> Optional[str]:
        self.gets.append(key)
        return self.data.get(key)

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self.data[key] = value
        self.ttls[key] = ttl_seconds


class FakeMessage:
    def __init__(self, message_id: int) -> None:
        self.message_id = message_id


class FakeBot:
    """Bot stand-in for TelegramNotifier; fails the sends listed in `fail_on`."""

    username = "competehub_test_bot"

    def __init__(
        self,
        fail_on: tuple[int, ...] = (),
        on_send=None,
        initialize_error: Optional[Exception] = None,
    ) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail_on = fail_on
        self.on_send = on_send
        self.initialize_error = initialize_error
        self.initialized = False
        self.closed = False

    async def initialize(self) -> None:
        if self.initialize_error is not None:
            raise self.initialize_error
        self.initialized = True

    async def send_message(self, **kwargs: Any) -> FakeMessage:
        from telegram.error import BadRequest

        index = len(self.sent)
        self.sent.append(kwargs)
        if self.on_send is not None:
            self.on_send(kwargs)
        if index in self.fail_on:
            raise BadRequest("Can't parse entities")
        return FakeMessage(1000 + index)

    async def shutdown(self) -> None:
        self.closed = True

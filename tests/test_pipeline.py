"""Whole workflow runs against fakes."""

import asyncio
import dataclasses

import httpx
import pytest

from src.notifier.dispatcher import NotificationDispatcher
from src.notifier.telegram_bot import TelegramNotifier
from src.scraper.client import CompeteHubClient, FetchError
from src.scraper.pipeline import CompetitionWorkflow
from tests.helpers import FakeBot, MemoryStore, make_card, make_chunk, make_config, make_document

LISTING = make_document(make_chunk(
    make_card({"id": "a1", "title": "Vision Cup", "source": "Kaggle"}, "a1"),
    make_card({"id": "b2", "title": "Speech Sprint"}, "b2"),
))


def _workflow(store, html=LISTING, status=200, bot=None):
    config = make_config(bot_token="t", chat_id="42")
    transport = httpx.MockTransport(lambda request: httpx.Response(status, text=html))
    client = CompeteHubClient(config.scraper, transport=transport)
    dispatcher = NotificationDispatcher(
        config.telegram,
        config.scraper,
        telegram=TelegramNotifier(config.telegram, bot=bot or FakeBot()),
    )
    return CompetitionWorkflow(config, store, client=client, dispatcher=dispatcher)


def test_first_run_notifies_and_second_run_finds_nothing_new():
    store = MemoryStore()
    bot = FakeBot()
    workflow = _workflow(store, bot=bot)

    async def scenario():
        first = await workflow.run()
        second = await workflow.run()
        await workflow.close()
        return first, second

    first, second = asyncio.run(scenario())

    assert (first.fetched, first.new_items, first.notified) == (2, 2, 2)
    assert (second.fetched, second.new_items, second.notified) == (2, 0, 0)
    assert set(store.data) == {"seen:a1", "seen:b2"}
    assert len(bot.sent) == 1
    assert bot.closed


def test_markers_are_stored_before_sending():
    store = MemoryStore()
    snapshots = []
    bot = FakeBot(on_send=lambda kwargs: snapshots.append(set(store.data)))

    asyncio.run(_workflow(store, bot=bot).run())

    assert snapshots == [{"seen:a1", "seen:b2"}]


def test_failed_send_still_keeps_markers():
    store = MemoryStore()

    result = asyncio.run(_workflow(store, bot=FakeBot(fail_on=(0,))).run())

    assert (result.new_items, result.notified) == (2, 0)
    assert set(store.data) == {"seen:a1", "seen:b2"}


def test_only_unseen_competitions_are_notified():
    store = MemoryStore({"seen:a1": '{"id":"a1","storedAt":"2026-10-01T00:00:00.000Z"}'})
    bot = FakeBot()

    result = asyncio.run(_workflow(store, bot=bot).run())

    assert result.to_dict()["newItems"] == 1
    assert result.notified == 1
    assert "Speech Sprint" in bot.sent[0]["text"]
    assert "Vision Cup" not in bot.sent[0]["text"]


def test_without_store_every_run_treats_all_as_new():
    bot = FakeBot()
    workflow = _workflow(None, bot=bot)

    async def scenario():
        return [await workflow.run() for _ in range(2)]

    results = asyncio.run(scenario())

    assert [r.new_items for r in results] == [2, 2]
    assert len(bot.sent) == 2


def test_page_without_payload_reports_zero_counts():
    result = asyncio.run(_workflow(MemoryStore(), html="<html></html>").run())

    assert (result.fetched, result.new_items, result.notified) == (0, 0, 0)
    assert result.timestamp.endswith("Z")


def test_fetch_failure_propagates_without_side_effects():
    store = MemoryStore()
    bot = FakeBot()

    with pytest.raises(FetchError):
        asyncio.run(_workflow(store, status=502, bot=bot).run())

    assert store.data == {}
    assert bot.sent == []


def test_debug_dump_setting_reaches_the_extractor():
    config = make_config()
    dumping = dataclasses.replace(config, scraper=dataclasses.replace(config.scraper, debug_dump=True))

    assert CompetitionWorkflow(config, None).extractor.debug_dump is False
    assert CompetitionWorkflow(dumping, None).extractor.debug_dump is True

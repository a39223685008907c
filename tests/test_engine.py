"""Tests for ReadingEngine: readings, persistence and history."""
import asyncio
import random

import pytest

from taro.catalog import CardCatalog
from taro.engine import READINGS_RANGE, ReadingEngine
from taro.selector import Selector
from tests.fakes import make_store


def run_reading(engine, spread, question="Will it work?", user="42"):
    async def go():
        performed = await engine.perform_reading(spread, question, user)
        if performed is None:
            return None, None
        return performed.reading, await performed.persisted

    return asyncio.run(go())


class TestPerformReading:
    @pytest.mark.parametrize(
        "spread,count", [("one", 1), ("three", 3), ("celt", 10), ("kantan", 3), ("nitaku", 8), ("horse", 7)]
    )
    def test_slot_count_matches_spread(self, engine, spread, count):
        reading, _ = run_reading(engine, spread)

        assert len(reading.slots) == count
        assert len({s.card.id for s in reading.slots}) == count

    def test_labels_keep_spread_order(self, engine):
        reading, _ = run_reading(engine, "three")

        assert [s.label for s in reading.slots] == ["Past", "Present", "Future"]
        assert reading.spread_name == "three"
        assert reading.question == "Will it work?"
        assert reading.requester_id == "42"
        assert reading.created_at.tzinfo is not None

    def test_reading_is_stored(self, engine, store):
        reading, persisted = run_reading(engine, "three")

        assert persisted is True
        range_id, row = store.appended[0]
        assert range_id == READINGS_RANGE
        assert row[1:4] == ["42", "Will it work?", "three"]
        assert row[0] == reading.created_at.isoformat()
        assert row[4] == reading.summary()

    def test_summary_format(self, engine):
        reading, _ = run_reading(engine, "one")

        slot = reading.slots[0]
        expected = f"Message:{slot.card.name}({slot.card.orientation.label})"
        assert reading.summary() == expected

    def test_storage_failure_does_not_fail_the_reading(self, engine, store):
        store.fail_appends = True

        reading, persisted = run_reading(engine, "horse")

        assert reading is not None
        assert len(reading.slots) == 7
        assert persisted is False

    def test_unknown_spread_draws_and_stores_nothing(self, store):
        catalog = CardCatalog(store)
        asyncio.run(catalog.load())
        selector = Selector(catalog, random.Random(1))
        calls = []
        original = selector.select_random_cards
        selector.select_random_cards = lambda n: calls.append(n) or original(n)
        engine = ReadingEngine(catalog, selector, store)

        reading, persisted = run_reading(engine, "unknown-spread")

        assert reading is None
        assert calls == []
        assert store.appended == []

    def test_drain_waits_for_pending_writes(self, engine, store):
        async def go():
            await engine.perform_reading("celt", "q", "7")
            await engine.perform_reading("one", "q", "7")
            await engine.drain()

        asyncio.run(go())

        assert len(store.appended) == 2


class TestHistory:
    def _engine(self, readings):
        store = make_store(readings=readings)
        catalog = CardCatalog(store)
        asyncio.run(catalog.load())
        return ReadingEngine(catalog, Selector(catalog), store), store

    def test_filters_by_user_and_sorts_newest_first(self):
        engine, _ = self._engine([
            ["2024-01-01T10:00:00+00:00", "1", "old", "one", "x"],
            ["2024-03-01T10:00:00+00:00", "2", "other user", "one", "x"],
            ["2024-02-01T10:00:00Z", "1", "newer", "three", "x"],
            ["2024-01-15T10:00:00+00:00", "1", "middle", "celt", "x"],
        ])

        records = asyncio.run(engine.history("1"))

        assert [r.question for r in records] == ["newer", "middle", "old"]
        assert all(r.requester_id == "1" for r in records)

    def test_limit(self):
        rows = [
            [f"2024-01-{day:02d}T10:00:00+00:00", "1", f"q{day}", "one", "x"]
            for day in range(1, 11)
        ]
        engine, _ = self._engine(rows)

        records = asyncio.run(engine.history("1", limit=5))

        assert len(records) == 5
        assert records[0].question == "q10"
        assert records[-1].question == "q6"

    def test_unparseable_timestamps_go_last(self):
        engine, _ = self._engine([
            ["yesterday", "1", "broken", "one", "x"],
            ["2024-01-01T10:00:00+00:00", "1", "fine", "one", "x"],
        ])

        records = asyncio.run(engine.history("1"))

        assert [r.question for r in records] == ["fine", "broken"]

    def test_store_failure_gives_empty_history(self):
        engine, store = self._engine([["2024-01-01T10:00:00+00:00", "1", "q", "one", "x"]])
        store.fail_reads = True

        assert asyncio.run(engine.history("1")) == []

    def test_short_rows_are_padded(self):
        engine, _ = self._engine([["2024-01-01T10:00:00+00:00", "1", "q"]])

        (record,) = asyncio.run(engine.history("1"))

        assert record.spread_name == ""
        assert record.result_summary == ""

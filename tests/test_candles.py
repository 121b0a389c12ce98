"""Tests for the light-a-candle counter."""

import asyncio
import json
from datetime import date

import pytest

from parish.candles import CandleStore
from parish.core.candles import CandleState, count_on, light


@pytest.fixture
def candles(storage, clock):
    return CandleStore(storage, clock)


class TestCounting:
    def test_count_from_another_day_is_zero(self, today):
        state = CandleState(last_lit_day=date(2025, 1, 14), today_count=4)
        assert count_on(state, today) == 0
        assert count_on(state, date(2025, 1, 14)) == 4

    def test_light_resets_on_new_day(self, today):
        state = light(CandleState(last_lit_day=date(2025, 1, 14), today_count=4), today)
        assert state == CandleState(last_lit_day=today, today_count=1)
        assert light(state, today).today_count == 2

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            CandleState.from_dict({"last_lit_day": "2025-01-15", "today_count": -1})


class TestCandleStore:
    def test_starts_unlit(self, candles):
        assert candles.count() == 0
        assert candles.has_lit_today() is False

    def test_light_counts_up(self, candles):
        assert candles.light() == 1
        assert candles.light() == 2
        assert candles.count() == 2
        assert candles.has_lit_today() is True

    def test_rollover(self, candles, now):
        candles.light()
        candles.light()
        now.set_day(date(2025, 1, 16))

        assert candles.count() == 0
        assert candles.has_lit_today() is False
        assert candles.light() == 1

    def test_persists(self, storage, clock, candles):
        candles.light()
        candles.light()
        assert json.loads(storage.records["candles"]) == {"last_lit_day": "2025-01-15", "today_count": 2}
        assert CandleStore(storage, clock).count() == 2

    def test_subscribers_get_todays_count(self, candles):
        seen = []
        candles.subscribe(seen.append)
        candles.light()
        candles.light()
        assert seen == [1, 2]

    @pytest.mark.parametrize(
        "raw",
        ["{broken", json.dumps(["a"]), json.dumps({"last_lit_day": "yesterday"}), json.dumps({"today_count": "x"})],
    )
    def test_unreadable_state_starts_at_zero(self, storage, clock, raw):
        storage.records["candles"] = raw
        candles = CandleStore(storage, clock)
        assert candles.count() == 0
        assert candles.light() == 1

    def test_debounced_inside_loop(self, storage, clock):
        candles = CandleStore(storage, clock, save_delay=60)

        async def scenario():
            candles.light()
            candles.light()

        asyncio.run(scenario())
        assert "candles" not in storage.records
        assert candles.flush() is True
        assert storage.saves == 1

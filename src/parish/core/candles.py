"""Pure light-a-candle counting - candles lit per calendar day."""

from dataclasses import dataclass
from datetime import date


@dataclass
class CandleState:
    """Candles lit on the last day any were lit."""

    last_lit_day: date | None = None
    today_count: int = 0

    def to_dict(self) -> dict:
        return {
            "last_lit_day": self.last_lit_day.isoformat() if self.last_lit_day else None,
            "today_count": self.today_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CandleState":
        day = data.get("last_lit_day")
        count = int(data.get("today_count", 0))
        if count < 0:
            raise ValueError(f"today_count must not be negative, got {count}")
        return cls(last_lit_day=date.fromisoformat(day) if day else None, today_count=count)


def count_on(state: CandleState, day: date) -> int:
    """Candles lit on ``day``; a count from any other day reads as zero."""
    return state.today_count if state.last_lit_day == day else 0


def light(state: CandleState, day: date) -> CandleState:
    """State after lighting one more candle on ``day``."""
    return CandleState(last_lit_day=day, today_count=count_on(state, day) + 1)

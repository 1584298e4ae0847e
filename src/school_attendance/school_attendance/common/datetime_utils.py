from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from ..core.constants import DEFAULT_REPORT_DAYS, MONTH_KEY_FORMAT


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def month_key(value: date) -> str:
    return value.strftime(MONTH_KEY_FORMAT)


def default_window(
    start: Optional[date],
    end: Optional[date],
    *,
    days: int = DEFAULT_REPORT_DAYS,
) -> Tuple[date, date]:
    """Fill a missing report window with the last ``days`` days ending today."""
    end = end or now_local().date()
    start = start or end - timedelta(days=days)
    return start, end

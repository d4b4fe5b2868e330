# backend/counterfactual/services/comparison/date_range.py
"""
Date range to request from the market data provider.

End date:
    Today on the market clock (America/New_York by default), moved one day
    forward once the market has closed (16:00 by default), so that a request
    made after the close includes the day's just-published closing price.

Start date:
    The earliest trade date, or one year before the end date when there are
    no trades.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from counterfactual.services.comparison.types import DateRange, Trade
from counterfactual.services.constants import (
    DEFAULT_LOOKBACK_YEARS,
    DEFAULT_MARKET_CLOSE_HOUR,
    DEFAULT_MARKET_TIMEZONE,
)


def market_end_date(
        now: datetime | None = None,
        timezone_name: str = DEFAULT_MARKET_TIMEZONE,
        close_hour: int = DEFAULT_MARKET_CLOSE_HOUR,
) -> date:
    """
    Last date to request, on the market clock.

    Args:
        now: Current instant; naive values are read as market-local time.
             Defaults to the real current time.
        timezone_name: IANA zone of the market clock
        close_hour: Local hour at or after which today's close is published

    Returns:
        Today in the market zone, or tomorrow if at/after the close
    """
    zone = ZoneInfo(timezone_name)
    if now is None:
        local_now = datetime.now(zone)
    elif now.tzinfo is None:
        local_now = now.replace(tzinfo=zone)
    else:
        local_now = now.astimezone(zone)

    end = local_now.date()
    if local_now.hour >= close_hour:
        end += timedelta(days=1)
    return end


def years_before(day: date, years: int) -> date:
    """Same calendar day `years` earlier; Feb 29 rolls forward to Mar 1."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return date(day.year - years, 3, 1)


def get_date_range(
        trades: Sequence[Trade],
        now: datetime | None = None,
        timezone_name: str = DEFAULT_MARKET_TIMEZONE,
        close_hour: int = DEFAULT_MARKET_CLOSE_HOUR,
) -> DateRange:
    """
    Start/end dates (ISO) covering every trade up to the latest close.

    Args:
        trades: Trades to cover (only their dates are used)
        now: Current instant (see market_end_date)
        timezone_name: IANA zone of the market clock
        close_hour: Local market close hour

    Returns:
        DateRange with ISO start and end dates
    """
    end = market_end_date(now, timezone_name, close_hour)

    if not trades:
        start = years_before(end, DEFAULT_LOOKBACK_YEARS).isoformat()
    else:
        start = min(trade.date for trade in trades)

    return DateRange(start_date=start, end_date=end.isoformat())

"""Compensation cycle calendar.

Pure date arithmetic used to place assessment rounds inside recurring
compensation cycles. All values are timezone-aware UTC datetimes; anything
that depends on the current time accepts an explicit ``now`` so callers (and
tests) can pin the clock.

  round start  = midnight(anchor) + 1 period + start delay   (never before today)
  round end    = day(start) + duration days, at 23:59:00 UTC
  next anchor  = anchor + 1 period
"""
import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

from peer_rounds.errors import InvalidCycleError
from peer_rounds.models.enums import CompensationPeriod, PERIOD_DAYS, PERIOD_MONTHS

ROUND_END_HOUR = 23
ROUND_END_MINUTE = 59

PeriodLike = Union[CompensationPeriod, str]


def as_utc(moment: Union[datetime, date]) -> datetime:
    """Normalise a date or datetime to an aware UTC datetime.

    Naive datetimes are treated as already being UTC.
    """
    if not isinstance(moment, datetime):
        return datetime.combine(moment, time.min, tzinfo=timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


def beginning_of_today(now: Optional[datetime] = None) -> datetime:
    """UTC midnight of the current day."""
    current = _now(now)
    return datetime(current.year, current.month, current.day, tzinfo=timezone.utc)


def end_of_today(now: Optional[datetime] = None) -> datetime:
    """UTC 23:59:59.999 of the current day."""
    return beginning_of_today(now) + timedelta(hours=23, minutes=59, seconds=59, milliseconds=999)


def coerce_period(period: PeriodLike) -> CompensationPeriod:
    """Resolve a period value, raising InvalidCycleError if unrecognized."""
    if isinstance(period, CompensationPeriod):
        return period
    try:
        return CompensationPeriod(str(period).lower())
    except ValueError:
        raise InvalidCycleError(f"Invalid compensation cycle: {period!r}") from None


def add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping to the last day of shorter months."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def advance_by_period(moment: datetime, period: PeriodLike, periods: int = 1) -> datetime:
    """Advance ``moment`` by ``periods`` whole compensation periods."""
    cycle = coerce_period(period)
    if cycle in PERIOD_DAYS:
        return moment + timedelta(days=PERIOD_DAYS[cycle] * periods)
    if cycle in PERIOD_MONTHS:
        return add_months(moment, PERIOD_MONTHS[cycle] * periods)
    raise InvalidCycleError(f"Invalid compensation cycle: {period!r}")


def round_start_time(
    period: PeriodLike,
    cycle_anchor: Union[datetime, date],
    start_delay_days: int,
    now: Optional[datetime] = None,
) -> datetime:
    """Start of the assessment round for the cycle beginning at ``cycle_anchor``.

    Args:
        period: Compensation period of the organization.
        cycle_anchor: Start day of the current compensation cycle.
        start_delay_days: Days to wait after the cycle closes.
        now: Clock override.

    Returns:
        UTC midnight of the computed day, clamped to the start of today.

    Raises:
        InvalidCycleError: If ``period`` is not a known compensation period.
    """
    anchor = as_utc(cycle_anchor)
    start = datetime(anchor.year, anchor.month, anchor.day, tzinfo=timezone.utc)
    start = advance_by_period(start, period) + timedelta(days=int(start_delay_days or 0))

    today = beginning_of_today(now)
    if start < today:
        # Missed runs or clock drift: open the round today instead of in the past
        return today
    return start


def round_end_time(start_time: Union[datetime, date], assessment_duration_days: int) -> datetime:
    """End of a round: start day + duration days, pinned to 23:59:00 UTC."""
    start = as_utc(start_time)
    end_day = start.date() + timedelta(days=int(assessment_duration_days or 0))
    return datetime(
        end_day.year, end_day.month, end_day.day,
        ROUND_END_HOUR, ROUND_END_MINUTE, 0,
        tzinfo=timezone.utc,
    )


def next_compensation_cycle_start(current_anchor: Union[datetime, date], period: PeriodLike) -> datetime:
    """Anchor of the following compensation cycle."""
    return advance_by_period(as_utc(current_anchor), period)

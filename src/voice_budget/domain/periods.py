import calendar
from datetime import date, datetime, time, timedelta

PERIODS = ("month", "week")


def month_bounds(today: date) -> tuple[datetime, datetime]:
    last_day = calendar.monthrange(today.year, today.month)[1]
    first = datetime.combine(today.replace(day=1), time.min)
    last = datetime.combine(today.replace(day=last_day), time.max)
    return first, last


def week_bounds(today: date) -> tuple[datetime, datetime]:
    # Weeks start on Sunday.
    offset = (today.weekday() + 1) % 7
    first_day = today - timedelta(days=offset)
    first = datetime.combine(first_day, time.min)
    last = datetime.combine(first_day + timedelta(days=6), time.max)
    return first, last


def period_bounds(period: str | None, today: date | None = None) -> tuple[datetime, datetime]:
    """Inclusive bounds of the current week or month; unknown periods mean month."""
    today = today or date.today()
    if (period or "").lower() == "week":
        return week_bounds(today)
    return month_bounds(today)


def normalize_period(period: str | None) -> str:
    value = (period or "month").lower()
    return value if value in PERIODS else "month"


def parse_day(value: str | date | None) -> date | None:
    if value is None or isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


def resolve_date_range(
    start_date: str | date | None,
    end_date: str | date | None,
) -> tuple[datetime | None, datetime | None]:
    """Turn optional day strings into inclusive datetime bounds."""
    start = parse_day(start_date)
    end = parse_day(end_date)
    return (
        datetime.combine(start, time.min) if start else None,
        datetime.combine(end, time.max) if end else None,
    )

"""Date-range filters used by list screens ("today", "last7days", ...)."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from dateutil.relativedelta import relativedelta

from database import utcnow

DateLike = Union[str, datetime, None]


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(dt: datetime) -> datetime:
    return start_of_day(dt).replace(day=1)


def previous_month_start(dt: datetime) -> datetime:
    return start_of_month(dt) - relativedelta(months=1)


def parse_date(value: DateLike) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def build_date_filter(
    field: str,
    range_type: Optional[str],
    start_date: DateLike = None,
    end_date: DateLike = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build a MongoDB filter on `field` for a named range.

    Unknown or empty range types give an empty filter. "custom" needs both
    dates and raises ValueError otherwise.
    """
    now = now or utcnow()
    today = start_of_day(now)

    if range_type == "today":
        cond = {"$gte": today}
    elif range_type == "yesterday":
        cond = {"$gte": today - timedelta(days=1), "$lt": today}
    elif range_type == "last7days":
        cond = {"$gte": now - timedelta(days=7)}
    elif range_type == "last30days":
        cond = {"$gte": now - timedelta(days=30)}
    elif range_type == "thismonth":
        cond = {"$gte": start_of_month(now)}
    elif range_type == "lastmonth":
        cond = {"$gte": previous_month_start(now), "$lt": start_of_month(now)}
    elif range_type == "custom":
        start, end = parse_date(start_date), parse_date(end_date)
        if start is None or end is None:
            raise ValueError("Missing custom date range")
        cond = {"$gte": start, "$lte": end}
    else:
        return {}
    return {field: cond}


def as_datetime(value: Any) -> Optional[datetime]:
    """Stored timestamps are datetimes, older documents carry ISO strings."""
    try:
        return parse_date(value)
    except (TypeError, ValueError):
        return None


def format_day(value: Any) -> str:
    """Format as "5 Mar 2025"; "N/A" when the value is not a date."""
    dt = as_datetime(value)
    if dt is None:
        return "N/A"
    return f"{dt.day} {dt.strftime('%b %Y')}"


def add_months(dt: datetime, months: int) -> datetime:
    """Calendar-month shift; the 31st lands on the last day of shorter months."""
    return dt + relativedelta(months=months)

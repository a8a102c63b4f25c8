from datetime import date, datetime, timedelta, timezone


def normalize_trip_date(value) -> date:
    """
    Reduce a date, datetime or ISO string to the calendar day the
    availability ledger is keyed on. Aware datetimes are read in UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("date is required")
        if len(text) == 10:
            return date.fromisoformat(text)
        return normalize_trip_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    raise ValueError(f"Unsupported date value: {value!r}")


def month_bounds(month: str) -> tuple[date, date]:
    """'2026-07' -> (2026-07-01, 2026-08-01), end exclusive."""
    try:
        year_str, month_str = (month or "").strip().split("-")
        start = date(int(year_str), int(month_str), 1)
    except ValueError:
        raise ValueError("Invalid month. Use YYYY-MM") from None
    end = (start + timedelta(days=32)).replace(day=1)
    return start, end


def utc_today() -> date:
    return datetime.utcnow().date()

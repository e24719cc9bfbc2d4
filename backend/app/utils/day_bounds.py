"""
Tages- und Wochengrenzen in der Anzeige-Zeitzone.

Zeitstempel werden in UTC gespeichert; SQLite liefert sie ohne tzinfo zurück,
daher normalisiert as_utc() beim Lesen.
"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from app.core.config import settings


def get_tz(name: str | None = None) -> ZoneInfo:
    return ZoneInfo(name or settings.TIMEZONE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date(value: datetime, tz: ZoneInfo | None = None) -> date:
    """Kalendertag eines Zeitstempels in der Anzeige-Zeitzone."""
    return as_utc(value).astimezone(tz or get_tz()).date()


def day_bounds(day: date, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """[Start, Ende) des lokalen Kalendertags, als UTC."""
    tz = tz or get_tz()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def week_start(day: date) -> date:
    """Montag der Woche, die `day` enthält."""
    return day - timedelta(days=day.weekday())


def week_bounds(day: date, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """[Montag 00:00, nächster Montag 00:00) als UTC."""
    monday = week_start(day)
    start, _ = day_bounds(monday, tz)
    end, _ = day_bounds(monday + timedelta(days=7), tz)
    return start, end


def whole_minutes(start: datetime, end: datetime) -> int:
    """Abgerundete Minuten zwischen zwei Zeitstempeln, nie negativ."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return max(0, int(seconds // 60))

"""
Minuten-Angaben für die Anzeige formatieren.
"""


def format_hours_minutes(minutes: int | None) -> str:
    """485 → '8:05'. None gilt als 0, negative Werte bekommen ein Minus."""
    if not minutes:
        return "0:00"
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(abs(int(minutes)), 60)
    return f"{sign}{hours}:{mins:02d}"


def format_duration(minutes: int | None) -> str:
    """485 → '8h 5m', 45 → '45m', 120 → '2h'."""
    if not minutes:
        return "0m"
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(abs(int(minutes)), 60)
    if hours and mins:
        return f"{sign}{hours}h {mins}m"
    if hours:
        return f"{sign}{hours}h"
    return f"{sign}{mins}m"


def format_clock(seconds: int | None) -> str:
    """Laufende Stoppuhr: 3725 → '01:02:05'."""
    total = max(0, int(seconds or 0))
    hours, rest = divmod(total, 3600)
    mins, secs = divmod(rest, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d}"

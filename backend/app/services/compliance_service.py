"""
Compliance-Regeln für erfasste Arbeitszeit.
Prüft Essens- und Ruhepausenpflicht sowie Überstunden-Schwellen.
Reine Funktionen ohne Seiteneffekte – genutzt von Tages- und Wochenbericht
und von den Status-Helfern der Stempeluhr.
"""
from dataclasses import dataclass

STANDARD_DAY_MINUTES   = 480    # 8h
STANDARD_WEEK_MINUTES  = 2400   # 40h
MEAL_BREAK_THRESHOLD   = 300    # ab >5h Arbeit
MEAL_BREAK_MINUTES     = 30
REST_BREAK_THRESHOLD   = 240    # ab >4h Arbeit
MIN_WORK_BEFORE_BREAK  = 60     # Minuten in der laufenden Sitzung

MEAL_BREAK_NOTE = (
    f"Meal break required: at least {MEAL_BREAK_MINUTES} minutes of break "
    f"after {MEAL_BREAK_THRESHOLD // 60} hours of work"
)
REST_BREAK_NOTE = (
    f"Rest break required: at least one break after {REST_BREAK_THRESHOLD // 60} hours of work"
)


@dataclass
class ComplianceResult:
    needs_meal_break: bool = False
    needs_rest_break: bool = False
    notes: str | None = None

    @property
    def is_ok(self) -> bool:
        return not (self.needs_meal_break or self.needs_rest_break)


@dataclass
class BreakRequirements:
    can_take_break: bool
    requires_meal_break: bool
    suggested_break_type: str | None = None
    next_break_in: int | None = None
    compliance_message: str | None = None


def evaluate(total_work_minutes: int, total_break_minutes: int, break_count: int) -> ComplianceResult:
    # Regeln werden unabhängig voneinander ausgewertet (kein Kurzschluss)
    needs_meal = total_work_minutes > MEAL_BREAK_THRESHOLD and total_break_minutes < MEAL_BREAK_MINUTES
    needs_rest = total_work_minutes > REST_BREAK_THRESHOLD and break_count == 0

    notes = []
    if needs_meal:
        notes.append(MEAL_BREAK_NOTE)
    if needs_rest:
        notes.append(REST_BREAK_NOTE)

    return ComplianceResult(
        needs_meal_break=needs_meal,
        needs_rest_break=needs_rest,
        notes="; ".join(notes) if notes else None,
    )


def overtime_minutes(work_minutes: int, standard_minutes: int) -> int:
    return max(0, work_minutes - standard_minutes)


def is_long_day(work_minutes: int) -> bool:
    return work_minutes > STANDARD_DAY_MINUTES


def break_requirements(
    *,
    is_working: bool,
    session_work_minutes: int,
    total_work_minutes: int,
    total_break_minutes: int,
    break_count: int,
) -> BreakRequirements:
    """
    Pausen-Hinweis für die laufende Sitzung.

    total_* sind Tageswerte inklusive laufendem Intervall.
    """
    if not is_working:
        return BreakRequirements(
            can_take_break=False,
            requires_meal_break=False,
            compliance_message="Clock in to start earning break time",
        )

    if session_work_minutes < MIN_WORK_BEFORE_BREAK:
        return BreakRequirements(
            can_take_break=False,
            requires_meal_break=False,
            next_break_in=MIN_WORK_BEFORE_BREAK - session_work_minutes,
            compliance_message=f"Work {MIN_WORK_BEFORE_BREAK}+ minutes to earn your first break",
        )

    result = evaluate(total_work_minutes, total_break_minutes, break_count)
    if result.needs_meal_break:
        return BreakRequirements(
            can_take_break=True,
            requires_meal_break=True,
            suggested_break_type="Lunch",
            compliance_message=f"Meal break required after {MEAL_BREAK_THRESHOLD // 60} hours of work",
        )
    if result.needs_rest_break:
        return BreakRequirements(
            can_take_break=True,
            requires_meal_break=False,
            suggested_break_type="Rest",
            compliance_message=f"Rest break required after {REST_BREAK_THRESHOLD // 60} hours of work",
        )

    # Lunch erst ab 5h vorschlagen
    return BreakRequirements(
        can_take_break=True,
        requires_meal_break=False,
        suggested_break_type="Lunch" if total_work_minutes >= MEAL_BREAK_THRESHOLD else "Coffee",
        compliance_message="You've earned break time!",
    )

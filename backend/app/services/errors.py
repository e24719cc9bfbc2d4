"""
Fehlerarten der Zeiterfassung.

PolicyError: Anfrage passt nicht zum aktuellen Zustand (vom Nutzer korrigierbar).
InfrastructureError: Speicher ist ausgefallen oder wurde parallel verändert.
Beide Gruppen dürfen nie unter einer gemeinsamen Fehlerart gemeldet werden.
"""


class TimeTrackingError(Exception):
    code = "time_tracking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PolicyError(TimeTrackingError):
    code = "policy_error"


class InvalidTransition(PolicyError):
    code = "invalid_transition"

    def __init__(self, action: str, state: str, message: str | None = None):
        self.action = action
        self.state = state
        super().__init__(message or f"Cannot {action.replace('_', ' ')} while {state.replace('_', ' ')}")


class BreakNotYetAllowed(PolicyError):
    code = "break_not_yet_allowed"

    def __init__(self, elapsed_minutes: int, required_minutes: int):
        self.elapsed_minutes = elapsed_minutes
        self.required_minutes = required_minutes
        super().__init__(
            f"Work at least {required_minutes} minutes before taking a break "
            f"({elapsed_minutes} worked so far)"
        )


class InfrastructureError(TimeTrackingError):
    code = "infrastructure_error"


class PersistenceFailure(InfrastructureError):
    code = "persistence_failure"


class ConcurrentModification(InfrastructureError):
    code = "concurrent_modification"


class UnknownEmployee(PolicyError):
    code = "unknown_employee"

    def __init__(self, employee_id):
        self.employee_id = employee_id
        super().__init__(f"No active employee {employee_id}")

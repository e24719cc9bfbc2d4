from app.models.tenant import Tenant
from app.models.user import User
from app.models.employee import Employee
from app.models.time_entry import TimeEntry, DailyApproval

__all__ = [
    "Tenant",
    "User",
    "Employee",
    "TimeEntry",
    "DailyApproval",
]

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, DateTime, Boolean, ForeignKey, Integer, Text, Date, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

KIND_WORK = "work"
KIND_BREAK = "break"
BREAK_TYPES = ("Coffee", "Lunch", "Rest")

APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_REJECTED = "rejected"


def classify_notes(notes: str | None) -> str:
    """Altbestand ohne kind-Spalte: Notiz mit 'break' gilt als Pause."""
    if notes and "break" in notes.lower():
        return KIND_BREAK
    return KIND_WORK


class TimeEntry(Base):
    """
    Ein Zeitintervall (Arbeit oder Pause). Alle Intervalle zwischen einem
    Einstempeln und dem zugehörigen Ausstempeln teilen dieselbe session_id.
    """
    __tablename__ = "time_entries"
    __table_args__ = (
        Index("ix_time_entries_employee_clock_in", "employee_id", "clock_in"),
        Index("ix_time_entries_open", "employee_id", "clock_out"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    employee_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    session_id: Mapped[uuid.UUID] = mapped_column(nullable=False, default=uuid.uuid4)

    # work | break; NULL nur bei Altbestand ohne kind-Spalte → classify_notes
    kind: Mapped[str | None] = mapped_column(String(20), nullable=True, default=KIND_WORK)
    break_type: Mapped[str | None] = mapped_column(String(20), nullable=True)  # Coffee | Lunch | Rest

    clock_in: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    clock_out: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Freigabe durch Manager
    approval_status: Mapped[str] = mapped_column(String(20), default=APPROVAL_PENDING)  # pending | approved | rejected
    approved_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approval_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Von der Stale-Session-Bereinigung automatisch geschlossen
    needs_review: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    employee: Mapped["Employee"] = relationship(back_populates="time_entries")

    @property
    def is_break(self) -> bool:
        return (self.kind or classify_notes(self.notes)) == KIND_BREAK

    @property
    def break_label(self) -> str | None:
        """Pausenart; Altbestand ohne break_type: erstes Wort der Notiz ("Lunch break")."""
        if self.break_type:
            return self.break_type
        if self.notes:
            return self.notes.split(" ")[0]
        return None


class DailyApproval(Base):
    """Manager-Abnahme eines Arbeitstags (liefert DailySummary.is_approved)."""
    __tablename__ = "daily_approvals"
    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="uq_daily_approval_employee_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    employee_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

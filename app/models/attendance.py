import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, TenantMixin, utcnow
from app.models.student import Student
from app.models.tutoring_session import TutoringSession

ATTENDANCE_STATUSES = ("PRESENT", "ABSENT", "LATE", "EXCUSED")

class Attendance(Base, UUIDMixin, TimestampMixin, TenantMixin):
    __tablename__ = "attendance"
    session_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("sessions.id"), nullable=False, index=True)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    marked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    session: Mapped[TutoringSession] = relationship(TutoringSession)
    student: Mapped[Student] = relationship(Student)

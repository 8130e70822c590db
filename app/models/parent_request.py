import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, TenantMixin
from app.models.parent import Parent
from app.models.student import Student
from app.models.tutoring_session import TutoringSession

REQUEST_TYPE_ABSENCE = "ABSENCE"
REQUEST_STATUSES = ("PENDING", "APPROVED", "DECLINED", "WITHDRAWN")

class ParentRequest(Base, UUIDMixin, TimestampMixin, TenantMixin):
    __tablename__ = "parent_requests"
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=REQUEST_TYPE_ABSENCE)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING", index=True)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("students.id"), nullable=False)
    parent_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("parents.id"), nullable=False)
    session_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("sessions.id"), nullable=False)
    reason_code: Mapped[str | None] = mapped_column(String(40), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    student: Mapped[Student] = relationship(Student)
    parent: Mapped[Parent] = relationship(Parent)
    session: Mapped[TutoringSession] = relationship(TutoringSession)

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.center import Center
from app.models.common import UUIDMixin, TimestampMixin, TenantMixin
from app.models.group import Group
from app.models.session_student import SessionStudent
from app.models.student import Student
from app.models.user import User

SESSION_TYPE_ONE_ON_ONE = "ONE_ON_ONE"
SESSION_TYPE_GROUP = "GROUP"
SESSION_TYPE_CLASS = "CLASS"

class TutoringSession(Base, UUIDMixin, TimestampMixin, TenantMixin):
    __tablename__ = "sessions"
    center_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("centers.id"), nullable=False)
    tutor_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    group_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("groups.id"), nullable=True)
    session_type: Mapped[str] = mapped_column(String(20), nullable=False, default=SESSION_TYPE_ONE_ON_ONE)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    center: Mapped[Center] = relationship(Center)
    tutor: Mapped[User] = relationship(User)
    group: Mapped[Group | None] = relationship(Group)
    roster: Mapped[list[Student]] = relationship(Student, secondary=SessionStudent.__table__, viewonly=True)

import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, TenantMixin
from app.models.level import Level
from app.models.parent import Parent
from app.models.student_parent import StudentParent

STUDENT_STATUS_ACTIVE = "ACTIVE"
STUDENT_STATUS_INACTIVE = "INACTIVE"
STUDENT_STATUS_ARCHIVED = "ARCHIVED"

class Student(Base, UUIDMixin, TimestampMixin, TenantMixin):
    __tablename__ = "students"
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    preferred_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STUDENT_STATUS_ACTIVE, index=True)
    level_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("levels.id"), nullable=True)
    date_of_birth: Mapped[str | None] = mapped_column(String(10), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    level: Mapped[Level | None] = relationship(Level)
    parents: Mapped[list[Parent]] = relationship(Parent, secondary=StudentParent.__table__, viewonly=True)

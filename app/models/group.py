import uuid

from sqlalchemy import ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, TenantMixin
from app.models.program import Program

class Group(Base, UUIDMixin, TimestampMixin, TenantMixin):
    __tablename__ = "groups"
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    program_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("programs.id"), nullable=False)

    program: Mapped[Program] = relationship(Program)

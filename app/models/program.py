import uuid

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, TenantMixin
from app.models.level import Level

class Program(Base, UUIDMixin, TimestampMixin, TenantMixin):
    __tablename__ = "programs"
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    level_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("levels.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    level: Mapped[Level | None] = relationship(Level)

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, TenantMixin

ROLE_OWNER = "OWNER"
ROLE_ADMIN = "ADMIN"
ROLE_TUTOR = "TUTOR"

class User(Base, UUIDMixin, TimestampMixin, TenantMixin):
    __tablename__ = "users"
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_TUTOR)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

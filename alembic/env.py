from logging.config import fileConfig
from alembic import context
from sqlalchemy import engine_from_config, pool
import os
from app.db.session import Base

# import models
from app.models.tenant import Tenant
from app.models.user import User
from app.models.level import Level
from app.models.program import Program
from app.models.center import Center
from app.models.group import Group
from app.models.parent import Parent
from app.models.student import Student
from app.models.student_parent import StudentParent
from app.models.tutoring_session import TutoringSession
from app.models.session_student import SessionStudent
from app.models.attendance import Attendance
from app.models.parent_request import ParentRequest
from app.models.announcement import Announcement
from app.models.audit_log import AuditLog

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)
target_metadata = Base.metadata

def get_url():
    return os.getenv("DATABASE_URL")

def run_migrations_offline():
    context.configure(url=get_url(), target_metadata=target_metadata, literal_binds=True, compare_type=True)
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    cfg = config.get_section(config.config_ini_section) or {}
    cfg["sqlalchemy.url"] = get_url()
    connectable = engine_from_config(cfg, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

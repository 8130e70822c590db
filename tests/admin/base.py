import json
import os
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker

# Ensure settings can be initialized in test environments
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from app.core.config import settings
from app.core.security import create_admin_token, create_jwt
from app.db.session import get_session_factory
from app.main import app
from app.models.announcement import Announcement
from app.models.attendance import Attendance
from app.models.audit_log import AuditLog
from app.models.center import Center
from app.models.group import Group
from app.models.level import Level
from app.models.parent import Parent
from app.models.parent_request import ParentRequest
from app.models.program import Program
from app.models.session_student import SessionStudent
from app.models.student import Student
from app.models.student_parent import StudentParent
from app.models.tenant import Tenant
from app.models.tutoring_session import TutoringSession
from app.models.user import User

# Parents before children; drops and deletes walk it backwards.
TABLE_MODELS = (
    Tenant,
    User,
    Level,
    Program,
    Center,
    Group,
    Parent,
    Student,
    StudentParent,
    TutoringSession,
    SessionStudent,
    Attendance,
    ParentRequest,
    Announcement,
    AuditLog,
)

BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class AdminTableTestBase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        # A file database: count and page fetch run on separate worker threads and connections.
        cls._tmpdir = tempfile.TemporaryDirectory()
        cls.engine = create_engine(
            f"sqlite+pysqlite:///{cls._tmpdir.name}/tables.db",
            connect_args={"check_same_thread": False},
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False, expire_on_commit=False)
        for model in TABLE_MODELS:
            model.__table__.create(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        for model in reversed(TABLE_MODELS):
            model.__table__.drop(bind=cls.engine)
        cls.engine.dispose()
        cls._tmpdir.cleanup()

    def setUp(self):
        with self.SessionLocal() as db:
            for model in reversed(TABLE_MODELS):
                db.execute(delete(model))
            db.commit()

        app.dependency_overrides[get_session_factory] = lambda: self.SessionLocal
        self.client = TestClient(app)
        self.tenant_id = self._create_tenant("north")

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()

    @staticmethod
    def _auth_headers(role: str = "ADMIN", tenant_id: UUID | None = None, email: str | None = None) -> dict[str, str]:
        token = create_admin_token(
            user_id=str(uuid4()),
            email=email or f"{role.lower()}@example.com",
            role=role,
            tenant_id=str(tenant_id),
            secret=settings.ADMIN_JWT_SECRET,
            ttl_minutes=30,
        )
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _tenantless_headers(role: str = "ADMIN") -> dict[str, str]:
        token = create_jwt(
            {"sub": str(uuid4()), "email": "admin@example.com", "role": role},
            settings.ADMIN_JWT_SECRET,
            timedelta(minutes=30),
        )
        return {"Authorization": f"Bearer {token}"}

    def _add(self, *rows):
        with self.SessionLocal() as db:
            db.add_all(rows)
            db.commit()
        return rows[0] if len(rows) == 1 else rows

    def _create_tenant(self, slug: str) -> UUID:
        tenant = Tenant(id=uuid4(), slug=slug, name=slug.title())
        self._add(tenant)
        return tenant.id

    def _create_student(self, first_name: str, last_name: str, *, tenant_id: UUID | None = None, minutes: int = 0, **extra) -> UUID:
        student = Student(
            id=uuid4(),
            tenant_id=tenant_id or self.tenant_id,
            first_name=first_name,
            last_name=last_name,
            created_at=BASE_TIME + timedelta(minutes=minutes),
            **extra,
        )
        self._add(student)
        return student.id

    def _create_tutor(self, name: str, email: str, *, tenant_id: UUID | None = None) -> UUID:
        tutor = User(id=uuid4(), tenant_id=tenant_id or self.tenant_id, name=name, email=email, role="TUTOR")
        self._add(tutor)
        return tutor.id

    def _create_center(self, name: str = "Main Street", *, tenant_id: UUID | None = None) -> UUID:
        center = Center(id=uuid4(), tenant_id=tenant_id or self.tenant_id, name=name)
        self._add(center)
        return center.id

    def _create_session(self, *, tutor_id: UUID, center_id: UUID, start_at: datetime, tenant_id: UUID | None = None, **extra) -> UUID:
        session = TutoringSession(
            id=uuid4(),
            tenant_id=tenant_id or self.tenant_id,
            tutor_id=tutor_id,
            center_id=center_id,
            start_at=start_at,
            end_at=start_at + timedelta(hours=1),
            **extra,
        )
        self._add(session)
        return session.id

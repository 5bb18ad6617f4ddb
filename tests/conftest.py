"""
Shared fixtures: an app wired to an in-memory SQLite database plus small
factories for users, universities and applications.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from unitrack.config import Settings
from unitrack.database import Base
from unitrack.main import create_app
from unitrack.models import (
    Application, ApplicationStatus, ApplicationType, Student, StudentParentRelationship,
    University, UniversityRequirement, User, UserRole
)
from unitrack.routers.auth import create_access_token, get_password_hash
from unitrack.timeutils import isoformat_z, utcnow

PASSWORD = "password123"


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        JWT_SECRET_KEY="test-secret",
        ALLOWED_ORIGINS="http://localhost:3000",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    Base.metadata.create_all(bind=app.state.engine)
    yield app
    Base.metadata.drop_all(bind=app.state.engine)
    app.state.engine.dispose()


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


class Factory:
    """Creates rows directly through the session"""

    def __init__(self, db, settings):
        self.db = db
        self.settings = settings
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def user(self, role: UserRole = UserRole.STUDENT, email=None, first_name="Test", last_name="User") -> User:
        user = User(
            email=email or f"user{self._next()}@example.com",
            password_hash=get_password_hash(PASSWORD),
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def student(self, user: User = None) -> Student:
        user = user or self.user(UserRole.STUDENT)
        student = Student(
            user_id=user.id,
            name=f"{user.first_name} {user.last_name}",
            email=user.email,
            target_countries=[],
            intended_majors=[],
        )
        self.db.add(student)
        self.db.commit()
        self.db.refresh(student)
        return student

    def parent(self, *students: Student) -> User:
        parent = self.user(UserRole.PARENT, first_name="Pat", last_name="Parent")
        for student in students:
            self.db.add(StudentParentRelationship(student_id=student.id, parent_id=parent.id))
        self.db.commit()
        return parent

    def university(self, name=None, deadlines=None, templates=(), **fields) -> University:
        if deadlines is None:
            deadlines = {
                "early_action": isoformat_z(utcnow() + timedelta(days=20)),
                "regular_decision": isoformat_z(utcnow() + timedelta(days=90)),
            }
        university = University(
            name=name or f"University {self._next()}",
            country=fields.pop("country", "United States"),
            deadlines=deadlines,
            available_majors=[],
            **fields,
        )
        self.db.add(university)
        self.db.flush()
        for requirement_type in templates:
            self.db.add(UniversityRequirement(
                university_id=university.id,
                requirement_type=requirement_type,
                is_required=True,
                description=f"{requirement_type} for {university.name}",
            ))
        self.db.commit()
        self.db.refresh(university)
        return university

    def application(
        self,
        student: Student,
        university: University,
        application_type: ApplicationType = ApplicationType.REGULAR_DECISION,
        status: ApplicationStatus = ApplicationStatus.NOT_STARTED,
        deadline=None,
        **fields,
    ) -> Application:
        application = Application(
            student_id=student.id,
            university_id=university.id,
            application_type=application_type,
            deadline=deadline or utcnow() + timedelta(days=45),
            status=status,
            **fields,
        )
        self.db.add(application)
        self.db.commit()
        self.db.refresh(application)
        return application

    def auth_headers(self, user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user, self.settings)}"}


@pytest.fixture
def factory(db, settings):
    return Factory(db, settings)

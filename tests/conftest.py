import os
import tempfile
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('UPLOAD_DIR', tempfile.mkdtemp(prefix='escuela-dux-uploads-'))

from backend.auth.passwords import get_password_hash  # noqa: E402
from backend.database import ROLE_IDS, Base, Database, ensure_roles  # noqa: E402
from backend.models import assignment, course, enrollment, user  # noqa: E402,F401

PASSWORD = '1234'


@pytest.fixture
def engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    ensure_roles(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    database = Database(session_factory())
    try:
        yield database
    finally:
        database.close()


@pytest.fixture
def password_hash() -> str:
    return get_password_hash(PASSWORD)


@pytest.fixture
def make_user(db, password_hash):
    def _make_user(email: str, role: str = 'student', full_name: str | None = None, **extra) -> int:
        return db.insert('users', {
            'full_name': full_name or email.split('@')[0].title(),
            'email': email,
            'password_hash': password_hash,
            'role_id': ROLE_IDS[role],
            **extra,
        })

    return _make_user


@pytest.fixture
def make_course(db):
    def _make_course(title: str, teacher_id: int | None = None, **extra) -> int:
        values = {
            'title': title,
            'shift': 'Noche',
            'schedule_days': 'Lunes y miércoles',
            'schedule_time': '6:00 pm a 8:00 pm',
            'total_classes': 8,
            'total_hours': 16,
            'modality': 'online',
            'teacher_id': teacher_id,
        }
        values.update(extra)
        return db.insert('courses', values)

    return _make_course


@pytest.fixture
def enroll(db):
    def _enroll(user_id: int, course_id: int, status: str = 'approved', **extra) -> int:
        return db.insert('enrollments', {
            'user_id': user_id,
            'course_id': course_id,
            'status': status,
            **extra,
        })

    return _enroll


@pytest.fixture
def make_assignment(db):
    def _make_assignment(
        course_id: int,
        created_by: int,
        title: str = 'Ensayo',
        due_date: date | None = None,
        max_grade: float = 100,
    ) -> int:
        return db.insert('assignments', {
            'course_id': course_id,
            'title': title,
            'due_date': due_date,
            'max_grade': max_grade,
            'created_by': created_by,
        })

    return _make_assignment


@pytest.fixture
def make_submission(db):
    def _make_submission(
        assignment_id: int,
        student_id: int,
        status: str = 'submitted',
        grade: float | None = None,
        submitted_at: datetime | None = None,
    ) -> int:
        values = {
            'assignment_id': assignment_id,
            'student_id': student_id,
            'file_url': '/uploads/submissions/file.pdf',
            'status': status,
            'grade': grade,
        }
        if submitted_at is not None:
            values['submitted_at'] = submitted_at
        return db.insert('submissions', values)

    return _make_submission


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from backend.database import get_db
    from backend.main import app

    def override_get_db():
        database = Database(session_factory())
        try:
            yield database
        finally:
            database.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()

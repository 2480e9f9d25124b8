"""Seed the database with roles, demo users and the course catalogue.

Usage:
    python -m backend.seed_data
"""
import logging
from datetime import datetime

from sqlalchemy import select

from backend.auth.passwords import get_password_hash
from backend.database import ROLE_IDS, Base, Database, SessionLocal, engine, ensure_roles
from backend.models import assignment, enrollment  # noqa: F401  (register tables)
from backend.models.course import Course
from backend.models.user import User

logger = logging.getLogger(__name__)

DEMO_PASSWORD = '1234'

DEMO_USERS = [
    {'email': 'alumno@dux.com', 'full_name': 'Estudiante Demo', 'role': 'student'},
    {'email': 'profesor@dux.com', 'full_name': 'Profesor Demo', 'role': 'teacher'},
    {'email': 'admin@dux.com', 'full_name': 'Administrador', 'role': 'admin'},
    {'email': 'carolina.eguiguren@dux.com', 'full_name': 'Carolina Eguiguren', 'role': 'teacher'},
    {'email': 'hexy.marquez@dux.com', 'full_name': 'Hexy Marquez', 'role': 'teacher'},
    {'email': 'jose.cabrera@dux.com', 'full_name': 'José Alí Cabrera', 'role': 'teacher'},
]

COURSES = [
    ('Escritura creativa', 'Noche', 'Lunes y miércoles', '6:00 pm a 8:00 pm', 8, 'online', 'carolina.eguiguren@dux.com'),
    ('Edición y corrección de estilo', 'Noche', 'Martes y Jueves', '6:00 pm a 8:00 pm', 8, 'online', 'carolina.eguiguren@dux.com'),
    ('Redacción', 'Noche', 'Martes y Jueves', '6:00 pm a 8:00 pm', 8, 'online', 'hexy.marquez@dux.com'),
    ('Narración', 'Noche', 'Martes y Jueves', '6:00 pm a 8:00 pm', 8, 'online', 'hexy.marquez@dux.com'),
    ('Dicción, voz y oratoria', 'Noche', 'Martes y Jueves', '8:00 pm a 10:00 pm', 8, 'online', 'jose.cabrera@dux.com'),
    ('Lector Editorial', 'Mañana', 'Sábados', '9:00 am a 11:00 am', 8, 'online', 'carolina.eguiguren@dux.com'),
    ('Escritura creativa (Presencial)', 'Mañana', 'Sábados', '8:00 am a 12:00 m', 4, 'presencial', 'carolina.eguiguren@dux.com'),
]

TOTAL_HOURS = 16


def seed_users(db: Database) -> dict[str, int]:
    user_ids: dict[str, int] = {}
    for demo_user in DEMO_USERS:
        existing = db.fetch_one(select(User.id).where(User.email == demo_user['email']))
        if existing:
            user_ids[demo_user['email']] = existing['id']
            continue
        user_ids[demo_user['email']] = db.insert('users', {
            'full_name': demo_user['full_name'],
            'email': demo_user['email'],
            'password_hash': get_password_hash(DEMO_PASSWORD),
            'role_id': ROLE_IDS[demo_user['role']],
        })
        logger.info('Created %s user %s', demo_user['role'], demo_user['email'])
    return user_ids


def seed_courses(db: Database, user_ids: dict[str, int]) -> dict[str, int]:
    course_ids: dict[str, int] = {}
    for title, shift, days, time_range, total_classes, modality, teacher_email in COURSES:
        existing = db.fetch_one(select(Course.id).where(Course.title == title))
        if existing:
            course_ids[title] = existing['id']
            continue
        course_ids[title] = db.insert('courses', {
            'title': title,
            'shift': shift,
            'schedule_days': days,
            'schedule_time': time_range,
            'total_classes': total_classes,
            'total_hours': TOTAL_HOURS,
            'modality': modality,
            'teacher_id': user_ids[teacher_email],
        })
        logger.info('Created course %s', title)
    return course_ids


def seed_demo_enrollment(db: Database, user_ids: dict[str, int], course_ids: dict[str, int]) -> None:
    """Approve the demo student in the first course taught by the demo teacher."""
    student_id = user_ids['alumno@dux.com']
    teacher_id = user_ids['profesor@dux.com']
    course_id = course_ids[COURSES[0][0]]

    db.update('courses', {'teacher_id': teacher_id}, {'id': course_id})

    enrollment_row = db.fetch_one(
        'SELECT id FROM enrollments WHERE user_id = :user_id AND course_id = :course_id',
        {'user_id': student_id, 'course_id': course_id},
    )
    if enrollment_row is None:
        db.insert('enrollments', {
            'user_id': student_id,
            'course_id': course_id,
            'payment_method': 'transferencia',
            'status': 'approved',
            'approved_by': user_ids['admin@dux.com'],
            'approved_at': datetime.now(),
        })


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    ensure_roles()

    db = Database(SessionLocal())
    try:
        user_ids = seed_users(db)
        course_ids = seed_courses(db, user_ids)
        seed_demo_enrollment(db, user_ids, course_ids)
    finally:
        db.close()
    logger.info('Seed completed')


if __name__ == '__main__':
    main()

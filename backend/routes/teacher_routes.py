import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from backend.core.responses import (
    ApiError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    isoformat,
    sanitize,
    success_response,
    validate_required,
)
from backend.core.validators import parse_iso_date
from backend.database import ROLE_IDS, Database, get_db
from backend.models.assignment import Assignment, Submission
from backend.models.course import Course
from backend.models.enrollment import Enrollment
from backend.models.user import User
from backend.routes.course_routes import format_schedule

router = APIRouter(tags=['teacher'])
logger = logging.getLogger(__name__)

DEFAULT_MAX_GRADE = 100.0
MIN_TITLE_LENGTH = 3


class CreateAssignmentRequest(BaseModel):
    course_id: int | None = None
    teacher_id: int | None = None
    title: str | None = None
    description: str | None = None
    due_date: str | None = None
    max_grade: float | None = Field(default=None, allow_inf_nan=False)

    @field_validator('due_date')
    @classmethod
    def blank_due_date_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class GradeSubmissionRequest(BaseModel):
    submission_id: int | None = None
    teacher_id: int | None = None
    grade: float | None = Field(default=None, allow_inf_nan=False)
    feedback: str | None = None


def clamp_grade(grade: float, max_grade: float) -> float:
    return min(max(grade, 0.0), max_grade)


@router.get('/dashboard_data')
def teacher_dashboard_data(
    teacher_id: int | None = Query(default=None),
    db: Database = Depends(get_db),
):
    if not teacher_id:
        raise ApiError('teacher_id es requerido')

    try:
        teacher = db.fetch_one(
            select(User.id, User.full_name).where(
                User.id == teacher_id,
                User.role_id == ROLE_IDS['teacher'],
            )
        )
        if teacher is None:
            raise NotFoundError('Profesor no encontrado')

        student_count = (
            select(func.count(Enrollment.id))
            .where(Enrollment.course_id == Course.id, Enrollment.status == 'approved')
            .correlate(Course)
            .scalar_subquery()
        )
        courses = db.fetch_all(
            select(
                Course.id,
                Course.title,
                Course.description,
                Course.schedule_days,
                Course.schedule_time,
                Course.shift,
                Course.total_classes,
                Course.total_hours,
                Course.modality,
                Course.is_active,
                student_count.label('student_count'),
            )
            .where(Course.teacher_id == teacher_id, Course.is_active.is_(True))
            .order_by(Course.title)
        )

        students = db.fetch_all(
            select(
                User.id,
                User.full_name,
                User.email,
                User.avatar_url,
                Course.id.label('course_id'),
                Course.title.label('course_title'),
                Enrollment.status.label('enrollment_status'),
                Enrollment.created_at.label('enrolled_at'),
            )
            .distinct()
            .join(Enrollment, User.id == Enrollment.user_id)
            .join(Course, Enrollment.course_id == Course.id)
            .where(Course.teacher_id == teacher_id, Enrollment.status == 'approved')
            .order_by(Course.title, User.full_name)
        )

        pending_submissions = db.fetch_all(
            select(
                Submission.id,
                Submission.file_url,
                Submission.submitted_at,
                Submission.comments,
                Assignment.id.label('assignment_id'),
                Assignment.title.label('assignment_title'),
                User.id.label('student_id'),
                User.full_name.label('student_name'),
                Course.id.label('course_id'),
                Course.title.label('course_title'),
            )
            .join(Assignment, Submission.assignment_id == Assignment.id)
            .join(Course, Assignment.course_id == Course.id)
            .join(User, Submission.student_id == User.id)
            .where(Course.teacher_id == teacher_id, Submission.status == 'submitted')
            .order_by(Submission.submitted_at.asc())
        )
    except SQLAlchemyError as exc:
        logger.exception('Teacher dashboard failed for %s', teacher_id)
        raise ServerError('Error al obtener datos del dashboard') from exc

    return success_response({
        'teacher': {
            'id': teacher['id'],
            'name': teacher['full_name'],
        },
        'stats': {
            'total_courses': len(courses),
            'total_students': len({s['id'] for s in students}),
            'pending_grades': len(pending_submissions),
        },
        'courses': [
            {
                'id': c['id'],
                'title': c['title'],
                'description': c['description'],
                'schedule': format_schedule(c),
                'total_classes': int(c['total_classes'] or 0),
                'total_hours': int(c['total_hours'] or 0),
                'modality': c['modality'],
                'student_count': int(c['student_count'] or 0),
            }
            for c in courses
        ],
        'students': [
            {
                'id': s['id'],
                'name': s['full_name'],
                'email': s['email'],
                'avatar_url': s['avatar_url'],
                'course': {
                    'id': s['course_id'],
                    'title': s['course_title'],
                },
                'enrolled_at': isoformat(s['enrolled_at']),
            }
            for s in students
        ],
        'pending_submissions': [
            {
                'id': p['id'],
                'assignment': {
                    'id': p['assignment_id'],
                    'title': p['assignment_title'],
                },
                'student': {
                    'id': p['student_id'],
                    'name': p['student_name'],
                },
                'course': {
                    'id': p['course_id'],
                    'title': p['course_title'],
                },
                'file_url': p['file_url'],
                'comments': p['comments'],
                'submitted_at': isoformat(p['submitted_at']),
            }
            for p in pending_submissions
        ],
    })


@router.post('/create_assignment')
def create_assignment(data: CreateAssignmentRequest, db: Database = Depends(get_db)):
    if not validate_required(data.model_dump(), ['course_id', 'title', 'teacher_id']):
        raise ApiError('Curso, título y profesor son requeridos')

    title = sanitize(data.title)
    description = sanitize(data.description)
    max_grade = data.max_grade if data.max_grade is not None else DEFAULT_MAX_GRADE

    if len(title) < MIN_TITLE_LENGTH:
        raise ApiError(f'El título debe tener al menos {MIN_TITLE_LENGTH} caracteres')

    due_date = None
    if data.due_date:
        due_date = parse_iso_date(data.due_date)
        if due_date is None:
            raise ApiError('Formato de fecha inválido. Use YYYY-MM-DD')

    try:
        course = db.fetch_one(
            select(Course.id, Course.title).where(
                Course.id == data.course_id,
                Course.teacher_id == data.teacher_id,
            )
        )
        if course is None:
            raise NotFoundError('Curso no encontrado o no tienes permisos')

        assignment_id = db.insert('assignments', {
            'course_id': data.course_id,
            'title': title,
            'description': description,
            'due_date': due_date,
            'max_grade': max_grade,
            'created_by': data.teacher_id,
        })

        assignment = db.fetch_one(
            select(
                Assignment.id,
                Assignment.course_id,
                Assignment.title,
                Assignment.description,
                Assignment.due_date,
                Assignment.max_grade,
                Assignment.created_at,
            ).where(Assignment.id == assignment_id)
        )
    except SQLAlchemyError as exc:
        logger.exception('Creating assignment failed for course %s', data.course_id)
        raise ServerError('Error al crear la tarea') from exc

    return success_response({
        'assignment': {
            'id': assignment['id'],
            'course_id': assignment['course_id'],
            'course_title': course['title'],
            'title': assignment['title'],
            'description': assignment['description'],
            'due_date': isoformat(assignment['due_date']),
            'max_grade': float(assignment['max_grade']),
            'created_at': isoformat(assignment['created_at']),
        },
    }, 'Tarea creada exitosamente')


@router.post('/grade_submission')
def grade_submission(data: GradeSubmissionRequest, db: Database = Depends(get_db)):
    if not validate_required(data.model_dump(), ['submission_id', 'grade', 'teacher_id']):
        raise ApiError('ID de entrega, calificación y profesor son requeridos')

    feedback = sanitize(data.feedback)

    try:
        submission = db.fetch_one(
            select(
                Submission.id,
                Submission.student_id,
                Submission.assignment_id,
                Submission.status,
                Assignment.title.label('assignment_title'),
                Assignment.max_grade,
                Course.id.label('course_id'),
                Course.teacher_id,
                User.full_name.label('student_name'),
            )
            .join(Assignment, Submission.assignment_id == Assignment.id)
            .join(Course, Assignment.course_id == Course.id)
            .join(User, Submission.student_id == User.id)
            .where(Submission.id == data.submission_id)
        )
        if submission is None:
            raise NotFoundError('Entrega no encontrada')

        if submission['teacher_id'] != data.teacher_id:
            raise ForbiddenError('No tienes permisos para calificar esta entrega')

        max_grade = float(submission['max_grade'])
        grade = clamp_grade(data.grade, max_grade)

        db.update('submissions', {
            'grade': grade,
            'feedback': feedback,
            'graded_by': data.teacher_id,
            'graded_at': datetime.now(),
            'status': 'graded',
        }, {'id': data.submission_id})
    except SQLAlchemyError as exc:
        logger.exception('Grading submission %s failed', data.submission_id)
        raise ServerError('Error al guardar calificación') from exc

    return success_response({
        'submission': {
            'id': data.submission_id,
            'student_name': submission['student_name'],
            'assignment_title': submission['assignment_title'],
            'grade': grade,
            'max_grade': max_grade,
            'feedback': feedback,
            'status': 'graded',
        },
    }, 'Calificación guardada exitosamente')

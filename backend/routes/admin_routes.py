import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import aliased

from backend.core.responses import (
    ApiError,
    NotFoundError,
    ServerError,
    isoformat,
    optional_float,
    sanitize,
    success_response,
    validate_required,
)
from backend.core.validators import build_pagination, normalize_limit, normalize_page
from backend.database import ROLE_IDS, Database, get_db
from backend.models.course import Course
from backend.models.enrollment import ENROLLMENT_STATUSES, Enrollment
from backend.models.user import Role, User

router = APIRouter(tags=['admin'])
logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10
POPULAR_COURSES_LIMIT = 5
STATUS_MESSAGES = {
    'approved': 'Inscripción aprobada exitosamente',
    'rejected': 'Inscripción rechazada',
    'pending': 'Inscripción marcada como pendiente',
    'cancelled': 'Inscripción cancelada',
}


class ApproveEnrollmentRequest(BaseModel):
    enrollment_id: int | None = None
    status: str | None = None
    admin_id: int | None = None
    notes: str | None = None


def month_bounds(today: date) -> tuple[datetime, datetime]:
    """Return the [start, end) datetimes of the calendar month containing ``today``."""
    start = datetime(today.year, today.month, 1)
    if today.month == 12:
        end = datetime(today.year + 1, 1, 1)
    else:
        end = datetime(today.year, today.month + 1, 1)
    return start, end


def _count(db: Database, query) -> int:
    row = db.fetch_one(
        query.with_only_columns(func.count().label('total'), maintain_column_froms=True)
    )
    return int(row['total']) if row else 0


@router.get('/get_stats')
def get_stats(db: Database = Depends(get_db)):
    month_start, month_end = month_bounds(date.today())

    try:
        total_students = _count(db, select(User.id).where(User.role_id == ROLE_IDS['student']))
        total_teachers = _count(db, select(User.id).where(User.role_id == ROLE_IDS['teacher']))
        total_courses = _count(db, select(Course.id).where(Course.is_active.is_(True)))
        pending_enrollments = _count(db, select(Enrollment.id).where(Enrollment.status == 'pending'))
        monthly_enrollments = _count(
            db,
            select(Enrollment.id).where(
                Enrollment.created_at >= month_start,
                Enrollment.created_at < month_end,
            ),
        )
        monthly_revenue = db.fetch_one(
            select(func.coalesce(func.sum(Enrollment.amount_paid), 0).label('total')).where(
                Enrollment.status == 'approved',
                Enrollment.approved_at >= month_start,
                Enrollment.approved_at < month_end,
            )
        )

        recent_activity = db.fetch_all(
            select(
                Enrollment.id,
                Enrollment.status,
                Enrollment.created_at,
                User.full_name.label('student_name'),
                Course.title.label('course_title'),
            )
            .join(User, Enrollment.user_id == User.id)
            .join(Course, Enrollment.course_id == Course.id)
            .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
            .limit(RECENT_ACTIVITY_LIMIT)
        )

        enrollment_count = func.count(Enrollment.id).label('enrollment_count')
        popular_courses = db.fetch_all(
            select(Course.id, Course.title, enrollment_count)
            .outerjoin(
                Enrollment,
                and_(Course.id == Enrollment.course_id, Enrollment.status == 'approved'),
            )
            .where(Course.is_active.is_(True))
            .group_by(Course.id, Course.title)
            .order_by(enrollment_count.desc(), Course.id)
            .limit(POPULAR_COURSES_LIMIT)
        )
    except SQLAlchemyError as exc:
        logger.exception('Loading admin stats failed')
        raise ServerError('Error al obtener estadísticas') from exc

    return success_response({
        'stats': {
            'total_students': total_students,
            'total_teachers': total_teachers,
            'total_courses': total_courses,
            'pending_enrollments': pending_enrollments,
            'monthly_enrollments': monthly_enrollments,
            'monthly_revenue': float(monthly_revenue['total'] or 0),
        },
        'recent_activity': [
            {
                'id': a['id'],
                'student_name': a['student_name'],
                'course_title': a['course_title'],
                'status': a['status'],
                'created_at': isoformat(a['created_at']),
            }
            for a in recent_activity
        ],
        'popular_courses': [
            {
                'id': c['id'],
                'title': c['title'],
                'enrollments': int(c['enrollment_count']),
            }
            for c in popular_courses
        ],
    })


@router.get('/get_users')
def get_users(
    role: str | None = Query(default=None),
    search: str | None = Query(default=None),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    db: Database = Depends(get_db),
):
    page = normalize_page(page)
    limit = normalize_limit(limit)
    offset = (page - 1) * limit

    conditions = []
    role = sanitize(role)
    if role and role in ROLE_IDS:
        conditions.append(Role.name == role)

    search = sanitize(search)
    if search:
        pattern = f'%{search}%'
        conditions.append(or_(User.full_name.like(pattern), User.email.like(pattern)))

    base_query = select(User.id).join(Role, User.role_id == Role.id).where(*conditions)

    try:
        users = db.fetch_all(
            select(
                User.id,
                User.full_name,
                User.email,
                User.phone,
                User.country,
                User.avatar_url,
                User.is_active,
                User.created_at,
                User.last_login,
                Role.id.label('role_id'),
                Role.name.label('role_name'),
            )
            .join(Role, User.role_id == Role.id)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .limit(limit)
            .offset(offset)
        )
        total = _count(db, base_query)
    except SQLAlchemyError as exc:
        logger.exception('Listing users failed')
        raise ServerError('Error al obtener usuarios') from exc

    return success_response({
        'users': [
            {
                'id': u['id'],
                'full_name': u['full_name'],
                'email': u['email'],
                'phone': u['phone'],
                'country': u['country'],
                'avatar_url': u['avatar_url'],
                'is_active': bool(u['is_active']),
                'created_at': isoformat(u['created_at']),
                'last_login': isoformat(u['last_login']),
                'role': {
                    'id': u['role_id'],
                    'name': u['role_name'],
                },
            }
            for u in users
        ],
        'pagination': build_pagination(page, limit, total),
    })


@router.get('/get_enrollments')
def get_enrollments(
    status: str | None = Query(default=None),
    course_id: int | None = Query(default=None),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    db: Database = Depends(get_db),
):
    page = normalize_page(page)
    limit = normalize_limit(limit)
    offset = (page - 1) * limit

    conditions = []
    status = sanitize(status)
    if status and status in ENROLLMENT_STATUSES:
        conditions.append(Enrollment.status == status)
    if course_id:
        conditions.append(Enrollment.course_id == course_id)

    approver = aliased(User)

    try:
        enrollments = db.fetch_all(
            select(
                Enrollment.id,
                Enrollment.user_id,
                Enrollment.course_id,
                Enrollment.payment_method,
                Enrollment.payment_proof_url,
                Enrollment.amount_paid,
                Enrollment.status,
                Enrollment.notes,
                Enrollment.created_at,
                Enrollment.approved_at,
                User.full_name.label('student_name'),
                User.email.label('student_email'),
                Course.title.label('course_title'),
                approver.full_name.label('approved_by_name'),
            )
            .join(User, Enrollment.user_id == User.id)
            .join(Course, Enrollment.course_id == Course.id)
            .outerjoin(approver, Enrollment.approved_by == approver.id)
            .where(*conditions)
            .order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
            .limit(limit)
            .offset(offset)
        )
        total = _count(db, select(Enrollment.id).where(*conditions))
    except SQLAlchemyError as exc:
        logger.exception('Listing enrollments failed')
        raise ServerError('Error al obtener inscripciones') from exc

    return success_response({
        'enrollments': [
            {
                'id': e['id'],
                'student': {
                    'id': e['user_id'],
                    'name': e['student_name'],
                    'email': e['student_email'],
                },
                'course': {
                    'id': e['course_id'],
                    'title': e['course_title'],
                },
                'payment_method': e['payment_method'],
                'payment_proof_url': e['payment_proof_url'],
                'amount_paid': optional_float(e['amount_paid']),
                'status': e['status'],
                'notes': e['notes'],
                'created_at': isoformat(e['created_at']),
                'approved_at': isoformat(e['approved_at']),
                'approved_by': e['approved_by_name'],
            }
            for e in enrollments
        ],
        'pagination': build_pagination(page, limit, total),
    })


@router.post('/approve_enrollment')
def approve_enrollment(data: ApproveEnrollmentRequest, db: Database = Depends(get_db)):
    if not validate_required(data.model_dump(), ['enrollment_id', 'status']):
        raise ApiError('ID de inscripción y status son requeridos')

    status = sanitize(data.status)
    notes = sanitize(data.notes)

    if status not in ENROLLMENT_STATUSES:
        raise ApiError('Status inválido. Use: ' + ', '.join(ENROLLMENT_STATUSES))

    enrollment_query = (
        select(
            Enrollment.id,
            Enrollment.status,
            Enrollment.notes,
            Enrollment.approved_at,
            User.full_name.label('student_name'),
            Course.title.label('course_title'),
        )
        .join(User, Enrollment.user_id == User.id)
        .join(Course, Enrollment.course_id == Course.id)
        .where(Enrollment.id == data.enrollment_id)
    )

    try:
        enrollment = db.fetch_one(enrollment_query)
        if enrollment is None:
            raise NotFoundError('Inscripción no encontrada')

        update_data = {
            'status': status,
            'notes': notes,
        }
        if status == 'approved':
            update_data['approved_at'] = datetime.now()
            if data.admin_id:
                update_data['approved_by'] = data.admin_id

        db.update('enrollments', update_data, {'id': data.enrollment_id})
        updated = db.fetch_one(enrollment_query)
    except SQLAlchemyError as exc:
        logger.exception('Updating enrollment %s failed', data.enrollment_id)
        raise ServerError('Error al procesar la inscripción') from exc

    logger.info('Enrollment %s set to %s (admin %s)', data.enrollment_id, status, data.admin_id)

    return success_response({
        'enrollment': {
            'id': updated['id'],
            'student_name': updated['student_name'],
            'course_title': updated['course_title'],
            'status': updated['status'],
            'approved_at': isoformat(updated['approved_at']),
            'notes': updated['notes'],
        },
    }, STATUS_MESSAGES[status])

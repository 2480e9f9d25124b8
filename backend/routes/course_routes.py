import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import aliased

from backend.core.responses import ServerError, optional_float, success_response
from backend.database import Database, get_db
from backend.models.course import MODALITIES, Course
from backend.models.user import User

router = APIRouter(tags=['courses'])
logger = logging.getLogger(__name__)


def format_schedule(row: dict) -> dict:
    return {
        'days': row['schedule_days'],
        'time': row['schedule_time'],
        'shift': row['shift'],
    }


def format_course(row: dict) -> dict:
    return {
        'id': row['id'],
        'title': row['title'],
        'description': row['description'],
        'schedule': format_schedule(row),
        'total_classes': int(row['total_classes'] or 0),
        'total_hours': int(row['total_hours'] or 0),
        'price': {
            'cop': optional_float(row['price_cop']),
            'usd': optional_float(row['price_usd']),
        },
        'image_url': row['image_url'],
        'modality': row['modality'],
        'is_active': bool(row['is_active']),
        'teacher': {
            'id': row['teacher_id'],
            'name': row['teacher_name'],
        } if row['teacher_id'] else None,
    }


@router.get('/get_all')
def get_all_courses(
    modality: str | None = Query(default=None),
    include_inactive: str | None = Query(default=None),
    db: Database = Depends(get_db),
):
    teacher = aliased(User)
    query = (
        select(
            Course.id,
            Course.title,
            Course.description,
            Course.schedule_days,
            Course.schedule_time,
            Course.shift,
            Course.total_classes,
            Course.total_hours,
            Course.price_cop,
            Course.price_usd,
            Course.image_url,
            Course.modality,
            Course.is_active,
            teacher.id.label('teacher_id'),
            teacher.full_name.label('teacher_name'),
        )
        .outerjoin(teacher, Course.teacher_id == teacher.id)
        .order_by(Course.title)
    )

    # Any value, even an empty one, includes inactive courses.
    if include_inactive is None:
        query = query.where(Course.is_active.is_(True))

    if modality and modality.strip() in MODALITIES:
        query = query.where(Course.modality == modality.strip())

    try:
        courses = [format_course(row) for row in db.fetch_all(query)]
    except SQLAlchemyError as exc:
        logger.exception('Listing courses failed')
        raise ServerError('Error al obtener cursos') from exc

    return success_response({
        'courses': courses,
        'total': len(courses),
    })

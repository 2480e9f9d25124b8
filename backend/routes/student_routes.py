import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import aliased

from backend.core.responses import (
    ApiError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    isoformat,
    sanitize,
    success_response,
)
from backend.database import ROLE_IDS, Database, get_db
from backend.models.assignment import Assignment, Submission
from backend.models.course import ClassRecording, Course, CourseMaterial
from backend.models.enrollment import Enrollment
from backend.models.user import User
from backend.routes.course_routes import format_schedule
from backend.services.uploads import FileService, UploadRejected, file_service

router = APIRouter(tags=['student'])
logger = logging.getLogger(__name__)

SUBMISSIONS_SUBDIR = 'submissions'


def get_file_service() -> FileService:
    return file_service


def is_pending_assignment(assignment: dict, today: date) -> bool:
    """An assignment is pending while unsubmitted and not past its due date."""
    if assignment['submission_status'] is not None:
        return False
    due_date = assignment['due_date']
    return due_date is None or due_date >= today


def compute_student_stats(courses: list[dict], assignments: list[dict], today: date) -> dict:
    pending = [a for a in assignments if is_pending_assignment(a, today)]
    graded = [a for a in assignments if a['grade'] is not None]

    average_grade = 0
    if graded:
        average_grade = round(sum(float(a['grade']) for a in graded) / len(graded), 2)

    return {
        'enrolled_courses': len(courses),
        'pending_assignments': len(pending),
        'completed_assignments': len(graded),
        'average_grade': average_grade,
    }


def _load_student_courses(db: Database, student_id: int) -> list[dict]:
    teacher = aliased(User)
    return db.fetch_all(
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
            Course.image_url,
            teacher.id.label('teacher_id'),
            teacher.full_name.label('teacher_name'),
            Enrollment.created_at.label('enrolled_at'),
        )
        .join(Enrollment, Course.id == Enrollment.course_id)
        .outerjoin(teacher, Course.teacher_id == teacher.id)
        .where(Enrollment.user_id == student_id, Enrollment.status == 'approved')
        .order_by(Enrollment.created_at.desc())
    )


def _load_assignments(db: Database, student_id: int, course_ids: list[int]) -> list[dict]:
    return db.fetch_all(
        select(
            Assignment.id,
            Assignment.course_id,
            Assignment.title,
            Assignment.description,
            Assignment.due_date,
            Assignment.max_grade,
            Course.title.label('course_title'),
            Submission.id.label('submission_id'),
            Submission.status.label('submission_status'),
            Submission.grade,
        )
        .join(Course, Assignment.course_id == Course.id)
        .outerjoin(
            Submission,
            and_(Submission.assignment_id == Assignment.id, Submission.student_id == student_id),
        )
        .where(Assignment.course_id.in_(course_ids), Assignment.is_active.is_(True))
        .order_by(Assignment.due_date.asc())
    )


def _load_recordings(db: Database, course_ids: list[int]) -> list[dict]:
    return db.fetch_all(
        select(
            ClassRecording.id,
            ClassRecording.course_id,
            ClassRecording.title,
            ClassRecording.description,
            ClassRecording.video_url,
            ClassRecording.duration_minutes,
            ClassRecording.class_number,
            Course.title.label('course_title'),
        )
        .join(Course, ClassRecording.course_id == Course.id)
        .where(ClassRecording.course_id.in_(course_ids), ClassRecording.is_active.is_(True))
        .order_by(ClassRecording.class_number.asc())
    )


def _load_materials(db: Database, course_ids: list[int]) -> list[dict]:
    return db.fetch_all(
        select(
            CourseMaterial.id,
            CourseMaterial.course_id,
            CourseMaterial.title,
            CourseMaterial.description,
            CourseMaterial.file_url,
            CourseMaterial.file_type,
            Course.title.label('course_title'),
        )
        .join(Course, CourseMaterial.course_id == Course.id)
        .where(CourseMaterial.course_id.in_(course_ids), CourseMaterial.is_active.is_(True))
        .order_by(CourseMaterial.created_at.desc())
    )


@router.get('/dashboard_data')
def student_dashboard_data(
    student_id: int | None = Query(default=None),
    db: Database = Depends(get_db),
):
    if not student_id:
        raise ApiError('student_id es requerido')

    try:
        student = db.fetch_one(
            select(User.id, User.full_name, User.email).where(
                User.id == student_id,
                User.role_id == ROLE_IDS['student'],
            )
        )
        if student is None:
            raise NotFoundError('Estudiante no encontrado')

        courses = _load_student_courses(db, student_id)
        course_ids = [course['id'] for course in courses]

        assignments: list[dict] = []
        recordings: list[dict] = []
        materials: list[dict] = []
        if course_ids:
            assignments = _load_assignments(db, student_id, course_ids)
            recordings = _load_recordings(db, course_ids)
            materials = _load_materials(db, course_ids)
    except SQLAlchemyError as exc:
        logger.exception('Student dashboard failed for %s', student_id)
        raise ServerError('Error al obtener datos del dashboard') from exc

    return success_response({
        'student': {
            'id': student['id'],
            'name': student['full_name'],
            'email': student['email'],
        },
        'stats': compute_student_stats(courses, assignments, date.today()),
        'courses': [
            {
                'id': c['id'],
                'title': c['title'],
                'description': c['description'],
                'schedule': format_schedule(c),
                'total_classes': int(c['total_classes'] or 0),
                'total_hours': int(c['total_hours'] or 0),
                'modality': c['modality'],
                'image_url': c['image_url'],
                'teacher': {
                    'id': c['teacher_id'],
                    'name': c['teacher_name'],
                },
                'enrolled_at': isoformat(c['enrolled_at']),
            }
            for c in courses
        ],
        'assignments': [
            {
                'id': a['id'],
                'course_id': a['course_id'],
                'course_title': a['course_title'],
                'title': a['title'],
                'description': a['description'],
                'due_date': isoformat(a['due_date']),
                'max_grade': float(a['max_grade']),
                'submission': {
                    'id': a['submission_id'],
                    'status': a['submission_status'],
                    'grade': float(a['grade']) if a['grade'] is not None else None,
                } if a['submission_id'] else None,
            }
            for a in assignments
        ],
        'recordings': [
            {
                'id': r['id'],
                'course_id': r['course_id'],
                'course_title': r['course_title'],
                'title': r['title'],
                'description': r['description'],
                'video_url': r['video_url'],
                'duration_minutes': int(r['duration_minutes'] or 0),
                'class_number': int(r['class_number'] or 0),
            }
            for r in recordings
        ],
        'materials': [
            {
                'id': m['id'],
                'course_id': m['course_id'],
                'course_title': m['course_title'],
                'title': m['title'],
                'description': m['description'],
                'file_url': m['file_url'],
                'file_type': m['file_type'],
            }
            for m in materials
        ],
    })


@router.post('/upload_submission')
async def upload_submission(
    assignment_id: int | None = Form(default=None),
    student_id: int | None = Form(default=None),
    comments: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    db: Database = Depends(get_db),
    files: FileService = Depends(get_file_service),
):
    if assignment_id is None or student_id is None:
        raise ApiError('assignment_id y student_id son requeridos')

    comments = sanitize(comments)

    try:
        assignment = db.fetch_one(
            select(
                Assignment.id,
                Assignment.course_id,
                Assignment.title,
                Assignment.due_date,
                Course.title.label('course_title'),
            )
            .join(Course, Assignment.course_id == Course.id)
            .where(Assignment.id == assignment_id, Assignment.is_active.is_(True))
        )
        if assignment is None:
            raise NotFoundError('Tarea no encontrada')

        enrollment = db.fetch_one(
            select(Enrollment.id).where(
                Enrollment.user_id == student_id,
                Enrollment.course_id == assignment['course_id'],
                Enrollment.status == 'approved',
            )
        )
        if enrollment is None:
            raise ForbiddenError('No estás inscrito en este curso')

        existing_submission = db.fetch_one(
            select(Submission.id).where(
                Submission.assignment_id == assignment_id,
                Submission.student_id == student_id,
            )
        )
    except SQLAlchemyError as exc:
        logger.exception('Submission lookup failed for assignment %s', assignment_id)
        raise ServerError('Error al procesar la entrega') from exc

    file_url = None
    if file is not None and file.filename:
        content = await file.read()
        try:
            mime_type = files.validate_submission(content)
        except UploadRejected as exc:
            raise ApiError(str(exc)) from exc

        filename = files.build_submission_filename(student_id, assignment_id, mime_type)
        try:
            file_url = await files.save(content, filename, SUBMISSIONS_SUBDIR)
        except OSError as exc:
            logger.exception('Could not store submission file %s', filename)
            raise ServerError('Error al guardar el archivo') from exc

    if not file_url and not existing_submission:
        raise ApiError('Debes subir un archivo')

    try:
        if existing_submission:
            update_data = {
                'comments': comments,
                'status': 'submitted',
                'submitted_at': datetime.now(),
            }
            if file_url:
                update_data['file_url'] = file_url

            db.update('submissions', update_data, {'id': existing_submission['id']})
            submission_id = existing_submission['id']
            message = 'Tarea actualizada exitosamente'
        else:
            submission_id = db.insert('submissions', {
                'assignment_id': assignment_id,
                'student_id': student_id,
                'file_url': file_url,
                'comments': comments,
                'status': 'submitted',
            })
            message = 'Tarea enviada exitosamente'

        submission = db.fetch_one(
            select(
                Submission.file_url,
                Submission.comments,
                Submission.status,
                Submission.submitted_at,
            ).where(Submission.id == submission_id)
        )
    except SQLAlchemyError as exc:
        logger.exception('Saving submission failed for assignment %s', assignment_id)
        raise ServerError('Error al procesar la entrega') from exc

    return success_response({
        'submission': {
            'id': submission_id,
            'assignment_id': assignment_id,
            'assignment_title': assignment['title'],
            'course_title': assignment['course_title'],
            'file_url': submission['file_url'],
            'comments': submission['comments'],
            'status': submission['status'],
            'submitted_at': isoformat(submission['submitted_at']),
        },
    }, message)

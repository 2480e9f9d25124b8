import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from backend.auth import jwt_handler
from backend.auth.dependencies import get_current_user
from backend.auth.passwords import get_password_hash, verify_password
from backend.core.responses import (
    ApiError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    sanitize,
    success_response,
    validate_required,
)
from backend.core.validators import is_valid_email
from backend.database import ROLE_IDS, Database, get_db
from backend.models.course import Course
from backend.models.user import Role, User

router = APIRouter(tags=['auth'])
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Credenciales incorrectas'
MIN_PASSWORD_LENGTH = 4
MIN_NAME_LENGTH = 3


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class RegisterRequest(BaseModel):
    full_name: str | None = None
    email: str | None = None
    password: str | None = None
    course_id: int | None = None
    phone: str | None = None
    country: str | None = None
    payment_method: str | None = None


@router.post('/login')
def login(data: LoginRequest, db: Database = Depends(get_db)):
    if not validate_required(data.model_dump(), ['email', 'password']):
        raise ApiError('Email y contraseña son requeridos')

    email = sanitize(data.email.lower())
    if not is_valid_email(email):
        raise ApiError('Formato de email inválido')

    try:
        user = db.fetch_one(
            select(
                User.id,
                User.full_name,
                User.email,
                User.password_hash,
                User.phone,
                User.avatar_url,
                User.is_active,
                Role.id.label('role_id'),
                Role.name.label('role_name'),
            )
            .join(Role, User.role_id == Role.id)
            .where(User.email == email)
            .limit(1)
        )

        if user is None:
            raise ApiError(INVALID_CREDENTIALS, status.HTTP_401_UNAUTHORIZED)

        if not user['is_active']:
            raise ForbiddenError('Tu cuenta está desactivada. Contacta al administrador.')

        if not verify_password(data.password, user['password_hash']):
            raise ApiError(INVALID_CREDENTIALS, status.HTTP_401_UNAUTHORIZED)

        db.update('users', {'last_login': datetime.now()}, {'id': user['id']})
    except SQLAlchemyError as exc:
        logger.exception('Login failed for %s', email)
        raise ServerError() from exc

    token = jwt_handler.create_session_token(user['id'], user['email'], user['role_name'])

    return success_response({
        'user': {
            'id': user['id'],
            'full_name': user['full_name'],
            'email': user['email'],
            'phone': user['phone'],
            'avatar_url': user['avatar_url'],
            'role': {
                'id': user['role_id'],
                'name': user['role_name'],
            },
        },
        'token': token,
    }, 'Inicio de sesión exitoso')


@router.post('/register')
def register(data: RegisterRequest, db: Database = Depends(get_db)):
    if not validate_required(data.model_dump(), ['full_name', 'email', 'password', 'course_id']):
        raise ApiError('Nombre, email, contraseña y curso son requeridos')

    full_name = sanitize(data.full_name)
    email = sanitize(data.email.lower())
    phone = sanitize(data.phone)
    country = sanitize(data.country)
    payment_method = sanitize(data.payment_method)

    if not is_valid_email(email):
        raise ApiError('Formato de email inválido')

    if len(data.password) < MIN_PASSWORD_LENGTH:
        raise ApiError(f'La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres')

    if len(full_name) < MIN_NAME_LENGTH:
        raise ApiError(f'El nombre debe tener al menos {MIN_NAME_LENGTH} caracteres')

    try:
        existing_user = db.fetch_one(select(User.id).where(User.email == email))
        if existing_user:
            raise ApiError('Este email ya está registrado', status.HTTP_409_CONFLICT)

        course = db.fetch_one(
            select(Course.id, Course.title).where(
                Course.id == data.course_id,
                Course.is_active.is_(True),
            )
        )
        if course is None:
            raise NotFoundError('El curso seleccionado no existe o no está disponible')

        with db.transaction():
            user_id = db.insert('users', {
                'full_name': full_name,
                'email': email,
                'password_hash': get_password_hash(data.password),
                'phone': phone,
                'country': country,
                'role_id': ROLE_IDS['student'],
            })
            enrollment_id = db.insert('enrollments', {
                'user_id': user_id,
                'course_id': course['id'],
                'payment_method': payment_method,
                'status': 'pending',
            })
    except SQLAlchemyError as exc:
        logger.exception('Registration failed for %s', email)
        raise ServerError('Error al procesar el registro') from exc

    logger.info('Registered student %s with pending enrollment %s', user_id, enrollment_id)

    return success_response({
        'user': {
            'id': user_id,
            'full_name': full_name,
            'email': email,
            'role': {
                'id': ROLE_IDS['student'],
                'name': 'student',
            },
        },
        'enrollment': {
            'id': enrollment_id,
            'course': course['title'],
            'status': 'pending',
        },
    }, 'Registro exitoso. Tu inscripción está pendiente de aprobación.')


@router.get('/me')
def me(current_user: dict = Depends(get_current_user)):
    return success_response({
        'id': current_user['id'],
        'full_name': current_user['full_name'],
        'email': current_user['email'],
        'role': {
            'id': current_user['role_id'],
            'name': current_user['role_name'],
        },
    })

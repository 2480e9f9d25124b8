import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.core import config
from backend.core.responses import error_response
from backend.database import Base, engine, ensure_roles
from backend.models import assignment, course, enrollment, user  # noqa: F401  (register tables)
from backend.routes import admin_routes, auth_routes, course_routes, student_routes, teacher_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title=config.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials='*' not in config.CORS_ALLOWED_ORIGINS,
    allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
    allow_headers=['Content-Type', 'Authorization', 'X-Requested-With'],
)

os.makedirs(config.UPLOAD_DIR, exist_ok=True)
app.mount(config.UPLOAD_URL_PREFIX, StaticFiles(directory=config.UPLOAD_DIR), name='uploads')


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return error_response('Método no permitido', exc.status_code)
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == 'Not Found':
        return error_response('Recurso no encontrado', exc.status_code)
    return error_response(str(exc.detail), exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info('Rejected malformed request to %s: %s', request.url.path, exc.errors())
    return error_response('Datos inválidos', status.HTTP_400_BAD_REQUEST)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return error_response('Error en el servidor', status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_roles()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and credentials.')


@app.get('/')
def root():
    return {'status': 'Escuela DUX API Running'}


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(course_routes.router, prefix='/api/courses')
app.include_router(student_routes.router, prefix='/api/student')
app.include_router(teacher_routes.router, prefix='/api/teacher')
app.include_router(admin_routes.router, prefix='/api/admin')

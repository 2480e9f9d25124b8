import os
from enum import Enum

from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv('API_BASE_URL', 'http://localhost:8000/api').rstrip('/')
API_TIMEOUT = float(os.getenv('API_TIMEOUT', '30'))
WEB_HOST = os.getenv('WEB_HOST', '127.0.0.1')
WEB_PORT = int(os.getenv('WEB_PORT', '8080'))
SESSION_SECRET_KEY = os.getenv('SESSION_SECRET_KEY', 'change-me')
# Content-Type is set per request (JSON body or multipart upload).
HEADERS = {
    'Accept': 'application/json',
}


class View(str, Enum):
    HOME = 'home'
    STUDENT_DASHBOARD = 'student-dashboard'
    TEACHER_DASHBOARD = 'teacher-dashboard'
    ADMIN_DASHBOARD = 'admin-dashboard'


class Role(str, Enum):
    STUDENT = 'student'
    TEACHER = 'teacher'
    ADMIN = 'admin'


ROLE_VIEWS = {
    Role.STUDENT: View.STUDENT_DASHBOARD,
    Role.TEACHER: View.TEACHER_DASHBOARD,
    Role.ADMIN: View.ADMIN_DASHBOARD,
}

ROLE_LABELS = {
    Role.STUDENT: 'Alumno',
    Role.TEACHER: 'Profesor',
    Role.ADMIN: 'Admin',
}

STUDENT_SECTIONS = {
    'clases': 'Clases grabadas',
    'material': 'Material de estudio',
    'horario': 'Horario',
    'tareas': 'Tareas',
    'notas': 'Notas',
}

TEACHER_SECTIONS = {
    'clases': 'Mis cursos',
    'tareas': 'Crear tarea',
    'alumnos': 'Alumnos',
    'evaluar': 'Evaluar entregas',
}

ADMIN_SECTIONS = {
    'resumen': 'Resumen',
    'inscripciones': 'Inscripciones',
    'usuarios': 'Usuarios',
}

PAYMENT_METHODS = {
    'tarjeta': 'Tarjeta de crédito/débito',
    'transferencia': 'Transferencia bancaria',
    'nequi': 'Nequi',
    'daviplata': 'Daviplata',
}

COUNTRIES = ['Colombia', 'México', 'Argentina', 'España', 'Otro']

# Password assigned to accounts created from the enrollment form.
ENROLLMENT_PASSWORD = '1234'

COMPANY_INFO = {
    'name': 'GRUPO DUX S.A.S',
    'email': 'educacionduxoficial@gmail.com',
    'nit': '901157018',
    'bank': 'Bancolombia',
    'account_number': '30200040441',
    'account_name': 'Grupo Dux S.A.S',
}

TEST_USERS = {
    'alumno': {'email': 'alumno@dux.com', 'password': '1234', 'role': Role.STUDENT, 'name': 'Estudiante Demo'},
    'profesor': {'email': 'profesor@dux.com', 'password': '1234', 'role': Role.TEACHER, 'name': 'Profesor Demo'},
    'admin': {'email': 'admin@dux.com', 'password': '1234', 'role': Role.ADMIN, 'name': 'Administrador'},
}

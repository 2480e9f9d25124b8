
import httpx
import pytest

from frontend.api_client import ApiClient
from frontend.config import View
from frontend.controllers import (
    ASSIGNMENT_FORM,
    DASHBOARD,
    ENROLLMENT_FORM,
    LOGIN_FORM,
    create_app,
)
from frontend.views.modals import EnrollmentForm


@pytest.fixture
def app(server):
    return create_app(ApiClient('http://testserver/api', transport=httpx.MockTransport(server.handler)))


def _logged_in(server, app, role: str, user_id: int = 1):
    server.login_as(role, user_id)
    assert app.login(f'{role}@dux.com', '1234') is True
    return app


def test_start_shows_home(app) -> None:
    assert app.router.current_view is View.HOME
    assert 'formLoginHome' in app.page.main


@pytest.mark.parametrize(
    ('email', 'password', 'message'),
    [
        ('', '1234', 'El email es requerido'),
        ('no-es-email', '1234', 'Email inválido'),
        ('ana@dux.com', '  ', 'La contraseña es requerida'),
    ],
)
def test_login_validates_before_calling_api(server, app, email, password, message) -> None:
    assert app.login(email, password) is False

    assert app.page.alerts[LOGIN_FORM].message == message
    assert server.requests == []


def test_failed_login_shows_server_error_inline(server, app) -> None:
    server.respond('POST', '/api/auth/login', server.fail(401, 'Credenciales incorrectas'))

    assert app.login('ana@dux.com', 'mala') is False

    assert app.page.alerts[LOGIN_FORM].message == 'Credenciales incorrectas'
    assert app.state.is_logged_in() is False
    assert app.router.current_view is View.HOME


def test_connection_failure_shows_connection_message(app, server) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('refused', request=request)

    app.api = ApiClient('http://testserver/api', transport=httpx.MockTransport(refuse))

    assert app.login('ana@dux.com', '1234') is False
    assert app.page.alerts[LOGIN_FORM].message.startswith('Error de conexión')


def test_successful_login_loads_role_dashboard(server, app) -> None:
    app.page.show_alert(LOGIN_FORM, 'viejo error')

    _logged_in(server, app, 'student', user_id=7)

    assert LOGIN_FORM not in app.page.alerts
    assert app.router.current_view is View.STUDENT_DASHBOARD
    assert app.state.get_dashboard_data()['stats']['pending_assignments'] == 2
    assert app.state.is_loading() is False
    assert server.requests[-1].url.params['student_id'] == '7'
    assert server.requests[-1].headers['authorization'] == 'Bearer token'
    assert '<strong>2</strong> tareas pendientes' in app.page.main


def test_admin_dashboard_merges_three_endpoints(server, app) -> None:
    _logged_in(server, app, 'admin')

    data = app.state.get_dashboard_data()

    assert data['stats'] == {'total_students': 3}
    assert data['enrollments'] == []
    assert data['users_pagination'] == {'total': 0}
    assert server.paths('GET') == ['/api/admin/get_stats', '/api/admin/get_enrollments', '/api/admin/get_users']


def test_dashboard_failure_resets_loading_flag(server, app) -> None:
    server.respond('GET', '/api/teacher/dashboard_data', server.fail(500, 'Error en el servidor'))

    _logged_in(server, app, 'teacher')

    assert app.state.is_loading() is False
    assert app.page.alerts[DASHBOARD].message == 'Error en el servidor'
    assert app.state.get_dashboard_data() is None


def test_logout_returns_home(server, app) -> None:
    _logged_in(server, app, 'student')

    app.logout()

    assert app.state.is_logged_in() is False
    assert app.api.is_authenticated() is False
    assert app.router.current_view is View.HOME
    assert 'inscripcionBtn' in app.page.navbar


def test_show_section_rerenders_panel(server, app) -> None:
    _logged_in(server, app, 'teacher')

    app.show_section('tareas')

    assert 'id="formCrearTarea"' in app.page.main


def test_open_enrollment_fetches_courses_once(server, app) -> None:
    app.open_enrollment()
    app.select_course(1)

    assert server.paths() == ['/api/courses/get_all']
    assert 'id="detallesCurso"' in app.page.modals


def test_enroll_validates_form(server, app) -> None:
    result = app.enroll(EnrollmentForm(course_id='1', full_name='Al', email='a@dux.com', payment_method='nequi'))

    assert result is None
    assert app.page.alerts[ENROLLMENT_FORM].message == 'El nombre debe tener al menos 3 caracteres'
    assert server.requests == []


def test_enroll_registers_and_renders_planilla(server, app) -> None:
    server.respond('POST', '/api/auth/register', server.ok({'user_id': 9, 'enrollment_id': 4}, 'Registro exitoso'))
    form = EnrollmentForm(
        course_id='1', full_name='Ana Ruiz', email='ana@dux.com', phone='300', country='Colombia',
        payment_method='nequi',
    )

    result = app.enroll(form)

    assert result == {'user_id': 9, 'enrollment_id': 4}
    assert server.last_json('/api/auth/register')['password'] == '1234'
    assert server.last_json('/api/auth/register')['course_id'] == 1
    assert 'id="planillaModal"' in app.page.modals
    assert 'Escritura creativa' in app.page.modals
    assert ENROLLMENT_FORM not in app.page.alerts


def test_enroll_shows_duplicate_email_inline(server, app) -> None:
    server.respond('POST', '/api/auth/register', server.fail(409, 'Este email ya está registrado'))

    result = app.enroll(EnrollmentForm(course_id='1', full_name='Ana Ruiz', email='ana@dux.com',
                                       payment_method='nequi'))

    assert result is None
    assert app.page.alerts[ENROLLMENT_FORM].message == 'Este email ya está registrado'
    assert 'planillaModal' not in app.page.modals


def test_upload_failure_is_shown_as_dialog(server, app) -> None:
    _logged_in(server, app, 'student', user_id=7)
    server.respond('POST', '/api/student/upload_submission',
                   server.fail(400, 'Tipo de archivo no permitido. Use PDF, DOC, DOCX, TXT o imágenes'))

    assert app.upload_submission(3, ('virus.exe', b'\x7fELF', 'application/octet-stream')) is False
    assert app.page.dialogs == ['Tipo de archivo no permitido. Use PDF, DOC, DOCX, TXT o imágenes']


def test_upload_success_reloads_dashboard(server, app) -> None:
    _logged_in(server, app, 'student', user_id=7)
    server.respond('POST', '/api/student/upload_submission', server.ok(message='Tarea enviada exitosamente'))

    assert app.upload_submission(3, ('tarea.pdf', b'%PDF-1.4', 'application/pdf'), 'Listo') is True

    assert app.page.dialogs == ['Tarea enviada exitosamente']
    assert server.paths()[-1] == '/api/student/dashboard_data'


def test_create_assignment_validates_and_posts(server, app) -> None:
    _logged_in(server, app, 'teacher', user_id=2)
    server.respond('POST', '/api/teacher/create_assignment', server.ok({'assignment': {'id': 1}}, 'Tarea creada exitosamente'))

    assert app.create_assignment({'course_id': '1', 'title': 'Ensayo', 'due_date': '20/05/2026'}) is False
    assert app.page.alerts[ASSIGNMENT_FORM].message == 'Formato de fecha inválido. Use YYYY-MM-DD'

    assert app.create_assignment({'course_id': '1', 'title': 'Ensayo', 'due_date': '', 'max_grade': '50'}) is True
    assert server.last_json('/api/teacher/create_assignment') == {
        'course_id': 1,
        'teacher_id': 2,
        'title': 'Ensayo',
        'description': None,
        'due_date': None,
        'max_grade': 50.0,
    }
    assert app.page.alerts[ASSIGNMENT_FORM].level == 'success'


def test_grade_submission_rejects_non_numeric_grade(server, app) -> None:
    _logged_in(server, app, 'teacher', user_id=2)
    sent = len(server.requests)

    assert app.grade_submission(5, 'diez') is False
    assert app.page.dialogs == ['La calificación debe ser un número']
    assert len(server.requests) == sent


def test_grade_submission_permission_error_is_shown_as_dialog(server, app) -> None:
    _logged_in(server, app, 'teacher', user_id=2)
    server.respond('POST', '/api/teacher/grade_submission',
                   server.fail(403, 'No tienes permisos para calificar esta entrega'))

    assert app.grade_submission(5, '95', 'Bien') is False
    assert app.page.dialogs == ['No tienes permisos para calificar esta entrega']
    assert server.last_json('/api/teacher/grade_submission') == {
        'submission_id': 5, 'teacher_id': 2, 'grade': 95.0, 'feedback': 'Bien',
    }


def test_update_enrollment_sends_admin_id(server, app) -> None:
    _logged_in(server, app, 'admin', user_id=1)
    server.respond('POST', '/api/admin/approve_enrollment', server.ok({'enrollment': {'id': 4}}, 'Inscripción aprobada exitosamente'))

    assert app.update_enrollment(4, 'approved', 'Pago verificado') is True

    assert app.page.dialogs == ['Inscripción aprobada exitosamente']
    assert server.last_json('/api/admin/approve_enrollment') == {
        'enrollment_id': 4, 'status': 'approved', 'admin_id': 1, 'notes': 'Pago verificado',
    }

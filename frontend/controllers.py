"""User-facing flows wired to the API client, the state store and the router.

Validation and authentication problems are shown inline next to the form
that caused them; failures while uploading, grading or changing an
enrollment are shown as dialogs.
"""
import logging
from dataclasses import asdict

from frontend.api_client import ApiClient, ApiError
from frontend.config import ENROLLMENT_PASSWORD, Role
from frontend.router import Router
from frontend.state import StateManager
from frontend.validators import (
    ASSIGNMENT_RULES,
    ENROLLMENT_RULES,
    GRADE_RULES,
    LOGIN_RULES,
    first_error,
    validate_form,
)
from frontend.views.layout import Page
from frontend.views.modals import (
    EnrollmentForm,
    build_planilla_data,
    find_course,
    render_enrollment_modal,
    render_modals,
)

logger = logging.getLogger(__name__)

LOGIN_FORM = 'formLoginHome'
ENROLLMENT_FORM = 'formInscripcion'
ASSIGNMENT_FORM = 'formCrearTarea'
DASHBOARD = 'dashboard'


class AppController:
    def __init__(self, api: ApiClient, state: StateManager, router: Router, page: Page):
        self.api = api
        self.state = state
        self.router = router
        self.page = page
        self._courses: list[dict] | None = None

    def start(self) -> None:
        self.router.init()
        if self.state.is_logged_in():
            self.load_dashboard()

    def _report(self, form_id: str, error: ApiError) -> None:
        if error.is_server_error() or error.status == 0:
            logger.error('Request failed (%s): %s', error.status, error.message)
        self.page.show_alert(form_id, error.message)

    # Authentication

    def login(self, email: str, password: str) -> bool:
        is_valid, errors = validate_form({'email': email, 'password': password}, LOGIN_RULES)
        if not is_valid:
            self.page.show_alert(LOGIN_FORM, first_error(errors))
            return False

        try:
            response = self.api.login(email.strip(), password)
        except ApiError as exc:
            self._report(LOGIN_FORM, exc)
            return False

        self.page.remove_alert(LOGIN_FORM)
        self.state.set_user(response['data']['user'])
        self.load_dashboard()
        return True

    def logout(self) -> None:
        self.api.logout()
        self.state.clear_user()
        self.page.alerts.clear()
        self.router.refresh()
        logger.info('Session closed')

    # Enrollment

    def _load_courses(self) -> list[dict]:
        if self._courses is None:
            try:
                response = self.api.get_courses()
            except ApiError as exc:
                logger.warning('Could not load courses: %s', exc.message)
                return []
            self._courses = response['data']['courses']
        return self._courses

    def open_enrollment(self) -> None:
        self.page.modals = render_modals(self._load_courses())

    def select_course(self, course_id) -> None:
        self.page.modals = render_enrollment_modal(self._load_courses(), course_id)

    def enroll(self, form: EnrollmentForm) -> dict | None:
        is_valid, errors = validate_form(asdict(form), ENROLLMENT_RULES)
        if not is_valid:
            self.page.show_alert(ENROLLMENT_FORM, first_error(errors))
            return None

        try:
            response = self.api.register(form.as_register_payload(ENROLLMENT_PASSWORD))
        except ApiError as exc:
            self._report(ENROLLMENT_FORM, exc)
            return None

        courses = self._load_courses()
        planilla = build_planilla_data(form, find_course(courses, form.course_id))
        self.page.remove_alert(ENROLLMENT_FORM)
        self.page.modals = render_modals(courses, planilla)
        logger.info('Enrollment created for %s', form.email)
        return response['data']

    # Dashboards

    def _fetch_dashboard(self, role: str, user_id: int) -> dict | None:
        if role == Role.STUDENT.value:
            return self.api.get_student_dashboard(user_id)['data']
        if role == Role.TEACHER.value:
            return self.api.get_teacher_dashboard(user_id)['data']
        if role == Role.ADMIN.value:
            stats = self.api.get_admin_stats()['data']
            enrollments = self.api.get_enrollments()['data']
            users = self.api.get_users()['data']
            return {
                **stats,
                'enrollments': enrollments['enrollments'],
                'enrollments_pagination': enrollments['pagination'],
                'users': users['users'],
                'users_pagination': users['pagination'],
            }
        return None

    def load_dashboard(self) -> bool:
        user = self.state.get_user()
        if user is None:
            return False

        self.state.set_loading(True)
        try:
            data = self._fetch_dashboard(user['role'], user['id'])
        except ApiError as exc:
            self._report(DASHBOARD, exc)
            return False
        finally:
            self.state.set_loading(False)

        self.page.remove_alert(DASHBOARD)
        self.state.set_dashboard_data(data)
        return True

    def show_section(self, section: str) -> None:
        self.state.set_section(section)

    # Student

    def upload_submission(
        self,
        assignment_id: int,
        file: tuple[str, bytes, str] | None = None,
        comments: str | None = None,
    ) -> bool:
        try:
            response = self.api.upload_submission(
                assignment_id, self.state.get_user_id(), comments, file
            )
        except ApiError as exc:
            logger.warning('Upload for assignment %s failed: %s', assignment_id, exc.message)
            self.page.alert(exc.message)
            return False

        self.page.alert(response.get('message', 'Tarea enviada exitosamente'))
        self.load_dashboard()
        return True

    # Teacher

    def create_assignment(self, fields: dict) -> bool:
        is_valid, errors = validate_form(fields, ASSIGNMENT_RULES)
        if not is_valid:
            self.page.show_alert(ASSIGNMENT_FORM, first_error(errors))
            return False

        payload = {
            'course_id': int(fields['course_id']),
            'teacher_id': self.state.get_user_id(),
            'title': fields['title'],
            'description': fields.get('description') or None,
            'due_date': fields.get('due_date') or None,
        }
        if fields.get('max_grade') not in (None, ''):
            payload['max_grade'] = float(fields['max_grade'])

        try:
            response = self.api.create_assignment(payload)
        except ApiError as exc:
            self._report(ASSIGNMENT_FORM, exc)
            return False

        self.page.show_alert(ASSIGNMENT_FORM, response['message'], 'success')
        self.load_dashboard()
        return True

    def grade_submission(self, submission_id: int, grade, feedback: str | None = None) -> bool:
        is_valid, errors = validate_form({'grade': grade}, GRADE_RULES)
        if not is_valid:
            self.page.alert(first_error(errors))
            return False

        try:
            self.api.grade_submission({
                'submission_id': submission_id,
                'teacher_id': self.state.get_user_id(),
                'grade': float(grade),
                'feedback': feedback,
            })
        except ApiError as exc:
            logger.warning('Grading submission %s failed: %s', submission_id, exc.message)
            self.page.alert(exc.message)
            return False

        self.load_dashboard()
        return True

    # Admin

    def update_enrollment(self, enrollment_id: int, status: str, notes: str | None = None) -> bool:
        try:
            response = self.api.update_enrollment_status({
                'enrollment_id': enrollment_id,
                'status': status,
                'admin_id': self.state.get_user_id(),
                'notes': notes,
            })
        except ApiError as exc:
            logger.warning('Updating enrollment %s failed: %s', enrollment_id, exc.message)
            self.page.alert(exc.message)
            return False

        self.page.alert(response['message'])
        self.load_dashboard()
        return True


def create_app(api: ApiClient | None = None) -> AppController:
    api = api or ApiClient()
    state = StateManager(api)
    page = Page()
    controller = AppController(api, state, Router(state, page), page)
    controller.start()
    return controller

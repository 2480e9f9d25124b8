from dataclasses import dataclass
from datetime import date

from frontend.config import COMPANY_INFO, COUNTRIES, PAYMENT_METHODS
from frontend.views.templating import format_money, render


@dataclass
class EnrollmentForm:
    course_id: str = ''
    full_name: str = ''
    email: str = ''
    phone: str = ''
    country: str = ''
    payment_method: str = ''

    def as_register_payload(self, password: str) -> dict:
        return {
            'full_name': self.full_name,
            'email': self.email,
            'password': password,
            'course_id': int(self.course_id),
            'phone': self.phone or None,
            'country': self.country or None,
            'payment_method': self.payment_method or None,
        }


def find_course(courses: list[dict], course_id) -> dict | None:
    for course in courses:
        if str(course['id']) == str(course_id):
            return course
    return None


def build_planilla_data(form: EnrollmentForm, course: dict | None, today: date | None = None) -> dict:
    """Collect everything printed on the enrollment sheet."""
    course = course or {}
    schedule = course.get('schedule') or {}
    teacher = course.get('teacher') or {}
    price = course.get('price') or {}
    today = today or date.today()

    return {
        'course': {
            'id': form.course_id,
            'name': course.get('title', ''),
            'shift': schedule.get('shift') or '',
            'days': schedule.get('days') or '',
            'time': schedule.get('time') or '',
            'total_classes': course.get('total_classes') or '',
            'total_hours': course.get('total_hours') or '',
            'teacher': teacher.get('name') or '',
        },
        'student': {
            'name': form.full_name,
            'email': form.email,
            'phone': form.phone,
            'country': form.country,
            'whatsapp': form.phone,
        },
        'payment': {
            'method': PAYMENT_METHODS.get(form.payment_method, form.payment_method),
            'enrolled_on': today.strftime('%d/%m/%Y'),
            'value_cop': format_money(price.get('cop'), 'COP'),
            'value_usd': format_money(price.get('usd'), 'USD'),
        },
    }


def render_enrollment_modal(courses: list[dict], selected_course_id=None) -> str:
    selected = find_course(courses, selected_course_id) if selected_course_id else None
    return render(
        'enrollment_modal.html',
        courses=courses,
        selected=selected,
        countries=COUNTRIES,
        payment_methods=PAYMENT_METHODS,
    )


def render_planilla(planilla: dict) -> str:
    return render('planilla_modal.html', planilla=planilla, company=COMPANY_INFO)


def render_modals(courses: list[dict], planilla: dict | None = None) -> str:
    html = render_enrollment_modal(courses)
    if planilla is not None:
        html += render_planilla(planilla)
    return html

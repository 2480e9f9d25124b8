from frontend.config import ADMIN_SECTIONS
from frontend.state import AppState
from frontend.views.templating import render

DEFAULT_SECTION = 'resumen'

STATUS_LABELS = {
    'pending': ('Pendiente', 'warning'),
    'approved': ('Aprobada', 'success'),
    'rejected': ('Rechazada', 'danger'),
    'cancelled': ('Cancelada', 'secondary'),
}


def status_badge(status: str) -> tuple[str, str]:
    return STATUS_LABELS.get(status, (status, 'secondary'))


def render_admin_panel(state: AppState) -> str:
    section = state.current_section if state.current_section in ADMIN_SECTIONS else DEFAULT_SECTION
    data = state.dashboard_data or {}

    return render(
        'admin_panel.html',
        state=state,
        sections=ADMIN_SECTIONS,
        section=section,
        stats=data.get('stats', {}),
        recent_activity=data.get('recent_activity', []),
        popular_courses=data.get('popular_courses', []),
        enrollments=data.get('enrollments', []),
        users=data.get('users', []),
        status_badge=status_badge,
    )

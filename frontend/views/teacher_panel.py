from frontend.config import TEACHER_SECTIONS
from frontend.state import AppState
from frontend.views.templating import render

DEFAULT_SECTION = 'clases'


def render_teacher_panel(state: AppState) -> str:
    section = state.current_section if state.current_section in TEACHER_SECTIONS else DEFAULT_SECTION
    data = state.dashboard_data or {}

    return render(
        'teacher_panel.html',
        state=state,
        sections=TEACHER_SECTIONS,
        section=section,
        stats=data.get('stats', {}),
        courses=data.get('courses', []),
        students=data.get('students', []),
        pending_submissions=data.get('pending_submissions', []),
    )

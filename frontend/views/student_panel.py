from frontend.config import STUDENT_SECTIONS
from frontend.state import AppState
from frontend.views.templating import render

DEFAULT_SECTION = 'clases'

SUBMISSION_LABELS = {
    None: 'Pendiente',
    'submitted': 'Entregada',
    'graded': 'Calificada',
    'returned': 'Devuelta',
}


def submission_label(assignment: dict) -> str:
    submission = assignment.get('submission') or {}
    return SUBMISSION_LABELS.get(submission.get('status'), 'Pendiente')


def graded_assignments(assignments: list[dict]) -> list[dict]:
    return [
        a for a in assignments
        if a.get('submission') and a['submission'].get('grade') is not None
    ]


def render_student_panel(state: AppState) -> str:
    section = state.current_section if state.current_section in STUDENT_SECTIONS else DEFAULT_SECTION
    data = state.dashboard_data or {}
    assignments = data.get('assignments', [])

    return render(
        'student_panel.html',
        state=state,
        sections=STUDENT_SECTIONS,
        section=section,
        data=data,
        stats=data.get('stats', {}),
        courses=data.get('courses', []),
        assignments=assignments,
        recordings=data.get('recordings', []),
        materials=data.get('materials', []),
        graded=graded_assignments(assignments),
        submission_label=submission_label,
    )

from dataclasses import dataclass, field

from frontend.state import AppState
from frontend.views.templating import render

APP_TITLE = 'Escuela DUX'


@dataclass
class Alert:
    message: str
    level: str = 'danger'


@dataclass
class Page:
    """The rendered document: one slot per region of the single page app."""

    title: str = APP_TITLE
    navbar: str = ''
    main: str = ''
    modals: str = ''
    alerts: dict[str, Alert] = field(default_factory=dict)
    dialogs: list[str] = field(default_factory=list)

    def show_alert(self, form_id: str, message: str, level: str = 'danger') -> None:
        self.alerts[form_id] = Alert(message, level)

    def remove_alert(self, form_id: str) -> None:
        self.alerts.pop(form_id, None)

    def alert(self, message: str) -> None:
        """Blocking dialog, the equivalent of ``window.alert``."""
        self.dialogs.append(message)

    def render(self) -> str:
        return render('page.html', page=self)


def render_navbar(state: AppState) -> str:
    return render('navbar.html', state=state, user=state.user)

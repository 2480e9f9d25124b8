import logging
from dataclasses import dataclass, field
from typing import Callable

from frontend.config import ROLE_LABELS, Role, View
from frontend.state import AppState, StateManager
from frontend.views.admin_panel import render_admin_panel
from frontend.views.home import render_home
from frontend.views.layout import APP_TITLE, Page, render_navbar
from frontend.views.student_panel import render_student_panel
from frontend.views.teacher_panel import render_teacher_panel

logger = logging.getLogger(__name__)


@dataclass
class RouteConfig:
    render: Callable[[AppState], str]
    requires_auth: bool = False
    allowed_roles: frozenset[Role] = field(default_factory=frozenset)
    title: str = APP_TITLE


def default_routes() -> dict[View, RouteConfig]:
    return {
        View.HOME: RouteConfig(render_home, title=APP_TITLE),
        View.STUDENT_DASHBOARD: RouteConfig(
            render_student_panel,
            requires_auth=True,
            allowed_roles=frozenset({Role.STUDENT}),
            title=f'{APP_TITLE} | {ROLE_LABELS[Role.STUDENT]}',
        ),
        View.TEACHER_DASHBOARD: RouteConfig(
            render_teacher_panel,
            requires_auth=True,
            allowed_roles=frozenset({Role.TEACHER}),
            title=f'{APP_TITLE} | {ROLE_LABELS[Role.TEACHER]}',
        ),
        View.ADMIN_DASHBOARD: RouteConfig(
            render_admin_panel,
            requires_auth=True,
            allowed_roles=frozenset({Role.ADMIN}),
            title=f'{APP_TITLE} | {ROLE_LABELS[Role.ADMIN]}',
        ),
    }


class Router:
    """Renders the view selected in the state into the page.

    Protected views are only rendered for an authenticated user whose role is
    listed in the route; any other request falls back to the home view.
    """

    def __init__(self, state: StateManager, page: Page, routes: dict[View, RouteConfig] | None = None):
        self._state = state
        self._page = page
        self._routes = routes if routes is not None else default_routes()
        self._current_view: View | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def current_view(self) -> View | None:
        return self._current_view

    def register(self, view: View, route: RouteConfig) -> None:
        self._routes[view] = route

    def init(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._state.subscribe('router', self._on_state_change)
        self.navigate(self._state.get_current_view())

    def _on_state_change(self, state: AppState, previous: AppState) -> None:
        if state.current_view != previous.current_view:
            self.navigate(state.current_view)
        elif state != previous:
            self.refresh()

    def _resolve(self, view) -> View:
        try:
            view = View(view)
        except ValueError:
            logger.warning('Unknown view %r, showing home', view)
            return View.HOME
        if view not in self._routes:
            logger.warning('No route registered for %s, showing home', view.value)
            return View.HOME

        route = self._routes[view]
        if not route.requires_auth:
            return view

        state = self._state.get_state()
        if not state.is_authenticated or state.user is None:
            logger.info('Unauthenticated access to %s, showing home', view.value)
            return View.HOME
        if route.allowed_roles and not self._role_allowed(state.user.get('role'), route):
            logger.info('Role %s may not open %s, showing home', state.user.get('role'), view.value)
            return View.HOME
        return view

    @staticmethod
    def _role_allowed(role: str | None, route: RouteConfig) -> bool:
        try:
            return Role(role) in route.allowed_roles
        except ValueError:
            return False

    def navigate(self, view) -> View:
        view = self._resolve(view)
        route = self._routes[view]
        state = self._state.get_state()

        self._page.navbar = render_navbar(state)
        self._page.main = route.render(state)
        self._page.title = route.title
        self._current_view = view
        return view

    def refresh(self) -> None:
        self.navigate(self._state.get_current_view())

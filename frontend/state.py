import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable

from frontend.config import ROLE_VIEWS, Role, View

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppState:
    user: dict | None = None
    is_authenticated: bool = False
    current_view: View = View.HOME
    current_section: str | None = None
    is_loading: bool = False
    dashboard_data: dict | None = None

    def as_dict(self) -> dict:
        return asdict(self)


Listener = Callable[[AppState, AppState], None]


def view_for_role(role: str | None) -> View:
    try:
        return ROLE_VIEWS[Role(role)]
    except ValueError:
        return View.HOME


def normalize_user(user_data: dict) -> dict:
    """Flatten the user payload returned by /auth/login into the shape views use."""
    role = user_data.get('role') or {}
    return {
        'id': user_data['id'],
        'name': user_data.get('full_name'),
        'email': user_data.get('email'),
        'role': role.get('name'),
        'role_id': role.get('id'),
        'phone': user_data.get('phone') or None,
        'avatar_url': user_data.get('avatar_url') or None,
    }


class StateManager:
    """Observable application state.

    Listeners are keyed so registering the same key twice replaces the
    previous callback. Every change notifies all listeners synchronously with
    ``(new_state, previous_state)``.
    """

    def __init__(self, api=None):
        self._api = api
        self._state = AppState()
        self._listeners: dict[str, Listener] = {}
        self._restore_session()

    def _restore_session(self) -> None:
        if self._api is None:
            return
        session = self._api.get_session()
        if session and session.get('user'):
            user = normalize_user(session['user'])
            self._state = replace(
                self._state,
                user=user,
                is_authenticated=True,
                current_view=view_for_role(user['role']),
            )

    def get_state(self) -> AppState:
        return self._state

    def get(self, key: str) -> Any:
        return getattr(self._state, key)

    def set_state(self, **updates) -> None:
        previous = self._state
        self._state = replace(self._state, **updates)
        self._notify(previous)

    def subscribe(self, key: str, callback: Listener) -> Callable[[], None]:
        self._listeners[key] = callback

        def unsubscribe() -> None:
            if self._listeners.get(key) is callback:
                del self._listeners[key]

        return unsubscribe

    def _notify(self, previous: AppState) -> None:
        for callback in list(self._listeners.values()):
            callback(self._state, previous)

    def reset(self) -> None:
        previous = self._state
        self._state = AppState()
        if self._api is not None:
            self._api.logout()
        self._notify(previous)

    # Authentication

    def set_user(self, user_data: dict) -> None:
        user = normalize_user(user_data)
        self.set_state(
            user=user,
            is_authenticated=True,
            current_view=view_for_role(user['role']),
            dashboard_data=None,
        )
        logger.info('User %s signed in as %s', user['email'], user['role'])

    def clear_user(self) -> None:
        self.reset()

    def is_logged_in(self) -> bool:
        return self._state.is_authenticated

    def get_user(self) -> dict | None:
        return self._state.user

    def get_user_role(self) -> str | None:
        return self._state.user['role'] if self._state.user else None

    def get_user_id(self) -> int | None:
        return self._state.user['id'] if self._state.user else None

    def get_user_name(self) -> str | None:
        return self._state.user['name'] if self._state.user else None

    # Navigation

    def set_view(self, view: View) -> None:
        self.set_state(current_view=view, current_section=None, dashboard_data=None)

    def set_section(self, section: str | None) -> None:
        self.set_state(current_section=section)

    def get_current_view(self) -> View:
        return self._state.current_view

    def get_current_section(self) -> str | None:
        return self._state.current_section

    # Data loading

    def set_loading(self, is_loading: bool) -> None:
        self.set_state(is_loading=is_loading)

    def is_loading(self) -> bool:
        return self._state.is_loading

    def set_dashboard_data(self, data: dict | None) -> None:
        self.set_state(dashboard_data=data)

    def get_dashboard_data(self) -> dict | None:
        return self._state.dashboard_data

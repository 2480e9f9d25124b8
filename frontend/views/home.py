from frontend.config import TEST_USERS
from frontend.state import AppState
from frontend.views.templating import render


def render_home(state: AppState, show_test_users: bool = True) -> str:
    test_users = list(TEST_USERS.values()) if show_test_users else []
    return render('home.html', state=state, test_users=test_users)

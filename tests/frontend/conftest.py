import json

import httpx
import pytest

COURSES = [
    {
        'id': 1,
        'title': 'Escritura creativa',
        'total_classes': 8,
        'total_hours': 16,
        'schedule': {'shift': 'Mañana', 'days': 'Lunes y miércoles', 'time': '9:00 - 11:00'},
        'teacher': {'id': 2, 'name': 'Carolina'},
        'price': {'cop': 350000.0, 'usd': 90.0},
    },
]


class FakeServer:
    """Routes API requests to canned responses and records what was sent."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: dict[tuple[str, str], tuple[int, dict]] = {
            ('GET', '/api/courses/get_all'): self.ok({'courses': COURSES}),
            ('GET', '/api/student/dashboard_data'): self.ok({'stats': {'pending_assignments': 2}, 'assignments': []}),
            ('GET', '/api/teacher/dashboard_data'): self.ok({'stats': {'pending_grades': 1}, 'courses': COURSES}),
            ('GET', '/api/admin/get_stats'): self.ok({'stats': {'total_students': 3}, 'recent_activity': [],
                                                      'popular_courses': []}),
            ('GET', '/api/admin/get_enrollments'): self.ok({'enrollments': [], 'pagination': {'total': 0}}),
            ('GET', '/api/admin/get_users'): self.ok({'users': [], 'pagination': {'total': 0}}),
        }

    @staticmethod
    def ok(data=None, message='OK') -> tuple[int, dict]:
        body = {'success': True, 'message': message}
        if data is not None:
            body['data'] = data
        return 200, body

    @staticmethod
    def fail(status: int, error: str) -> tuple[int, dict]:
        return status, {'success': False, 'error': error}

    def respond(self, method: str, path: str, response: tuple[int, dict]) -> None:
        self.responses[(method, path)] = response

    def login_as(self, role: str, user_id: int = 1) -> None:
        user = {'id': user_id, 'full_name': f'Demo {role}', 'email': f'{role}@dux.com', 'role': {'id': 1, 'name': role}}
        self.respond('POST', '/api/auth/login', self.ok({'user': user, 'token': 'token'}))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.get((request.method, request.url.path), self.fail(404, 'Recurso no encontrado'))
        return httpx.Response(status, json=body)

    def paths(self, method: str | None = None) -> list[str]:
        return [r.url.path for r in self.requests if method is None or r.method == method]

    def last_request(self, path: str) -> httpx.Request:
        return [r for r in self.requests if r.url.path == path][-1]

    def last_json(self, path: str) -> dict:
        return json.loads(self.last_request(path).content)


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()

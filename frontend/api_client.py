"""HTTP client for the Escuela DUX API.

All endpoints answer with the ``{success, message, data}`` envelope; any
non-2xx answer is raised as :class:`ApiError` carrying the server's ``error``.
"""
import logging
from typing import Any

import httpx

from frontend import config

logger = logging.getLogger(__name__)

CONNECTION_ERROR_MESSAGE = 'Error de conexión. Verifica tu conexión a internet.'
DEFAULT_ERROR_MESSAGE = 'Error en la petición'


class ApiError(Exception):
    def __init__(self, message: str, status: int, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    def is_auth_error(self) -> bool:
        return self.status in (401, 403)

    def is_validation_error(self) -> bool:
        return self.status == 400

    def is_server_error(self) -> bool:
        return self.status >= 500


class ApiClient:
    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        timeout: float = config.API_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers=config.HEADERS,
            transport=transport,
        )
        self._token: str | None = None
        self._session: dict | None = None

    def close(self) -> None:
        self._client.close()

    def set_token(self, token: str | None) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None

    def _headers(self) -> dict[str, str]:
        if self._token:
            return {'Authorization': f'Bearer {self._token}'}
        return {}

    def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        path = endpoint if endpoint.startswith('/') else f'/{endpoint}'
        logger.debug('%s %s', method, path)

        try:
            response = self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TransportError as exc:
            logger.error('Request %s %s failed: %s', method, path, exc)
            raise ApiError(CONNECTION_ERROR_MESSAGE, 0, {'original_error': str(exc)}) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            message = DEFAULT_ERROR_MESSAGE
            if isinstance(payload, dict) and payload.get('error'):
                message = payload['error']
            raise ApiError(message, response.status_code, payload)

        if not isinstance(payload, dict):
            raise ApiError(DEFAULT_ERROR_MESSAGE, response.status_code)
        return payload

    def get(self, endpoint: str, params: dict | None = None) -> dict:
        if params:
            params = {key: value for key, value in params.items() if value is not None}
        return self._request('GET', endpoint, params=params or None)

    def post(self, endpoint: str, data: dict | None = None) -> dict:
        return self._request('POST', endpoint, json=data or {})

    def upload(self, endpoint: str, data: dict[str, Any], files: dict[str, tuple] | None = None) -> dict:
        form = {key: str(value) for key, value in data.items() if value is not None}
        return self._request('POST', endpoint, data=form, files=files or None)

    # Session

    def login(self, email: str, password: str) -> dict:
        response = self.post('/auth/login', {'email': email, 'password': password})
        if response.get('success') and response.get('data'):
            self.set_token(response['data'].get('token'))
            self._session = response['data']
        return response

    def register(self, user_data: dict) -> dict:
        return self.post('/auth/register', user_data)

    def logout(self) -> None:
        self.clear_token()
        self._session = None

    def get_session(self) -> dict | None:
        return self._session

    def is_authenticated(self) -> bool:
        return self._session is not None

    # Endpoints

    def get_courses(self, modality: str | None = None) -> dict:
        return self.get('/courses/get_all', {'modality': modality})

    def get_student_dashboard(self, student_id: int) -> dict:
        return self.get('/student/dashboard_data', {'student_id': student_id})

    def upload_submission(
        self,
        assignment_id: int,
        student_id: int,
        comments: str | None = None,
        file: tuple[str, bytes, str] | None = None,
    ) -> dict:
        return self.upload(
            '/student/upload_submission',
            {'assignment_id': assignment_id, 'student_id': student_id, 'comments': comments},
            {'file': file} if file else None,
        )

    def get_teacher_dashboard(self, teacher_id: int) -> dict:
        return self.get('/teacher/dashboard_data', {'teacher_id': teacher_id})

    def create_assignment(self, assignment_data: dict) -> dict:
        return self.post('/teacher/create_assignment', assignment_data)

    def grade_submission(self, grade_data: dict) -> dict:
        return self.post('/teacher/grade_submission', grade_data)

    def get_admin_stats(self) -> dict:
        return self.get('/admin/get_stats')

    def get_users(self, filters: dict | None = None) -> dict:
        return self.get('/admin/get_users', filters)

    def get_enrollments(self, filters: dict | None = None) -> dict:
        return self.get('/admin/get_enrollments', filters)

    def update_enrollment_status(self, data: dict) -> dict:
        return self.post('/admin/approve_enrollment', data)

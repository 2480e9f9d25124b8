"""JSON envelopes shared by every API endpoint."""

from datetime import date, datetime
from typing import Any, Iterable

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse


class ApiError(HTTPException):
    def __init__(self, detail: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundError(ApiError):
    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)


class ForbiddenError(ApiError):
    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_403_FORBIDDEN)


class ServerError(ApiError):
    def __init__(self, detail: str = 'Error en el servidor'):
        super().__init__(detail=detail, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def success_response(data: Any = None, message: str = 'OK') -> dict:
    response = {'success': True, 'message': message}
    if data is not None:
        response['data'] = data
    return response


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'success': False, 'error': message})


def validate_required(data: dict, required: Iterable[str]) -> bool:
    for field in required:
        value = data.get(field)
        if value is None:
            return False
        if isinstance(value, str) and not value.strip():
            return False
    return True


def sanitize(value: str | None) -> str | None:
    """Trim user text. Markup is escaped when it is rendered, not when stored."""
    if value is None:
        return None
    return value.strip()


def isoformat(value: date | datetime | str | None) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d %H:%M:%S')
    return value.isoformat()


def optional_float(value: Any) -> float | None:
    return float(value) if value else None

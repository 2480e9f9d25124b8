from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWTError
from sqlalchemy import select

from backend.auth import jwt_handler
from backend.database import Database, get_db
from backend.models.user import Role, User

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Database = Depends(get_db),
) -> dict:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Token requerido")

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Token inválido") from exc

    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Token inválido")

    user = db.fetch_one(
        select(
            User.id,
            User.full_name,
            User.email,
            User.is_active,
            Role.id.label("role_id"),
            Role.name.label("role_name"),
        )
        .join(Role, User.role_id == Role.id)
        .where(User.email == email)
    )
    if user is None or not user["is_active"]:
        raise HTTPException(status_code=401, detail="Usuario no encontrado")
    return user

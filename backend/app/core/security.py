from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import AuthenticationRequired
from app.core.policy import ensure_can_author_quizzes
from app.db.session import get_db
from app.models.user import User
from app.services.credentials import UserRepository


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    if not token:
        token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise AuthenticationRequired()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=str(settings.jwt_issuer),
        )
        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationRequired("invalid token")
    except JWTError as e:
        raise AuthenticationRequired("invalid token") from e

    try:
        user_id = int(str(user_id))
    except ValueError as e:
        raise AuthenticationRequired("invalid token") from e

    user = UserRepository(db).get_by_id(user_id)
    if user is None:
        raise AuthenticationRequired("invalid token")

    request.state.user_id = str(user.id)
    return user


def require_teacher(user: User = Depends(get_current_user)) -> User:
    ensure_can_author_quizzes(user)
    return user

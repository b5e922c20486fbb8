import uuid
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from jose import jwt
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.security import get_current_user
from app.core.security_audit_log import audit_log
from app.db.session import get_db
from app.models.user import User, UserRole
from app.services.credentials import UserRepository

router = APIRouter(prefix="/auth", tags=["auth"])


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None


class MeResponse(BaseModel):
    id: int
    username: str
    role: str
    display_name: str


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=200)
    display_name: str | None = None
    password: str


def _create_access_token(*, user_id: int, role: str) -> str:
    now = datetime.utcnow()
    expire = now + timedelta(minutes=settings.jwt_access_token_minutes)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": expire,
        "iss": str(settings.jwt_issuer),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _expires_in() -> int | None:
    try:
        return int(settings.jwt_access_token_minutes) * 60
    except (TypeError, ValueError):
        return None


def _issue_session(response: Response, user: User) -> TokenResponse:
    token = _create_access_token(user_id=user.id, role=user.role.value)
    expires_in = _expires_in()
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=expires_in,
        httponly=True,
        samesite="lax",
        secure=(settings.app_env or "").strip().lower() in {"prod", "production"},
    )
    return TokenResponse(access_token=token, expires_in=expires_in)


@router.post("/register", response_model=TokenResponse)
def register(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_register", limit=10, window_seconds=60),
):
    if not settings.allow_public_register:
        raise HTTPException(status_code=403, detail="registration disabled")

    if not payload.password or len(payload.password) < int(settings.password_min_length or 0):
        raise HTTPException(status_code=400, detail="password too short")

    users = UserRepository(db)
    if users.get_by_username(payload.username) is not None:
        audit_log(db=db, request=request, event_type="auth_register_failed", meta={"reason": "user_exists", "username": payload.username})
        db.commit()
        raise HTTPException(status_code=409, detail="user already exists")

    # Self-service accounts are always students; teachers are provisioned.
    try:
        user = users.create(
            username=payload.username,
            password=payload.password,
            role=UserRole.student,
            display_name=(payload.display_name or "").strip(),
        )
        audit_log(db=db, request=request, event_type="auth_register_success", actor_user_id=user.id, target_user_id=user.id)
        db.commit()
    except IntegrityError:
        # A concurrent registration took the username after the lookup above.
        db.rollback()
        raise HTTPException(status_code=409, detail="user already exists")
    db.refresh(user)

    return _issue_session(response, user)


@router.post("/token", response_model=TokenResponse)
def token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_token", limit=20, window_seconds=60),
):
    user = UserRepository(db).authenticate(form_data.username, form_data.password)
    if user is None:
        audit_log(db=db, request=request, event_type="auth_login_failed", meta={"username": form_data.username})
        db.commit()
        raise HTTPException(status_code=401, detail="invalid credentials")

    audit_log(
        db=db,
        request=request,
        event_type="auth_login_success",
        actor_user_id=user.id,
        target_user_id=user.id,
        meta={"user_agent": str(request.headers.get("user-agent") or "").strip()},
    )
    db.commit()

    return _issue_session(response, user)


@router.post("/logout")
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    # Tokens are stateless; logging out drops the cookie the browser holds.
    audit_log(db=db, request=request, event_type="auth_logout", meta=None)
    db.commit()
    response.delete_cookie(key=settings.auth_cookie_name)
    return {"ok": True}


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return {
        "id": user.id,
        "username": user.username,
        "role": user.role.value,
        "display_name": user.display_name,
    }

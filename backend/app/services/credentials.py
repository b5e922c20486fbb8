from __future__ import annotations

import logging

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.user import User, UserRole

log = logging.getLogger(__name__)

# scrypt is memory-hard; passlib encodes params, salt and digest into one "$"-delimited string.
pwd_context = CryptContext(
    schemes=["scrypt"],
    deprecated="auto",
    scrypt__default_rounds=int(settings.password_scrypt_rounds),
)

_SALT_DELIMITER = "$"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    stored = str(password_hash or "")
    if _SALT_DELIMITER not in stored:
        log.error("stored password hash is not in the expected format (missing salt)")
        return False

    try:
        return bool(pwd_context.verify(password, stored))
    except (ValueError, TypeError):
        log.error("stored password hash could not be parsed")
        return False


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_by_username(self, username: str) -> User | None:
        return self.db.scalar(select(User).where(User.username == username))

    def create(self, *, username: str, password: str, role: UserRole, display_name: str = "") -> User:
        user = User(
            username=username,
            role=role,
            display_name=display_name or username,
            password_hash=hash_password(password),
        )
        self.db.add(user)
        self.db.flush()
        return user

    def authenticate(self, username: str, password: str) -> User | None:
        user = self.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

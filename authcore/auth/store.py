"""
AuthCore - Credential Store

SQLModel-backed user lookups for the session lifecycle. Emails are
stored lower-cased, so lookups are case-insensitive.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from authcore.auth.models import User, UserRole, utcnow
from authcore.domain.exceptions import UserAlreadyExists


def _parse_user_id(user_id) -> Optional[UUID]:
    if isinstance(user_id, UUID):
        return user_id
    try:
        return UUID(str(user_id))
    except ValueError:
        return None


class SQLCredentialStore:
    """
    Credential store over the `users` table.

    Args:
        session_factory: Callable returning a new sqlmodel Session
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def find_by_email(self, email: str) -> Optional[User]:
        normalized = email.strip().lower()
        with self._session_factory() as db:
            return db.exec(select(User).where(User.email == normalized)).first()

    def find_by_id(self, user_id: str) -> Optional[User]:
        uid = _parse_user_id(user_id)
        if uid is None:
            return None
        with self._session_factory() as db:
            return db.get(User, uid)

    def create_user(
        self,
        email: str,
        name: str,
        password_hash: str,
        role: UserRole = UserRole.USER,
        is_active: bool = True,
    ) -> User:
        """
        Insert a user.

        Raises:
            UserAlreadyExists: Email is taken (enforced by the unique index)
        """
        now = utcnow()
        user = User(
            email=email.strip().lower(),
            name=name,
            password_hash=password_hash,
            role=role,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        with self._session_factory() as db:
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise UserAlreadyExists(user.email)
            db.refresh(user)
            return user

    def update_password_hash(self, user_id: str, password_hash: str) -> bool:
        uid = _parse_user_id(user_id)
        if uid is None:
            return False
        with self._session_factory() as db:
            user = db.get(User, uid)
            if user is None:
                return False
            user.password_hash = password_hash
            user.updated_at = utcnow()
            db.add(user)
            db.commit()
            return True

    def set_active(self, user_id: str, is_active: bool) -> bool:
        uid = _parse_user_id(user_id)
        if uid is None:
            return False
        with self._session_factory() as db:
            user = db.get(User, uid)
            if user is None:
                return False
            user.is_active = is_active
            user.updated_at = utcnow()
            db.add(user)
            db.commit()
            return True

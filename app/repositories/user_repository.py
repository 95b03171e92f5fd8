"""User record store: every query filters out soft-deleted rows unless stated otherwise."""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from app.core.exceptions import EmailTakenError
from app.models import Role, User


class UserRepository:
    """SQLAlchemy-backed store for User rows."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _active(self) -> Query:
        return self.db.query(User).filter(User.deleted_at.is_(None))

    def _update(self, *criteria, **values) -> int:
        """Run a single UPDATE ... WHERE criteria, commit, and return the matched row count."""
        stmt = (
            update(User)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount or 0

    def get_active_by_id(self, user_id: int) -> User | None:
        return self._active().filter(User.id == user_id).first()

    def get_active_by_uid(self, uid: str) -> User | None:
        return self._active().filter(User.uid == uid).first()

    def get_active_by_email(self, email: str) -> User | None:
        return self._active().filter(User.email == email).first()

    def list_active(self, offset: int = 0, limit: int = 10) -> list[User]:
        return (
            self._active()
            .order_by(User.created_at.desc(), User.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_active(self) -> int:
        return self._active().count()

    def create(
        self,
        email: str,
        password_hash: str,
        full_name: str,
        role: Role = Role.REGULAR,
        email_verified: bool = False,
    ) -> User:
        """
        Insert a user. Raises EmailTakenError when an active user already owns the
        email (the partial unique index catches concurrent signups).
        """
        user = User(
            email=email,
            password_hash=password_hash,
            full_name=full_name,
            role=role,
            email_verified=email_verified,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise EmailTakenError() from e
        self.db.refresh(user)
        return user

    def update_fields(self, user: User, **fields: object) -> User:
        for name, value in fields.items():
            setattr(user, name, value)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def set_refresh_token_hash(self, user_id: int, token_hash: str | None) -> None:
        """Store (or clear with None) the hash of the user's current refresh token."""
        self._update(User.id == user_id, refresh_token_hash=token_hash)

    def rotate_refresh_token_hash(self, user_id: int, expected_hash: str, new_hash: str) -> bool:
        """Replace the stored hash only if it is still expected_hash. False if another rotation won."""
        matched = self._update(
            User.id == user_id,
            User.deleted_at.is_(None),
            User.refresh_token_hash == expected_hash,
            refresh_token_hash=new_hash,
        )
        return matched == 1

    def set_verification_token(self, user_id: int, token: str, expires_at: datetime) -> None:
        self._update(
            User.id == user_id,
            email_verification_token=token,
            email_verification_expires_at=expires_at,
        )

    def find_by_verification_token(self, token: str, now: datetime) -> User | None:
        return (
            self._active()
            .filter(
                User.email_verification_token == token,
                User.email_verification_expires_at > now,
            )
            .first()
        )

    def consume_verification_token(self, user_id: int, token: str, now: datetime) -> bool:
        """Mark the email verified and clear the token, only if the token is still valid."""
        matched = self._update(
            User.id == user_id,
            User.deleted_at.is_(None),
            User.email_verification_token == token,
            User.email_verification_expires_at > now,
            email_verified=True,
            email_verification_token=None,
            email_verification_expires_at=None,
        )
        return matched == 1

    def set_password_reset_token(self, user_id: int, token: str, expires_at: datetime) -> None:
        self._update(
            User.id == user_id,
            password_reset_token=token,
            password_reset_expires_at=expires_at,
        )

    def find_by_password_reset_token(self, token: str, now: datetime) -> User | None:
        return (
            self._active()
            .filter(
                User.password_reset_token == token,
                User.password_reset_expires_at > now,
            )
            .first()
        )

    def consume_password_reset_token(
        self,
        user_id: int,
        token: str,
        now: datetime,
        new_password_hash: str,
    ) -> bool:
        """Set the new password, clear the token and end every session, only if the token is still valid."""
        matched = self._update(
            User.id == user_id,
            User.deleted_at.is_(None),
            User.password_reset_token == token,
            User.password_reset_expires_at > now,
            password_hash=new_password_hash,
            password_reset_token=None,
            password_reset_expires_at=None,
            refresh_token_hash=None,
        )
        return matched == 1

    def soft_delete(self, user_id: int, now: datetime) -> bool:
        matched = self._update(
            User.id == user_id,
            User.deleted_at.is_(None),
            deleted_at=now,
            refresh_token_hash=None,
        )
        return matched == 1

"""ORM model for application users (auth, profile and RBAC)."""

import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    func,
    text,
)

from app.models.base import Base


class Role(str, enum.Enum):
    """User roles, ordered by privilege: superadmin > admin > regular."""

    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    REGULAR = "regular"


def _new_uid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User account.

    uid is the public identifier exposed by the API; id never leaves the server
    except inside token claims. Rows are soft-deleted via deleted_at, and email
    is unique only among rows that are not deleted.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(36), nullable=False, unique=True, index=True, default=_new_uid)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(
        Enum(Role, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Role.REGULAR,
        server_default=Role.REGULAR.value,
    )
    email_verified = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    # bcrypt hash of the current refresh token; NULL means no active session
    refresh_token_hash = Column(String(255), nullable=True)
    email_verification_token = Column(String(64), nullable=True, index=True)
    email_verification_expires_at = Column(DateTime(timezone=True), nullable=True)
    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    __table_args__ = (
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} uid={self.uid} role={self.role}>"

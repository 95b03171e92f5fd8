"""User profile management and privileged account administration."""

import logging

from app.core.clock import Clock, utc_now
from app.core.exceptions import ForbiddenError, IncorrectPasswordError, NotFoundError
from app.core.security import BCRYPT_ROUNDS, hash_password, verify_password
from app.models import Role, User
from app.repositories import UserRepository
from app.schemas.auth import CurrentUser
from app.services.user_cache import UserCache

logger = logging.getLogger(__name__)


def ensure_can_modify(target: User, actor: CurrentUser, new_role: Role | None = None) -> None:
    """
    Enforce the role rules for changing another account:
    nobody changes their own role, and only a superadmin may touch a
    superadmin account or hand out the superadmin role.
    """
    if new_role is not None and target.uid == actor.uid:
        raise ForbiddenError("Cannot modify your own role")
    if Role(target.role) == Role.SUPERADMIN and actor.role != Role.SUPERADMIN:
        raise ForbiddenError("Cannot modify superadmin users")
    if new_role == Role.SUPERADMIN and actor.role != Role.SUPERADMIN:
        raise ForbiddenError("Only superadmin can assign superadmin role")


class UsersService:
    def __init__(
        self,
        users: UserRepository,
        cache: UserCache,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
        now: Clock = utc_now,
    ) -> None:
        self.users = users
        self.cache = cache
        self.bcrypt_rounds = bcrypt_rounds
        self.now = now

    def list_users(self, offset: int, limit: int) -> tuple[list[User], int]:
        """Return one page of active users (newest first) and the total count."""
        return self.users.list_active(offset=offset, limit=limit), self.users.count_active()

    def get_by_uid(self, uid: str) -> User:
        user = self.users.get_active_by_uid(uid)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, uid: str, full_name: str | None) -> User:
        user = self.get_by_uid(uid)
        if full_name is None:
            return user
        user_id = user.id
        user = self.users.update_fields(user, full_name=full_name)
        self.cache.invalidate(user_id)
        return user

    def admin_update(
        self,
        uid: str,
        actor: CurrentUser,
        full_name: str | None = None,
        role: Role | None = None,
    ) -> User:
        user = self.get_by_uid(uid)
        ensure_can_modify(user, actor, new_role=role)

        changes: dict[str, object] = {}
        if full_name is not None:
            changes["full_name"] = full_name
        if role is not None:
            changes["role"] = role
        if not changes:
            return user

        user_id = user.id
        user = self.users.update_fields(user, **changes)
        self.cache.invalidate(user_id)
        if role is not None:
            logger.info(
                "User role changed",
                extra={"user_uid": uid, "new_role": role.value, "actor_uid": actor.uid},
            )
        return user

    def change_password(self, uid: str, current_password: str, new_password: str) -> None:
        user = self.get_by_uid(uid)
        if not verify_password(current_password, user.password_hash):
            raise IncorrectPasswordError()
        user_id = user.id
        self.users.update_fields(
            user, password_hash=hash_password(new_password, rounds=self.bcrypt_rounds)
        )
        self.cache.invalidate(user_id)

    def delete(self, uid: str, actor: CurrentUser) -> None:
        """Soft-delete an account; its email becomes available for a new signup."""
        user = self.get_by_uid(uid)
        ensure_can_modify(user, actor)
        user_id = user.id
        if not self.users.soft_delete(user_id, self.now()):
            raise NotFoundError("User not found")
        self.cache.invalidate(user_id)
        logger.info("User deleted", extra={"user_uid": uid, "actor_uid": actor.uid})

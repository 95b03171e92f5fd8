"""Read-through cache of the user projection consulted when resolving access tokens."""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime

import redis

from app.models import Role, User

logger = logging.getLogger(__name__)

USER_CACHE_PREFIX = "user"
USER_CACHE_TTL_SECONDS = 300


@dataclass
class CachedUser:
    """
    Denormalized copy of the fields identity resolution needs.

    Not authoritative: the row in the database always wins, and every mutation
    of a user deletes its entry.
    """

    id: int
    uid: str
    email: str
    full_name: str
    role: Role
    refresh_token_hash: str | None
    deleted_at: datetime | None

    @classmethod
    def from_user(cls, user: User) -> "CachedUser":
        return cls(
            id=user.id,
            uid=user.uid,
            email=user.email,
            full_name=user.full_name,
            role=Role(user.role),
            refresh_token_hash=user.refresh_token_hash,
            deleted_at=user.deleted_at,
        )

    def to_json(self) -> str:
        data = asdict(self)
        data["role"] = self.role.value
        data["deleted_at"] = self.deleted_at.isoformat() if self.deleted_at else None
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "CachedUser":
        data = json.loads(raw)
        deleted_at = data.get("deleted_at")
        return cls(
            id=int(data["id"]),
            uid=data["uid"],
            email=data["email"],
            full_name=data["full_name"],
            role=Role(data["role"]),
            refresh_token_hash=data.get("refresh_token_hash"),
            deleted_at=datetime.fromisoformat(deleted_at) if deleted_at else None,
        )


class UserCache:
    """Stores CachedUser entries under user:{id} with a fixed TTL."""

    def __init__(self, client: redis.Redis, ttl_seconds: int = USER_CACHE_TTL_SECONDS) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key(user_id: int) -> str:
        return f"{USER_CACHE_PREFIX}:{user_id}"

    def get(self, user_id: int) -> CachedUser | None:
        """Return the cached projection, or None on miss, corrupt entry or redis failure."""
        try:
            raw = self.client.get(self.key(user_id))
        except redis.RedisError as e:
            logger.warning("User cache read failed for id=%s: %s", user_id, e)
            return None
        if not raw:
            return None
        try:
            return CachedUser.from_json(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding malformed user cache entry for id=%s", user_id)
            return None

    def set(self, user: User) -> None:
        try:
            self.client.set(self.key(user.id), CachedUser.from_user(user).to_json(), ex=self.ttl_seconds)
        except redis.RedisError as e:
            logger.warning("User cache write failed for id=%s: %s", user.id, e)

    def invalidate(self, user_id: int) -> None:
        """Delete the entry. Errors propagate: a stale entry could grant revoked access."""
        self.client.delete(self.key(user_id))

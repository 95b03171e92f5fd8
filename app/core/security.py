"""Credential hashing and JWT issuance/verification for authentication."""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import bcrypt
import jwt

from app.core.config import Settings

# Bcrypt cost (rounds) used when no explicit value is configured.
BCRYPT_ROUNDS = 10

# Min/max lengths for password validation.
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# Single-use flow tokens: 32 random bytes, hex encoded (64 characters).
FLOW_TOKEN_BYTES = 32

TokenType = Literal["access", "refresh"]


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash. False for a malformed hash."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _token_digest(token: str) -> str:
    # JWTs for one user share far more than 72 bytes of prefix; bcrypt would ignore the rest.
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hash_token(token: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a refresh token for storage, exactly like a password."""
    return hash_password(_token_digest(token), rounds=rounds)


def verify_token_hash(token: str, hashed: str | None) -> bool:
    """Compare a presented refresh token with its stored hash."""
    return verify_password(_token_digest(token), hashed)


def generate_flow_token() -> str:
    """Random single-use token for email verification and password reset links."""
    return secrets.token_hex(FLOW_TOKEN_BYTES)


class InvalidTokenError(Exception):
    """Raised when a JWT is forged, expired, malformed or of the wrong type."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by access and refresh tokens."""

    subject_id: int
    uid: str
    email: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    """
    Signs and verifies access and refresh tokens with a shared secret.

    Both token types carry sub (numeric user id as a string), uid and email;
    a type claim keeps a refresh token from being accepted as an access token
    and vice versa. Verification never tells the caller why a token failed.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES),
            refresh_ttl=timedelta(minutes=settings.JWT_REFRESH_EXPIRE_MINUTES),
        )

    def issue(self, claims: TokenClaims, ttl: timedelta, token_type: TokenType) -> str:
        """Create a signed JWT for claims that expires after ttl."""
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(claims.subject_id),
            "uid": claims.uid,
            "email": claims.email,
            "type": token_type,
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def issue_pair(self, claims: TokenClaims) -> TokenPair:
        return TokenPair(
            access_token=self.issue(claims, self.access_ttl, "access"),
            refresh_token=self.issue(claims, self.refresh_ttl, "refresh"),
        )

    def verify(self, token: str, token_type: TokenType) -> TokenClaims:
        """
        Decode and validate a JWT of the given type.
        Raises InvalidTokenError on bad signature, expiry, wrong type or bad payload.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError() from e
        if payload.get("type") != token_type:
            raise InvalidTokenError()
        try:
            subject_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError() from e
        uid = payload.get("uid")
        email = payload.get("email")
        if not isinstance(uid, str) or not isinstance(email, str):
            raise InvalidTokenError()
        return TokenClaims(subject_id=subject_id, uid=uid, email=email)

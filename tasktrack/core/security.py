"""Password hashing and JWT issuance/verification for access and refresh tokens."""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

if TYPE_CHECKING:
    from tasktrack.core.config import Settings
    from tasktrack.models.user import User

logger = logging.getLogger(__name__)

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=8)
def _dummy_hash(rounds: int) -> str:
    return hash_password("dummy-password-for-timing", rounds)


def burn_password_check(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> None:
    """Run a hash comparison that always fails, so unknown accounts cost the same as wrong passwords."""
    verify_password(plain_password, _dummy_hash(rounds))


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenFailure(str, Enum):
    INVALID = "invalid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of TokenService.verify: exactly one of claims or failure is set."""

    claims: TokenClaims | None = None
    failure: TokenFailure | None = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


@dataclass(frozen=True)
class TokenPair:
    token: str
    refresh_token: str


class TokenService:
    """Signs and verifies session tokens. Access and refresh tokens use separate secrets."""

    def __init__(self, settings: "Settings") -> None:
        self._algorithm = settings.JWT_ALGORITHM
        self._issuer = settings.JWT_ISSUER
        self._audience = settings.JWT_AUDIENCE
        self._secrets = {
            TokenKind.ACCESS: settings.JWT_SECRET.get_secret_value(),
            TokenKind.REFRESH: settings.JWT_REFRESH_SECRET.get_secret_value(),
        }
        self._lifetimes = {
            TokenKind.ACCESS: timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES),
            TokenKind.REFRESH: timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
        }

    def issue_access_token(self, user: "User") -> str:
        return self._issue(user, TokenKind.ACCESS)

    def issue_refresh_token(self, user: "User") -> str:
        return self._issue(user, TokenKind.REFRESH)

    def issue_pair(self, user: "User") -> TokenPair:
        return TokenPair(
            token=self.issue_access_token(user),
            refresh_token=self.issue_refresh_token(user),
        )

    def _issue(self, user: "User", kind: TokenKind) -> str:
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "userId": str(user.id),
            "email": user.email,
            "type": kind.value,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": now,
            "exp": now + self._lifetimes[kind],
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self._algorithm)

    def verify(self, token: str, kind: TokenKind) -> TokenVerification:
        """
        Verify signature, issuer, audience, expiry and token type for the given kind.

        Never raises for a bad token; callers get EXPIRED or INVALID and should not
        reveal which to clients.
        """
        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self._algorithm],
                issuer=self._issuer,
                audience=self._audience,
                options={"require": ["exp", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError:
            return TokenVerification(failure=TokenFailure.EXPIRED)
        except jwt.PyJWTError as e:
            logger.debug("Rejected %s token: %s", kind.value, e)
            return TokenVerification(failure=TokenFailure.INVALID)

        user_id = payload.get("userId")
        email = payload.get("email")
        if payload.get("type") != kind.value or not user_id or not isinstance(email, str):
            return TokenVerification(failure=TokenFailure.INVALID)
        return TokenVerification(claims=TokenClaims(user_id=str(user_id), email=email))

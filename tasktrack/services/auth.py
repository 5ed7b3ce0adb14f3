"""Signup, login, token refresh and profile management."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tasktrack.core.errors import (
    AuthenticationError,
    DuplicateResourceError,
    NotFoundError,
    error_from_integrity,
)
from tasktrack.core.security import (
    BCRYPT_ROUNDS,
    TokenKind,
    TokenPair,
    TokenService,
    burn_password_check,
    hash_password,
    verify_password,
)
from tasktrack.models.user import User
from tasktrack.repositories.users import UserRepository
from tasktrack.schemas.auth import ProfileUpdateRequest, SignupRequest, UserRole

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid refresh token"


@dataclass(frozen=True)
class AuthResult:
    user: User
    tokens: TokenPair


class AuthService:
    """Account operations over one request's Session."""

    def __init__(
        self,
        db: Session,
        tokens: TokenService,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ) -> None:
        self.db = db
        self.users = UserRepository(db)
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    def signup(self, data: SignupRequest) -> AuthResult:
        """
        Create an active 'user' account and sign it in.

        Raises DuplicateResourceError when the (lowercased) email is taken, including
        when a concurrent signup wins the race to the unique index.
        """
        email = data.email.lower()
        if self.users.get_by_email(email) is not None:
            raise DuplicateResourceError.for_resource("User with this email")

        try:
            user = self.users.add(
                email=email,
                password_hash=hash_password(data.password, self.bcrypt_rounds),
                first_name=data.first_name,
                last_name=data.last_name,
                role=UserRole.USER.value,
            )
            tokens = self.tokens.issue_pair(user)
            user.last_login_at = datetime.now(UTC)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            error = error_from_integrity(e)
            if isinstance(error, DuplicateResourceError):
                raise DuplicateResourceError.for_resource("User with this email") from e
            raise error from e

        self.db.refresh(user)
        logger.info("User signed up: user_id=%s", user.id)
        return AuthResult(user=user, tokens=tokens)

    def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate by email and password.

        Unknown email, inactive account and wrong password all raise the same
        AuthenticationError; unknown emails still pay for one bcrypt check.
        """
        user = self.users.get_by_email(email)
        if user is None:
            burn_password_check(password, self.bcrypt_rounds)
            logger.debug("Login rejected: unknown email")
            raise AuthenticationError(INVALID_CREDENTIALS)

        password_ok = verify_password(password, user.password_hash)
        if not password_ok or not user.is_active:
            logger.debug(
                "Login rejected: user_id=%s password_ok=%s active=%s",
                user.id,
                password_ok,
                user.is_active,
            )
            raise AuthenticationError(INVALID_CREDENTIALS)

        tokens = self.tokens.issue_pair(user)
        user.last_login_at = datetime.now(UTC)
        self.db.commit()
        self.db.refresh(user)
        logger.info("User logged in: user_id=%s", user.id)
        return AuthResult(user=user, tokens=tokens)

    def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a valid refresh token of an active user for a brand-new token pair."""
        result = self.tokens.verify(refresh_token, TokenKind.REFRESH)
        if not result.ok:
            logger.debug("Refresh rejected: %s", result.failure.value)
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        user = self.users.get(result.claims.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError(INVALID_REFRESH_TOKEN)
        return self.tokens.issue_pair(user)

    def get_profile(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError.for_resource("User")
        return user

    def update_profile(self, user_id: str, data: ProfileUpdateRequest) -> User:
        user = self.get_profile(user_id)
        if data.first_name is not None:
            user.first_name = data.first_name
        if data.last_name is not None:
            user.last_name = data.last_name
        self.db.commit()
        self.db.refresh(user)
        return user

    def deactivate(self, user_id: str) -> None:
        """Soft-disable the account; its tokens stop passing the auth gate immediately."""
        user = self.get_profile(user_id)
        user.is_active = False
        self.db.commit()
        logger.info("User deactivated: user_id=%s", user_id)

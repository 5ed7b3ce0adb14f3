"""Signup, login, token refresh and logout endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from tasktrack.api.deps import get_auth_service
from tasktrack.schemas.auth import (
    AuthOut,
    LoginRequest,
    RefreshRequest,
    SignupRequest,
    TokenPairOut,
    UserOut,
)
from tasktrack.schemas.common import ApiResponse
from tasktrack.services.auth import AuthResult, AuthService

router = APIRouter()


def _auth_out(result: AuthResult) -> AuthOut:
    return AuthOut(
        user=UserOut.model_validate(result.user),
        token=result.tokens.token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post(
    "/signup",
    response_model=ApiResponse[AuthOut],
    status_code=status.HTTP_201_CREATED,
)
def signup(
    body: SignupRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[AuthOut]:
    """Register a new user and return it with an access/refresh token pair."""
    result = auth.signup(body)
    return ApiResponse[AuthOut](message="User registered successfully", data=_auth_out(result))


@router.post("/login", response_model=ApiResponse[AuthOut])
def login(
    body: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[AuthOut]:
    """
    Authenticate with email and password; returns the user and a fresh token pair.
    Include the token in the Authorization header as: Bearer <token>
    """
    result = auth.login(body.email, body.password)
    return ApiResponse[AuthOut](message="Login successful", data=_auth_out(result))


@router.post("/refresh", response_model=ApiResponse[TokenPairOut])
def refresh(
    body: RefreshRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[TokenPairOut]:
    """Exchange a refresh token for a new access and refresh token."""
    pair = auth.refresh(body.refresh_token)
    return ApiResponse[TokenPairOut](
        message="Token refreshed successfully",
        data=TokenPairOut(token=pair.token, refresh_token=pair.refresh_token),
    )


@router.post("/logout", response_model=ApiResponse[None])
def logout() -> ApiResponse[None]:
    """Stateless: tokens are not revoked server-side; clients discard them."""
    return ApiResponse[None](message="Logout successful. Please remove the token from client storage.")

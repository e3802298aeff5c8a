"""
Authentication router for registration, login, token refresh and logout.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, status

from studyws.dependencies.auth import CurrentUser
from studyws.dependencies.rate_limit import RateLimitedRoute
from studyws.dependencies.services import get_auth_service, get_client_info
from studyws.schemas.auth import (
    AuthResponse,
    ClientInfo,
    CurrentUserData,
    CurrentUserResponse,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    SessionListData,
    SessionListResponse,
    TokenRefreshResponse,
)
from studyws.services.auth_service import AuthService

# Rate limiting runs first for every route here; unconfigured paths pass.
router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    route_class=RateLimitedRoute,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
ClientInfoDep = Annotated[ClientInfo, Depends(get_client_info)]


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"model": ErrorResponse}},
    summary="Register a new user",
)
async def register(
    body: RegisterRequest,
    auth_service: AuthServiceDep,
    client: ClientInfoDep,
):
    """
    Register a new user account and open a session.

    - **email**: Valid email address (must be unique)
    - **password**: Password (minimum 8 characters)
    - **first_name** / **last_name**: Non-empty

    **Rate limited**: 3 attempts per minute per IP by default.
    """
    return AuthResponse(data=await auth_service.register(body, client))


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
    summary="Login and get tokens",
)
async def login(
    body: LoginRequest,
    auth_service: AuthServiceDep,
    client: ClientInfoDep,
):
    """
    Authenticate with email and password to receive an access/refresh pair.

    Send the access token as `Authorization: Bearer <token>` on protected
    endpoints.

    **Rate limited**: 5 attempts per minute per IP by default.
    """
    return AuthResponse(data=await auth_service.login(body, client))


@router.post(
    "/refresh",
    response_model=TokenRefreshResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
    summary="Rotate refresh token",
)
async def refresh_token(
    body: RefreshRequest,
    auth_service: AuthServiceDep,
    client: ClientInfoDep,
):
    """
    Exchange a refresh token for a new access/refresh pair.

    The presented refresh token is consumed: replaying it afterwards fails
    with 401.

    **Rate limited**: 10 attempts per minute per IP by default.
    """
    return TokenRefreshResponse(data=await auth_service.refresh(body, client))


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
    summary="Logout from every device",
)
async def logout(
    current_user: CurrentUser,
    auth_service: AuthServiceDep,
):
    """
    Revoke all refresh sessions of the authenticated user.

    Access tokens already issued stay valid until they expire.
    """
    await auth_service.logout(current_user)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
    summary="Get current user info",
)
async def get_current_user_info(current_user: CurrentUser):
    """Profile of the authenticated user."""
    return CurrentUserResponse(data=CurrentUserData(user=current_user))


@router.get(
    "/sessions",
    response_model=SessionListResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
    summary="List active sessions",
)
async def list_sessions(
    current_user: CurrentUser,
    auth_service: AuthServiceDep,
):
    """Active refresh sessions of the authenticated user, newest first."""
    sessions = await auth_service.list_sessions(current_user)
    return SessionListResponse(data=SessionListData(sessions=sessions))

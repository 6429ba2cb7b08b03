"""
Account endpoints: login, registration, logout, profile edits and password resets.
"""

from fastapi import APIRouter, Depends, Request, status

from storefront.config import settings
from storefront.models.user import User
from storefront.services.auth import AuthService
from storefront.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    FormResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    RefreshTokenRequest,
    AccessTokenResponse
)
from storefront.schemas.user import UserRegister, AccountUpdate, UserResponse, AccountResponse
from storefront.utils.dependencies import get_auth_service, get_current_user


router = APIRouter(tags=["Accounts"])


def _login_response(user: User, access_token: str, refresh_token: str, message: str) -> LoginResponse:
    return LoginResponse(
        user=UserResponse.model_validate(user.to_dict()),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
        message=message
    )


@router.get("/login", response_model=FormResponse, summary="Login form")
async def login_form() -> FormResponse:
    return FormResponse(title="Login")


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate with email and password, returns JWT tokens"
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Raises:
        InvalidCredentialsError: If credentials are invalid
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )
    return _login_response(user, access_token, refresh_token, "You are now logged in!")


@router.get("/register", response_model=FormResponse, summary="Registration form")
async def register_form() -> FormResponse:
    return FormResponse(title="Register")


@router.post(
    "/register",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and log in"
)
async def register(
    user_data: UserRegister,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Raises:
        DuplicateResourceError: If the email is already registered
    """
    user = await auth_service.register(user_data)
    access_token, refresh_token = auth_service.create_tokens(user)
    return _login_response(user, access_token, refresh_token, "You are now logged in!")


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token"
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    """
    Raises:
        InvalidTokenError: If refresh token is invalid
        TokenExpiredError: If refresh token is expired
    """
    access_token = await auth_service.refresh_access_token(refresh_data.refresh_token)
    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.get("/logout",response_model=MessageResponse, summary="Logout")
async def logout() -> MessageResponse:
    """Tokens are stateless; the client discards them."""
    return MessageResponse(message="You are now logged out!")


@router.get("/account", response_model=AccountResponse, summary="View account")
async def account(current_user: User = Depends(get_current_user)) -> AccountResponse:
    return AccountResponse(
        title="Edit Your Account",
        user=UserResponse.model_validate(current_user.to_dict())
    )


@router.post("/account", response_model=AccountResponse, summary="Update account")
async def update_account(
    account_data: AccountUpdate,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> AccountResponse:
    """Only name and email can be changed here."""
    user = await auth_service.update_account(current_user, account_data)
    return AccountResponse(
        title="Edit Your Account",
        user=UserResponse.model_validate(user.to_dict()),
        message="Updated the profile!"
    )


@router.post("/account/forgot", response_model=MessageResponse, summary="Request a password reset")
async def forgot_password(
    forgot_data: ForgotPasswordRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    """The answer is the same whether or not the email has an account."""
    await auth_service.forgot_password(forgot_data.email, str(request.base_url))
    return MessageResponse(message="You have been emailed a password reset link.")


@router.get("/account/reset/{token}", response_model=FormResponse, summary="Password reset form")
async def reset_form(
    token: str,
    auth_service: AuthService = Depends(get_auth_service)
) -> FormResponse:
    """
    Raises:
        InvalidResetTokenError: Unknown or expired token
    """
    await auth_service.get_reset_user(token)
    return FormResponse(title="Reset your Password")


@router.post("/account/reset/{token}", response_model=LoginResponse, summary="Reset password")
async def reset_password(
    token: str,
    reset_data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Raises:
        PasswordMismatchError: Passwords differ
        InvalidResetTokenError: Unknown, used or expired token
    """
    user, access_token, refresh_token = await auth_service.reset_password(
        token,
        reset_data.password,
        reset_data.password_confirm
    )
    return _login_response(
        user,
        access_token,
        refresh_token,
        "Nice! Your password has been reset! You are now logged in!"
    )

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from api.core.rate_limiter import rate_limit_ip
from api.core.responses import success_response
from api.db.models import User
from api.dependencies import auth_service, user_service
from api.schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from api.services.auth_service import AuthService
from api.services.serializers import profile_to_dict, user_to_dict
from api.services.session_service import current_user
from api.services.user_service import UserService

router = APIRouter(prefix="/api/auth", tags=["auth"])

LOGIN_LIMIT = 10
LOGIN_WINDOW = 60
FORGOT_LIMIT = 5
FORGOT_WINDOW = 15 * 60
FORGOT_MESSAGE = "If an account exists for this email, a reset link has been sent"


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, service: AuthService = Depends(auth_service)):
    result = service.register(
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )
    return success_response(
        {"user": user_to_dict(result.user), "profile": {"slug": result.profile.slug}, "token": result.token},
        "Account created",
    )


@router.post("/login")
def login(payload: LoginRequest, request: Request, service: AuthService = Depends(auth_service)):
    rate_limit_ip(request, "login", limit=LOGIN_LIMIT, window_seconds=LOGIN_WINDOW)
    result = service.login(payload.email, payload.password)
    return success_response(
        {
            "user": user_to_dict(result.user),
            "profile": profile_to_dict(result.profile) if result.profile else None,
            "token": result.token,
        }
    )


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, request: Request, service: AuthService = Depends(auth_service)):
    rate_limit_ip(request, "forgot-password", limit=FORGOT_LIMIT, window_seconds=FORGOT_WINDOW)
    service.issue_password_reset(payload.email)
    return success_response(None, FORGOT_MESSAGE)


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, service: AuthService = Depends(auth_service)):
    service.reset_password(payload.token, payload.password)
    return success_response(None, "Password updated")


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(current_user),
    service: AuthService = Depends(auth_service),
):
    service.change_password(user, payload.current_password, payload.new_password)
    return success_response(None, "Password updated")


@router.get("/me")
def me(user: User = Depends(current_user), service: UserService = Depends(user_service)):
    return success_response(service.me(user))

from fastapi import APIRouter, Depends
from app.core.dependencies import get_auth_service, get_current_token, get_current_user, get_current_profile
from app.core.results import OperationResult, ok
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.modules.auth.service import AuthService
from app.modules.profiles.schemas import ProfileResponse
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=OperationResult[RegisterResponse], status_code=201)
def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new member"""
    return ok(service.register(register_data))


@router.post("/login", response_model=OperationResult[TokenResponse])
def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return ok(service.login(login_data))


@router.post("/logout", status_code=200)
def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return ok({"message": "Logged out successfully"})


@router.get("/me")
def get_me(
    current_user: Dict = Depends(get_current_user),
    profile: ProfileResponse = Depends(get_current_profile),
):
    """Current authenticated user and governance profile (for frontend UI)."""
    return ok({**current_user, "profile": profile.model_dump(), "is_admin": profile.role == "admin"})

"""
Core dependencies for route protection and role checking
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.errors import AdminRequired, AuthRequired
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.profiles.schemas import ProfileResponse
from app.modules.profiles.service import ProfileService
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise AuthRequired()
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def get_current_profile(
    user_data: dict = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service)
) -> ProfileResponse:
    """Profile of the caller, created lazily on first sign-in"""
    return profile_service.ensure_profile(user_data)


def is_admin(profile: ProfileResponse) -> bool:
    return profile.role == "admin"


def require_admin(profile: ProfileResponse = Depends(get_current_profile)) -> ProfileResponse:
    """Dependency rejecting non-admin members"""
    if not is_admin(profile):
        logger.info(f"Admin action refused for {profile.uid}")
        raise AdminRequired()
    return profile

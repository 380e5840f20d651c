from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_profile, get_profile_service, require_admin
from app.core.results import OperationResult, ok
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse, RoleUpdate
from app.modules.profiles.service import ProfileService
from app.modules.dashboard.schemas import MemberActivity
from app.modules.dashboard.service import DashboardService
from app.modules.dashboard.routes import get_dashboard_service
from typing import List

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=OperationResult[ProfileResponse])
def get_my_profile(
    profile: ProfileResponse = Depends(get_current_profile)
):
    """Get (and lazily create) the caller's profile"""
    return ok(profile)


@router.put("/me", response_model=OperationResult[ProfileResponse])
def update_my_profile(
    profile_data: ProfileUpdate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Update display name / avatar of the caller"""
    return ok(service.update_profile(profile.uid, profile_data))


@router.get("", response_model=OperationResult[List[ProfileResponse]])
def list_profiles(
    admin: ProfileResponse = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """List all member profiles (admin only)"""
    return ok(service.list_profiles())


@router.get("/{uid}", response_model=OperationResult[ProfileResponse])
def get_profile(
    uid: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Get a member profile"""
    return ok(service.get_profile(uid))


@router.put("/{uid}/role", response_model=OperationResult[ProfileResponse])
def set_profile_role(
    uid: str,
    role_data: RoleUpdate,
    admin: ProfileResponse = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """Promote or demote a member (admin only)"""
    return ok(service.set_role(uid, role_data.role))


@router.get("/{uid}/activity", response_model=OperationResult[MemberActivity])
def get_member_activity(
    uid: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Participation counters for a member"""
    return ok(service.get_member_activity(uid))

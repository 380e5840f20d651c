from fastapi import APIRouter, Depends
from app.config import settings
from app.core.dependencies import get_current_profile
from app.core.results import OperationResult, ok
from app.database.supabase_client import get_supabase
from app.modules.dashboard.schemas import CommunityMetrics, DashboardStats
from app.modules.dashboard.service import DashboardService
from app.modules.profiles.schemas import ProfileResponse
from supabase import Client

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def get_dashboard_service(supabase: Client = Depends(get_supabase)) -> DashboardService:
    return DashboardService(supabase, settings)


@router.get("/stats", response_model=OperationResult[DashboardStats])
def get_dashboard_stats(
    profile: ProfileResponse = Depends(get_current_profile),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Community, voting and application figures for the dashboard"""
    return ok(service.get_dashboard_stats())


@router.get("/metrics", response_model=OperationResult[CommunityMetrics])
def get_community_metrics(
    profile: ProfileResponse = Depends(get_current_profile),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Derived rates (engagement, participation, success, acceptance)"""
    return ok(service.get_community_metrics())

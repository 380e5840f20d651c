from fastapi import APIRouter, Depends, Path
from app.config import settings
from app.core.dependencies import get_current_profile, require_admin
from app.core.results import OperationResult, ok
from app.database.supabase_client import get_supabase
from app.modules.monthly_selections.schemas import SelectionCreate, MonthlySelectionResponse, MonthlyStats
from app.modules.monthly_selections.service import MonthlySelectionService
from app.modules.profiles.schemas import ProfileResponse
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/monthly-selections", tags=["monthly-selections"])


def get_selection_service(supabase: Client = Depends(get_supabase)) -> MonthlySelectionService:
    return MonthlySelectionService(supabase, settings)


@router.post("", response_model=OperationResult[Optional[MonthlySelectionResponse]])
def run_monthly_selection(
    selection_data: Optional[SelectionCreate] = None,
    admin: ProfileResponse = Depends(require_admin),
    service: MonthlySelectionService = Depends(get_selection_service)
):
    """Build this month's selection and open its final votes (admin or scheduler). data is null when there was nothing to select."""
    limit = selection_data.limit if selection_data else None
    return ok(service.build_selection(limit=limit))


@router.get("", response_model=OperationResult[List[MonthlySelectionResponse]])
def list_monthly_selections(
    profile: ProfileResponse = Depends(get_current_profile),
    service: MonthlySelectionService = Depends(get_selection_service)
):
    """All selections, newest first"""
    return ok(service.list_selections())


@router.get("/stats", response_model=OperationResult[MonthlyStats])
def get_monthly_stats(
    profile: ProfileResponse = Depends(get_current_profile),
    service: MonthlySelectionService = Depends(get_selection_service)
):
    """Proposal figures over the selection window"""
    return ok(service.get_monthly_stats())


@router.get("/{year}/{month}", response_model=OperationResult[Optional[MonthlySelectionResponse]])
def get_monthly_selection(
    year: int,
    month: int = Path(ge=1, le=12),
    profile: ProfileResponse = Depends(get_current_profile),
    service: MonthlySelectionService = Depends(get_selection_service)
):
    """Selection of a given month, or null"""
    return ok(service.get_selection(month, year))

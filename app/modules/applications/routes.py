from fastapi import APIRouter, Depends, Query, WebSocket
from app.config import settings
from app.core.dependencies import get_current_profile, require_admin
from app.core.realtime import ChangeFeed, authenticate_websocket, get_change_feed, stream_listing
from app.core.results import OperationResult, ok
from app.database.supabase_client import get_supabase
from app.modules.applications.schemas import (
    ApplicationCreate, ApplicationResponse, ApplicationVoteCreate,
    CommentCreate, ApplicationCommentResponse, ResolutionResult
)
from app.modules.applications.service import ApplicationService
from app.modules.profiles.schemas import ProfileResponse
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/applications", tags=["applications"])


def get_application_service(supabase: Client = Depends(get_supabase)) -> ApplicationService:
    return ApplicationService(supabase, settings)


@router.post("", response_model=OperationResult[ApplicationResponse], status_code=201)
def create_application(
    application_data: ApplicationCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ApplicationService = Depends(get_application_service)
):
    """Submit a membership application (one open application at a time)"""
    return ok(service.create_application(application_data, profile))


@router.get("", response_model=OperationResult[List[ApplicationResponse]])
def list_applications(
    profile: ProfileResponse = Depends(get_current_profile),
    service: ApplicationService = Depends(get_application_service)
):
    """All applications, newest first"""
    return ok(service.list_applications())


@router.get("/pending", response_model=OperationResult[List[ApplicationResponse]])
def list_pending_applications(
    profile: ProfileResponse = Depends(get_current_profile),
    service: ApplicationService = Depends(get_application_service)
):
    """Applications still under review"""
    return ok(service.list_pending_applications())


@router.get("/me", response_model=OperationResult[Optional[ApplicationResponse]])
def get_my_application(
    profile: ProfileResponse = Depends(get_current_profile),
    service: ApplicationService = Depends(get_application_service)
):
    """The caller's latest application, or null"""
    return ok(service.get_user_application(profile.uid))


@router.post("/resolve-due", response_model=OperationResult[List[ResolutionResult]])
def resolve_due_applications(
    admin: ProfileResponse = Depends(require_admin),
    service: ApplicationService = Depends(get_application_service)
):
    """Run the resolution rule on every open application past its deadline (admin or scheduler)"""
    return ok(service.resolve_due_applications())


@router.websocket("/stream")
async def stream_applications(
    websocket: WebSocket,
    token: str = Query(...),
    supabase: Client = Depends(get_supabase),
    feed: ChangeFeed = Depends(get_change_feed)
):
    """Push the application list on every change"""
    if not await authenticate_websocket(websocket, token, supabase):
        return
    service = ApplicationService(supabase, settings)
    await stream_listing(websocket, feed, "applications", service.list_applications)


@router.get("/{application_id}", response_model=OperationResult[ApplicationResponse])
def get_application(
    application_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ApplicationService = Depends(get_application_service)
):
    """Get application by ID"""
    return ok(service.get_application(application_id))


@router.post("/{application_id}/votes", response_model=OperationResult[ApplicationResponse], status_code=201)
def vote_on_application(
    application_id: str,
    vote_data: ApplicationVoteCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ApplicationService = Depends(get_application_service)
):
    """Accept / reject / abstain on an application; may resolve it"""
    return ok(service.vote(application_id, vote_data.vote, profile.uid, vote_data.comment))


@router.get("/{application_id}/comments", response_model=OperationResult[List[ApplicationCommentResponse]])
def list_application_comments(
    application_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ApplicationService = Depends(get_application_service)
):
    """Review comments, oldest first"""
    return ok(service.list_comments(application_id))


@router.post("/{application_id}/comments", response_model=OperationResult[ApplicationCommentResponse], status_code=201)
def add_application_comment(
    application_id: str,
    comment_data: CommentCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ApplicationService = Depends(get_application_service)
):
    """Add a general / concern / support comment"""
    return ok(service.add_comment(application_id, profile.uid, profile.display_name, comment_data.content, comment_data.type))

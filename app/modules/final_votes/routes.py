from fastapi import APIRouter, Depends, Query, WebSocket
from app.config import settings
from app.core.dependencies import get_current_profile
from app.core.realtime import ChangeFeed, authenticate_websocket, get_change_feed, stream_listing
from app.core.results import OperationResult, ok
from app.database.supabase_client import get_supabase
from app.modules.final_votes.schemas import FinalVoteResponse, BallotCreate, BallotResponse
from app.modules.final_votes.service import FinalVoteService
from app.modules.profiles.schemas import ProfileResponse
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/final-votes", tags=["final-votes"])


def get_final_vote_service(supabase: Client = Depends(get_supabase)) -> FinalVoteService:
    return FinalVoteService(supabase, settings)


@router.get("", response_model=OperationResult[List[FinalVoteResponse]])
def list_final_votes(
    profile: ProfileResponse = Depends(get_current_profile),
    service: FinalVoteService = Depends(get_final_vote_service)
):
    """Final votes still open, newest first"""
    return ok(service.list_active_final_votes())


@router.websocket("/stream")
async def stream_final_votes(
    websocket: WebSocket,
    token: str = Query(...),
    supabase: Client = Depends(get_supabase),
    feed: ChangeFeed = Depends(get_change_feed)
):
    """Push the open final votes on every change"""
    if not await authenticate_websocket(websocket, token, supabase):
        return
    service = FinalVoteService(supabase, settings)
    await stream_listing(websocket, feed, "final_votes", service.list_active_final_votes)


@router.get("/{final_vote_id}", response_model=OperationResult[FinalVoteResponse])
def get_final_vote(
    final_vote_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: FinalVoteService = Depends(get_final_vote_service)
):
    """Get final vote by ID (open or not)"""
    return ok(service.get_final_vote(final_vote_id))


@router.post("/{final_vote_id}/ballots", response_model=OperationResult[FinalVoteResponse], status_code=201)
def cast_final_vote(
    final_vote_id: str,
    ballot: BallotCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: FinalVoteService = Depends(get_final_vote_service)
):
    """Vote for / abstain / against; one ballot per member, final"""
    return ok(service.cast_vote(final_vote_id, ballot.option_id, profile.uid))


@router.get("/{final_vote_id}/ballots/me", response_model=OperationResult[Optional[BallotResponse]])
def get_my_ballot(
    final_vote_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: FinalVoteService = Depends(get_final_vote_service)
):
    """The caller's ballot, or null when they have not voted"""
    return ok(service.get_user_ballot(final_vote_id, profile.uid))

from fastapi import APIRouter, Depends
from app.config import settings
from app.core.dependencies import get_current_profile
from app.core.results import OperationResult, ok
from app.database.supabase_client import get_supabase
from app.modules.polls.schemas import PollCreate, PollResponse, PollBallotCreate, PollBallotResponse
from app.modules.polls.service import PollService
from app.modules.profiles.schemas import ProfileResponse
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/polls", tags=["polls"])


def get_poll_service(supabase: Client = Depends(get_supabase)) -> PollService:
    return PollService(supabase, settings)


@router.post("", response_model=OperationResult[PollResponse], status_code=201)
def create_poll(
    poll_data: PollCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: PollService = Depends(get_poll_service)
):
    """Open a poll with custom options"""
    return ok(service.create_poll(poll_data, profile.uid))


@router.get("", response_model=OperationResult[List[PollResponse]])
def list_polls(
    include_closed: bool = False,
    profile: ProfileResponse = Depends(get_current_profile),
    service: PollService = Depends(get_poll_service)
):
    """Open polls, newest first (include_closed=true for all)"""
    if include_closed:
        return ok(service.list_polls())
    return ok(service.list_active_polls())


@router.get("/{poll_id}", response_model=OperationResult[PollResponse])
def get_poll(
    poll_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: PollService = Depends(get_poll_service)
):
    """Get poll by ID"""
    return ok(service.get_poll(poll_id))


@router.post("/{poll_id}/ballots", response_model=OperationResult[PollResponse], status_code=201)
def vote_on_poll(
    poll_id: str,
    ballot: PollBallotCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: PollService = Depends(get_poll_service)
):
    """Cast the caller's single ballot"""
    return ok(service.vote(poll_id, ballot.option_id, profile.uid))


@router.get("/{poll_id}/ballots/me", response_model=OperationResult[Optional[PollBallotResponse]])
def get_my_poll_ballot(
    poll_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: PollService = Depends(get_poll_service)
):
    """The caller's ballot, or null"""
    return ok(service.get_user_ballot(poll_id, profile.uid))

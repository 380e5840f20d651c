from fastapi import APIRouter, Depends, Query, WebSocket
from app.config import settings
from app.core.dependencies import get_current_profile
from app.core.realtime import ChangeFeed, authenticate_websocket, get_change_feed, stream_listing
from app.core.results import OperationResult, ok
from app.database.supabase_client import get_supabase
from app.modules.profiles.schemas import ProfileResponse
from app.modules.proposals.schemas import (
    ProposalCreate, ProposalResponse, DiscussionCreate, DiscussionResponse, DiscussionReplyResponse
)
from app.modules.proposals.service import ProposalService
from supabase import Client
from typing import List

router = APIRouter(prefix="/proposals", tags=["proposals"])


def get_proposal_service(supabase: Client = Depends(get_supabase)) -> ProposalService:
    return ProposalService(supabase, settings)


@router.post("", response_model=OperationResult[ProposalResponse], status_code=201)
def create_proposal(
    proposal_data: ProposalCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProposalService = Depends(get_proposal_service)
):
    """Submit a proposal (rejected when a similar one was submitted in the last days)"""
    return ok(service.create_proposal(proposal_data, profile.uid))


@router.get("", response_model=OperationResult[List[ProposalResponse]])
def list_proposals(
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProposalService = Depends(get_proposal_service)
):
    """List proposals, most upvoted first"""
    return ok(service.list_proposals())


@router.websocket("/stream")
async def stream_proposals(
    websocket: WebSocket,
    token: str = Query(...),
    supabase: Client = Depends(get_supabase),
    feed: ChangeFeed = Depends(get_change_feed)
):
    """Push the ranked proposal list on every change"""
    if not await authenticate_websocket(websocket, token, supabase):
        return
    service = ProposalService(supabase, settings)
    await stream_listing(websocket, feed, "proposals", service.list_proposals)


@router.get("/{proposal_id}", response_model=OperationResult[ProposalResponse])
def get_proposal(
    proposal_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProposalService = Depends(get_proposal_service)
):
    """Get proposal by ID"""
    return ok(service.get_proposal(proposal_id))


@router.post("/{proposal_id}/upvote", response_model=OperationResult[ProposalResponse])
def upvote_proposal(
    proposal_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProposalService = Depends(get_proposal_service)
):
    """Upvote a proposal (once per member)"""
    return ok(service.upvote(proposal_id, profile.uid))


@router.delete("/{proposal_id}/upvote", response_model=OperationResult[ProposalResponse])
def remove_upvote(
    proposal_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProposalService = Depends(get_proposal_service)
):
    """Withdraw the caller's upvote"""
    return ok(service.remove_upvote(proposal_id, profile.uid))


@router.get("/{proposal_id}/discussions", response_model=OperationResult[List[DiscussionResponse]])
def list_discussions(
    proposal_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProposalService = Depends(get_proposal_service)
):
    """Discussion threads of a proposal"""
    return ok(service.list_discussions(proposal_id))


@router.post("/{proposal_id}/discussions", response_model=OperationResult[DiscussionResponse], status_code=201)
def add_discussion(
    proposal_id: str,
    discussion_data: DiscussionCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProposalService = Depends(get_proposal_service)
):
    """Start a discussion thread on a proposal"""
    author_name = discussion_data.author_name or profile.display_name
    return ok(service.add_discussion(proposal_id, profile.uid, author_name, discussion_data.content))


@router.post(
    "/{proposal_id}/discussions/{discussion_id}/replies",
    response_model=OperationResult[DiscussionReplyResponse],
    status_code=201,
)
def add_discussion_reply(
    proposal_id: str,
    discussion_id: str,
    reply_data: DiscussionCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProposalService = Depends(get_proposal_service)
):
    """Reply to a discussion thread"""
    author_name = reply_data.author_name or profile.display_name
    return ok(service.add_discussion_reply(proposal_id, discussion_id, profile.uid, author_name, reply_data.content))

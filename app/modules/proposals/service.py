from supabase import Client
from app.config.settings import Settings, settings as default_settings
from app.core.errors import AlreadyVoted, DuplicateProposal, NotFound, NotVoted, StoreFailure
from app.database.records import DAY_MS, conditional_update, fetch_all, fetch_one, insert_record, now_ms
from app.modules.proposals.schemas import (
    ProposalCreate, ProposalResponse, DiscussionCreate, DiscussionResponse, DiscussionReplyResponse
)
from app.modules.proposals.similarity import is_similar
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class ProposalService:
    def __init__(self, supabase: Client, settings: Settings = default_settings):
        self.supabase = supabase
        self.settings = settings

    def create_proposal(self, proposal_data: ProposalCreate, user_id: str, now: Optional[int] = None) -> ProposalResponse:
        """Create a proposal unless a similar one was submitted within the duplicate window"""
        now = now if now is not None else now_ms()
        try:
            duplicate = self.find_similar_proposal(proposal_data.title, proposal_data.description, now=now)
            if duplicate is not None:
                logger.info(f"Rejected proposal from {user_id}: similar to {duplicate.id}")
                raise DuplicateProposal()

            record = insert_record(self.supabase, "proposals", {
                "title": proposal_data.title,
                "description": proposal_data.description,
                "game": proposal_data.game,
                "created_by": user_id,
                "status": "pending",
                "upvotes": 0,
                "upvoted_by": [],
            }, now=now, with_revision=True)
            return ProposalResponse(**record)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("create_proposal", e)

    def find_similar_proposal(self, title: str, description: str, now: Optional[int] = None) -> Optional[ProposalResponse]:
        """Return the first recent proposal whose title or description is too close"""
        now = now if now is not None else now_ms()
        since = now - self.settings.duplicate_window_days * DAY_MS
        threshold = self.settings.similarity_threshold
        for proposal in self.list_proposals_since(since):
            if is_similar(title, proposal.title, threshold) or is_similar(description, proposal.description, threshold):
                return proposal
        return None

    def list_proposals(self) -> List[ProposalResponse]:
        """All proposals, most upvoted first (ties keep store order)"""
        try:
            rows = fetch_all(self.supabase, "proposals", order_by="upvotes", desc=True)
            return [ProposalResponse(**row) for row in rows]
        except Exception as e:
            raise StoreFailure("list_proposals", e)

    def list_proposals_since(self, since: int) -> List[ProposalResponse]:
        """Proposals created strictly after `since`, most upvoted first"""
        try:
            result = self.supabase.table("proposals")\
                .select("*")\
                .gt("created_at", since)\
                .order("upvotes", desc=True)\
                .execute()
            return [ProposalResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise StoreFailure("list_proposals_since", e)

    def get_proposal(self, proposal_id: str) -> ProposalResponse:
        try:
            row = fetch_one(self.supabase, "proposals", id=proposal_id)
            if row is None:
                raise NotFound("Proposal")
            return ProposalResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("get_proposal", e)

    def upvote(self, proposal_id: str, user_id: str) -> ProposalResponse:
        def add_upvote(row):
            upvoted_by = list(row.get("upvoted_by") or [])
            if user_id in upvoted_by:
                raise AlreadyVoted("You have already upvoted this proposal")
            upvoted_by.append(user_id)
            return {"upvotes": len(upvoted_by), "upvoted_by": upvoted_by}

        try:
            row = conditional_update(
                self.supabase, "proposals", proposal_id, add_upvote,
                entity="Proposal", max_attempts=self.settings.store_max_attempts,
            )
            return ProposalResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("upvote_proposal", e)

    def remove_upvote(self, proposal_id: str, user_id: str) -> ProposalResponse:
        def drop_upvote(row):
            upvoted_by = list(row.get("upvoted_by") or [])
            if user_id not in upvoted_by:
                raise NotVoted("You have not upvoted this proposal")
            upvoted_by = [uid for uid in upvoted_by if uid != user_id]
            return {"upvotes": len(upvoted_by), "upvoted_by": upvoted_by}

        try:
            row = conditional_update(
                self.supabase, "proposals", proposal_id, drop_upvote,
                entity="Proposal", max_attempts=self.settings.store_max_attempts,
            )
            return ProposalResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("remove_upvote", e)

    def add_discussion(self, proposal_id: str, author_id: str, author_name: str, content: str) -> DiscussionResponse:
        try:
            self.get_proposal(proposal_id)
            record = insert_record(self.supabase, "proposal_discussions", {
                "proposal_id": proposal_id,
                "author_id": author_id,
                "author_name": author_name,
                "content": content.strip(),
            })
            return DiscussionResponse(**record)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("add_discussion", e)

    def add_discussion_reply(self, proposal_id: str, discussion_id: str, author_id: str, author_name: str, content: str) -> DiscussionReplyResponse:
        try:
            discussion = fetch_one(self.supabase, "proposal_discussions", id=discussion_id, proposal_id=proposal_id)
            if discussion is None:
                raise NotFound("Discussion")
            record = insert_record(self.supabase, "discussion_replies", {
                "discussion_id": discussion_id,
                "proposal_id": proposal_id,
                "author_id": author_id,
                "author_name": author_name,
                "content": content.strip(),
            })
            return DiscussionReplyResponse(**record)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("add_discussion_reply", e)

    def list_discussions(self, proposal_id: str) -> List[DiscussionResponse]:
        """Discussions of a proposal in posting order, replies nested"""
        try:
            self.get_proposal(proposal_id)
            discussions = fetch_all(self.supabase, "proposal_discussions", order_by="created_at", desc=False, proposal_id=proposal_id)
            replies = fetch_all(self.supabase, "discussion_replies", order_by="created_at", desc=False, proposal_id=proposal_id)
            replies_by_discussion = {}
            for reply in replies:
                replies_by_discussion.setdefault(reply["discussion_id"], []).append(reply)
            return [
                DiscussionResponse(**discussion, replies=replies_by_discussion.get(discussion["id"], []))
                for discussion in discussions
            ]
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("list_discussions", e)

from supabase import Client
from app.config.settings import Settings, settings as default_settings
from app.core.errors import AlreadyVoted, NotFound, StoreFailure, VotingClosed, is_unique_violation
from app.database.records import DAY_MS, count_with_ballot, fetch_one, insert_record, now_ms
from app.modules.final_votes.schemas import FINAL_VOTE_OPTIONS, FinalVoteResponse, BallotResponse
from app.modules.proposals.schemas import ProposalResponse
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def is_open(final_vote: FinalVoteResponse, now: int) -> bool:
    return final_vote.is_active and final_vote.end_date > now


class FinalVoteService:
    def __init__(self, supabase: Client, settings: Settings = default_settings):
        self.supabase = supabase
        self.settings = settings

    def create_final_vote(self, proposal: ProposalResponse, now: Optional[int] = None) -> FinalVoteResponse:
        """Open the for/abstain/against vote on a selected proposal"""
        now = now if now is not None else now_ms()
        try:
            record = insert_record(self.supabase, "final_votes", {
                "proposal_id": proposal.id,
                "title": proposal.title,
                "description": proposal.description,
                "game": proposal.game,
                "created_by": proposal.created_by,
                "end_date": now + self.settings.final_vote_duration_days * DAY_MS,
                "is_active": True,
                "total_votes": 0,
                "options": [{"id": option_id, "text": text, "votes": 0} for option_id, text in FINAL_VOTE_OPTIONS],
            }, now=now, with_revision=True)
            return FinalVoteResponse(**record)
        except Exception as e:
            raise StoreFailure("create_final_vote", e)

    def get_final_vote(self, final_vote_id: str) -> FinalVoteResponse:
        try:
            row = fetch_one(self.supabase, "final_votes", id=final_vote_id)
            if row is None:
                raise NotFound("Final vote")
            return FinalVoteResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("get_final_vote", e)

    def list_active_final_votes(self, now: Optional[int] = None) -> List[FinalVoteResponse]:
        """Active votes whose window is still open, newest first; expired ones are left untouched"""
        now = now if now is not None else now_ms()
        try:
            result = self.supabase.table("final_votes")\
                .select("*")\
                .eq("is_active", True)\
                .gt("end_date", now)\
                .order("created_at", desc=True)\
                .execute()
            return [FinalVoteResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise StoreFailure("list_final_votes", e)

    def get_user_ballot(self, final_vote_id: str, user_id: str) -> Optional[BallotResponse]:
        try:
            row = fetch_one(self.supabase, "final_user_votes", user_id=user_id, final_vote_id=final_vote_id)
            return BallotResponse(**row) if row else None
        except Exception as e:
            raise StoreFailure("get_user_ballot", e)

    def has_user_voted(self, final_vote_id: str, user_id: str) -> bool:
        return self.get_user_ballot(final_vote_id, user_id) is not None

    def cast_vote(self, final_vote_id: str, option_id: str, user_id: str, now: Optional[int] = None) -> FinalVoteResponse:
        """
        Record one ballot per member and bump the chosen option.

        The ballot row goes in first: its unique (user_id, final_vote_id)
        constraint is what stops a second ballot racing past the read check.
        If the counter cannot be moved afterwards the ballot row is removed
        again and the error raised, so the member can retry.
        Ballots can be neither changed nor withdrawn.
        """
        now = now if now is not None else now_ms()
        if option_id not in dict(FINAL_VOTE_OPTIONS):
            raise NotFound("Vote option")
        try:
            if self.has_user_voted(final_vote_id, user_id):
                raise AlreadyVoted("You have already voted for this final vote")

            final_vote = self.get_final_vote(final_vote_id)
            if not is_open(final_vote, now):
                raise VotingClosed("This final vote has ended")

            try:
                ballot = insert_record(self.supabase, "final_user_votes", {
                    "final_vote_id": final_vote_id,
                    "user_id": user_id,
                    "option_id": option_id,
                    "voted_at": now,
                }, now=now)
            except Exception as e:
                if is_unique_violation(e):
                    raise AlreadyVoted("You have already voted for this final vote")
                raise

            def count_ballot(row):
                options = [dict(option) for option in row["options"]]
                for option in options:
                    if option["id"] == option_id:
                        option["votes"] += 1
                return {"options": options, "total_votes": row["total_votes"] + 1}

            row = count_with_ballot(
                self.supabase, "final_user_votes", ballot, "final_votes", final_vote_id, count_ballot,
                entity="Final vote", max_attempts=self.settings.store_max_attempts,
            )
            return FinalVoteResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("cast_final_vote", e)

from supabase import Client
from app.config.settings import Settings, settings as default_settings
from app.core.errors import AlreadyVoted, NotFound, StoreFailure, VotingClosed, is_unique_violation
from app.database.records import DAY_MS, count_with_ballot, fetch_all, fetch_one, insert_record, now_ms
from app.modules.polls.schemas import PollCreate, PollResponse, PollBallotResponse
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class PollService:
    def __init__(self, supabase: Client, settings: Settings = default_settings):
        self.supabase = supabase
        self.settings = settings

    def create_poll(self, poll_data: PollCreate, user_id: str, now: Optional[int] = None) -> PollResponse:
        now = now if now is not None else now_ms()
        try:
            record = insert_record(self.supabase, "votes", {
                "title": poll_data.title,
                "description": poll_data.description,
                "game": poll_data.game,
                "options": [{"id": option.id, "text": option.text, "votes": 0} for option in poll_data.options],
                "created_by": user_id,
                "end_date": now + poll_data.duration_days * DAY_MS,
                "is_active": True,
                "total_votes": 0,
            }, now=now, with_revision=True)
            return PollResponse(**record)
        except Exception as e:
            raise StoreFailure("create_poll", e)

    def get_poll(self, poll_id: str) -> PollResponse:
        try:
            row = fetch_one(self.supabase, "votes", id=poll_id)
            if row is None:
                raise NotFound("Poll")
            return PollResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("get_poll", e)

    def list_polls(self) -> List[PollResponse]:
        try:
            rows = fetch_all(self.supabase, "votes", order_by="created_at", desc=True)
            return [PollResponse(**row) for row in rows]
        except Exception as e:
            raise StoreFailure("list_polls", e)

    def list_active_polls(self, now: Optional[int] = None) -> List[PollResponse]:
        now = now if now is not None else now_ms()
        try:
            result = self.supabase.table("votes")\
                .select("*")\
                .eq("is_active", True)\
                .gt("end_date", now)\
                .order("created_at", desc=True)\
                .execute()
            return [PollResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise StoreFailure("list_active_polls", e)

    def get_user_ballot(self, poll_id: str, user_id: str) -> Optional[PollBallotResponse]:
        try:
            row = fetch_one(self.supabase, "user_votes", user_id=user_id, vote_id=poll_id)
            return PollBallotResponse(**row) if row else None
        except Exception as e:
            raise StoreFailure("get_poll_ballot", e)

    def vote(self, poll_id: str, option_id: str, user_id: str, now: Optional[int] = None) -> PollResponse:
        """One ballot per member; same ordering as final votes (ballot row first)"""
        now = now if now is not None else now_ms()
        try:
            if self.get_user_ballot(poll_id, user_id) is not None:
                raise AlreadyVoted("You have already voted for this poll")

            poll = self.get_poll(poll_id)
            if option_id not in {option.id for option in poll.options}:
                raise NotFound("Poll option")
            if not (poll.is_active and poll.end_date > now):
                raise VotingClosed("This poll has ended")

            try:
                ballot = insert_record(self.supabase, "user_votes", {
                    "vote_id": poll_id,
                    "user_id": user_id,
                    "option_id": option_id,
                    "voted_at": now,
                }, now=now)
            except Exception as e:
                if is_unique_violation(e):
                    raise AlreadyVoted("You have already voted for this poll")
                raise

            def count_ballot(row):
                options = [dict(option) for option in row["options"]]
                for option in options:
                    if option["id"] == option_id:
                        option["votes"] += 1
                return {"options": options, "total_votes": row["total_votes"] + 1}

            row = count_with_ballot(
                self.supabase, "user_votes", ballot, "votes", poll_id, count_ballot,
                entity="Poll", max_attempts=self.settings.store_max_attempts,
            )
            return PollResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("vote_on_poll", e)

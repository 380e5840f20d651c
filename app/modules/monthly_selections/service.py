from supabase import Client
from app.config.settings import Settings, settings as default_settings
from app.core.errors import AlreadyExists, StoreFailure, is_unique_violation
from app.database.records import DAY_MS, fetch_all, fetch_one, insert_record, now_ms, to_datetime, update_record
from app.modules.final_votes.service import FinalVoteService
from app.modules.monthly_selections.schemas import MonthlySelectionResponse, MonthlyStats
from app.modules.proposals.service import ProposalService
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def end_of_month_ms(year: int, month: int) -> int:
    """Last millisecond of the calendar month, UTC"""
    if month == 12:
        next_month = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        next_month = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return int(next_month.timestamp() * 1000) - 1


class MonthlySelectionService:
    def __init__(
        self,
        supabase: Client,
        settings: Settings = default_settings,
        proposals: Optional[ProposalService] = None,
        final_votes: Optional[FinalVoteService] = None,
    ):
        self.supabase = supabase
        self.settings = settings
        self.proposals = proposals or ProposalService(supabase, settings)
        self.final_votes = final_votes or FinalVoteService(supabase, settings)

    def get_selection(self, month: int, year: int) -> Optional[MonthlySelectionResponse]:
        try:
            row = fetch_one(self.supabase, "monthly_selections", month=month, year=year)
            return MonthlySelectionResponse(**row) if row else None
        except Exception as e:
            raise StoreFailure("get_monthly_selection", e)

    def list_selections(self) -> List[MonthlySelectionResponse]:
        try:
            rows = fetch_all(self.supabase, "monthly_selections", order_by="created_at", desc=True)
            return [MonthlySelectionResponse(**row) for row in rows]
        except Exception as e:
            raise StoreFailure("list_monthly_selections", e)

    def build_selection(self, limit: Optional[int] = None, now: Optional[int] = None) -> Optional[MonthlySelectionResponse]:
        """
        Advance the most upvoted recent proposals to a final vote.

        Returns None when no proposal was created in the window. Final votes
        are created one by one after the selection row; if one fails, the
        ones already created stay in place and the failure is raised.
        """
        now = now if now is not None else now_ms()
        limit = limit or self.settings.selection_limit
        current = to_datetime(now)
        month, year = current.month, current.year

        if self.get_selection(month, year) is not None:
            raise AlreadyExists(f"Monthly selection already exists for {month:02d}/{year}")

        since = now - self.settings.selection_window_days * DAY_MS
        candidates = self.proposals.list_proposals_since(since)
        selected = candidates[:limit]
        if not selected:
            logger.info(f"No proposal created since {to_datetime(since).date()}, no selection for {month:02d}/{year}")
            return None

        try:
            record = insert_record(self.supabase, "monthly_selections", {
                "month": month,
                "year": year,
                "proposal_ids": [proposal.id for proposal in selected],
                "status": "active",
                "final_vote_ids": [],
                "end_date": end_of_month_ms(year, month),
            }, now=now)
        except Exception as e:
            if is_unique_violation(e):
                raise AlreadyExists(f"Monthly selection already exists for {month:02d}/{year}")
            raise StoreFailure("create_monthly_selection", e)
        logger.info(f"Monthly selection {record['id']} created for {month:02d}/{year} with {len(selected)} proposal(s)")

        final_vote_ids = []
        for proposal in selected:
            try:
                final_vote_ids.append(self.final_votes.create_final_vote(proposal, now=now).id)
            except HTTPException:
                logger.error(
                    f"Final vote creation failed for proposal {proposal.id} after "
                    f"{len(final_vote_ids)}/{len(selected)} created in selection {record['id']}"
                )
                self._save_final_vote_ids(record["id"], final_vote_ids)
                raise

        return self._save_final_vote_ids(record["id"], final_vote_ids) or MonthlySelectionResponse(
            **{**record, "final_vote_ids": final_vote_ids}
        )

    def _save_final_vote_ids(self, selection_id: str, final_vote_ids: List[str]) -> Optional[MonthlySelectionResponse]:
        if not final_vote_ids:
            return None
        try:
            row = update_record(self.supabase, "monthly_selections", selection_id, {"final_vote_ids": final_vote_ids})
            return MonthlySelectionResponse(**row) if row else None
        except Exception as e:
            raise StoreFailure("save_selection_final_votes", e)

    def get_monthly_stats(self, now: Optional[int] = None) -> MonthlyStats:
        """Figures over the proposals of the selection window"""
        now = now if now is not None else now_ms()
        since = now - self.settings.selection_window_days * DAY_MS
        recent = self.proposals.list_proposals_since(since)
        total_upvotes = sum(proposal.upvotes for proposal in recent)
        return MonthlyStats(
            total_proposals=len(recent),
            total_upvotes=total_upvotes,
            top_proposal=recent[0] if recent else None,
            average_upvotes=total_upvotes / len(recent) if recent else 0.0,
        )

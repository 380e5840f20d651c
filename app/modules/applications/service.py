from supabase import Client
from app.config.settings import Settings, settings as default_settings
from app.core.errors import AlreadyExists, AlreadyVoted, NotFound, StoreFailure, VotingClosed, is_unique_violation
from app.database.records import DAY_MS, conditional_update, count_with_ballot, fetch_all, fetch_one, insert_record, now_ms
from app.modules.applications.review import OPEN_STATUSES, ReviewDecision, evaluate_review, is_terminal
from app.modules.applications.schemas import (
    ApplicationCreate, ApplicationResponse, ApplicationVoteResponse,
    ApplicationCommentResponse, ResolutionResult
)
from app.modules.profiles.schemas import ProfileResponse
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class ApplicationService:
    def __init__(self, supabase: Client, settings: Settings = default_settings):
        self.supabase = supabase
        self.settings = settings

    def create_application(self, application_data: ApplicationCreate, applicant: ProfileResponse, now: Optional[int] = None) -> ApplicationResponse:
        """Submit a membership application; one open application per member"""
        now = now if now is not None else now_ms()
        try:
            open_applications = self.supabase.table("applications")\
                .select("id")\
                .eq("applicant_id", applicant.uid)\
                .in_("status", list(OPEN_STATUSES))\
                .limit(1)\
                .execute()
            if open_applications.data:
                raise AlreadyExists("You already have a pending application")

            record = insert_record(self.supabase, "applications", {
                "applicant_id": applicant.uid,
                "applicant_name": application_data.applicant_name or applicant.display_name,
                "applicant_email": application_data.applicant_email or applicant.email,
                "game": application_data.game,
                "experience": application_data.experience,
                "motivation": application_data.motivation,
                "availability": application_data.availability,
                "additional_info": application_data.additional_info,
                "status": "pending",
                "review_end_date": now + self.settings.application_review_days * DAY_MS,
                "total_votes": 0,
                "votes": {"accept": 0, "reject": 0, "abstain": 0},
                "voted_by": [],
            }, now=now, with_revision=True)
            logger.info(f"Application {record['id']} submitted by {applicant.uid}")
            return ApplicationResponse(**record)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("create_application", e)

    def get_application(self, application_id: str) -> ApplicationResponse:
        try:
            row = fetch_one(self.supabase, "applications", id=application_id)
            if row is None:
                raise NotFound("Application")
            return ApplicationResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("get_application", e)

    def get_user_application(self, user_id: str) -> Optional[ApplicationResponse]:
        """Latest application of a member, if any"""
        try:
            result = self.supabase.table("applications")\
                .select("*")\
                .eq("applicant_id", user_id)\
                .order("created_at", desc=True)\
                .limit(1)\
                .execute()
            return ApplicationResponse(**result.data[0]) if result.data else None
        except Exception as e:
            raise StoreFailure("get_user_application", e)

    def list_applications(self) -> List[ApplicationResponse]:
        try:
            rows = fetch_all(self.supabase, "applications", order_by="created_at", desc=True)
            return [ApplicationResponse(**row) for row in rows]
        except Exception as e:
            raise StoreFailure("list_applications", e)

    def list_pending_applications(self) -> List[ApplicationResponse]:
        try:
            result = self.supabase.table("applications")\
                .select("*")\
                .in_("status", list(OPEN_STATUSES))\
                .order("created_at", desc=True)\
                .execute()
            return [ApplicationResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise StoreFailure("list_pending_applications", e)

    def get_user_vote(self, application_id: str, voter_id: str) -> Optional[ApplicationVoteResponse]:
        try:
            row = fetch_one(self.supabase, "application_votes", voter_id=voter_id, application_id=application_id)
            return ApplicationVoteResponse(**row) if row else None
        except Exception as e:
            raise StoreFailure("get_application_vote", e)

    def vote(self, application_id: str, choice: str, voter_id: str, comment: Optional[str] = None, now: Optional[int] = None) -> ApplicationResponse:
        """
        Record a member's vote, then run the resolution check.

        The resolution check is a separate step: if it fails the vote still
        stands and the caller gets the application as counted.
        """
        now = now if now is not None else now_ms()
        try:
            if self.get_user_vote(application_id, voter_id) is not None:
                raise AlreadyVoted("You have already voted on this application")

            application = self.get_application(application_id)
            if is_terminal(application.status):
                raise VotingClosed(f"This application has already been {application.status}")

            try:
                ballot = insert_record(self.supabase, "application_votes", {
                    "application_id": application_id,
                    "voter_id": voter_id,
                    "vote": choice,
                    "comment": comment,
                    "voted_at": now,
                }, now=now)
            except Exception as e:
                if is_unique_violation(e):
                    raise AlreadyVoted("You have already voted on this application")
                raise

            def count_vote(row):
                voted_by = list(row.get("voted_by") or [])
                if voter_id in voted_by:
                    raise AlreadyVoted("You have already voted on this application")
                votes = dict(row["votes"])
                votes[choice] = votes.get(choice, 0) + 1
                voted_by.append(voter_id)
                return {"votes": votes, "total_votes": row["total_votes"] + 1, "voted_by": voted_by}

            row = count_with_ballot(
                self.supabase, "application_votes", ballot, "applications", application_id, count_vote,
                entity="Application", max_attempts=self.settings.store_max_attempts,
            )
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("vote_on_application", e)

        resolved = self._resolve_quietly(application_id, now)
        return resolved or ApplicationResponse(**row)

    def _resolve_quietly(self, application_id: str, now: int) -> Optional[ApplicationResponse]:
        try:
            self.resolve(application_id, now=now)
            return self.get_application(application_id)
        except Exception:
            logger.exception(f"Resolution check failed for application {application_id}; vote kept")
            return None

    def resolve(self, application_id: str, now: Optional[int] = None) -> ResolutionResult:
        """
        Apply the quorum/deadline rule once. Terminal applications are left
        untouched, so running this again after a decision is a no-op.
        """
        now = now if now is not None else now_ms()
        outcome = {}

        def apply_rule(row):
            result = evaluate_review(
                row["status"], row["votes"], row["total_votes"], row["review_end_date"], now,
                quorum=self.settings.application_quorum,
                majority_pct=self.settings.application_majority_pct,
                extension_days=self.settings.application_extension_days,
            )
            outcome["result"] = result
            if result.decision in (ReviewDecision.ACCEPTED, ReviewDecision.REJECTED):
                return {"status": result.decision.value}
            if result.decision == ReviewDecision.EXTENDED:
                return {"review_end_date": result.review_end_date}
            return None

        try:
            row = conditional_update(
                self.supabase, "applications", application_id, apply_rule,
                entity="Application", max_attempts=self.settings.store_max_attempts,
            )
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("resolve_application", e)

        result = outcome["result"]
        if result.decision in (ReviewDecision.ACCEPTED, ReviewDecision.REJECTED):
            logger.info(
                f"Application {application_id} {result.decision.value} "
                f"({result.accept_pct:.0f}% accept / {result.reject_pct:.0f}% reject)"
            )
        elif result.decision == ReviewDecision.EXTENDED:
            logger.info(f"Application {application_id} has no clear majority, review extended")
        return ResolutionResult(
            application_id=application_id,
            decision=result.decision.value,
            status=row["status"],
            review_end_date=row["review_end_date"],
        )

    def resolve_due_applications(self, now: Optional[int] = None) -> List[ResolutionResult]:
        """Deadline sweep over open applications; one failure does not stop the others"""
        now = now if now is not None else now_ms()
        try:
            result = self.supabase.table("applications")\
                .select("id")\
                .in_("status", list(OPEN_STATUSES))\
                .lt("review_end_date", now)\
                .execute()
        except Exception as e:
            raise StoreFailure("list_due_applications", e)

        due = result.data or []
        if not due:
            logger.debug("No application past its review deadline")
            return []
        logger.info(f"Found {len(due)} application(s) past their review deadline")
        results = []
        for application in due:
            try:
                results.append(self.resolve(application["id"], now=now))
            except HTTPException as e:
                logger.error(f"Error resolving application {application['id']}: {e.detail}")
        return results

    def add_comment(self, application_id: str, author_id: str, author_name: str, content: str, comment_type: str = "general") -> ApplicationCommentResponse:
        try:
            self.get_application(application_id)
            record = insert_record(self.supabase, "application_comments", {
                "application_id": application_id,
                "author_id": author_id,
                "author_name": author_name,
                "content": content.strip(),
                "type": comment_type,
            })
            return ApplicationCommentResponse(**record)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("add_application_comment", e)

    def list_comments(self, application_id: str) -> List[ApplicationCommentResponse]:
        try:
            self.get_application(application_id)
            rows = fetch_all(self.supabase, "application_comments", order_by="created_at", desc=False, application_id=application_id)
            return [ApplicationCommentResponse(**row) for row in rows]
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("list_application_comments", e)

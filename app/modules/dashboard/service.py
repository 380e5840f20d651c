from supabase import Client
from app.config.settings import Settings, settings as default_settings
from app.core.errors import StoreFailure
from app.database.records import DAY_MS, fetch_all, now_ms
from app.modules.applications.review import OPEN_STATUSES
from app.modules.applications.service import ApplicationService
from app.modules.dashboard.schemas import ActiveMember, CommunityMetrics, DashboardStats, MemberActivity
from app.modules.final_votes.service import FinalVoteService
from app.modules.polls.service import PollService
from app.modules.profiles.service import ProfileService
from app.modules.proposals.service import ProposalService
from collections import Counter
from typing import Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

RECENT_ITEMS = 10
TOP_ITEMS = 5
ACTIVE_MEMBER_DAYS = 7
MONTH_DAYS = 30


class DashboardService:
    def __init__(self, supabase: Client, settings: Settings = default_settings):
        self.supabase = supabase
        self.settings = settings
        self.proposals = ProposalService(supabase, settings)
        self.applications = ApplicationService(supabase, settings)
        self.final_votes = FinalVoteService(supabase, settings)
        self.polls = PollService(supabase, settings)
        self.profiles = ProfileService(supabase)

    def _ballot_counts(self) -> Counter:
        """Poll and final-vote ballots per member"""
        try:
            counts = Counter()
            for table in ("user_votes", "final_user_votes"):
                for ballot in fetch_all(self.supabase, table):
                    counts[ballot["user_id"]] += 1
            return counts
        except Exception as e:
            raise StoreFailure("count_ballots", e)

    def get_dashboard_stats(self, now: Optional[int] = None) -> DashboardStats:
        now = now if now is not None else now_ms()
        month_ago = now - MONTH_DAYS * DAY_MS

        proposals = self.proposals.list_proposals()
        applications = self.applications.list_applications()
        polls = self.polls.list_polls()
        profiles = self.profiles.list_profiles()
        open_final_votes = self.final_votes.list_active_final_votes(now=now)
        ballots = self._ballot_counts()

        monthly_proposals = [p for p in proposals if p.created_at > month_ago]
        proposals_by_author = Counter(p.created_by for p in proposals)
        reviews_by_member = Counter(uid for a in applications for uid in a.voted_by)

        active_members = [
            ActiveMember(
                **profile.model_dump(),
                activity_score=ballots[profile.uid] + proposals_by_author[profile.uid] + reviews_by_member[profile.uid],
            )
            for profile in profiles
        ]
        active_members = sorted(
            (member for member in active_members if member.activity_score > 0),
            key=lambda member: member.activity_score,
            reverse=True,
        )

        by_newest = lambda item: item.created_at  # noqa: E731
        return DashboardStats(
            total_members=len(profiles),
            active_members=sum(1 for u in profiles if now - u.last_active < ACTIVE_MEMBER_DAYS * DAY_MS),
            new_members_this_month=sum(1 for u in profiles if u.joined_at > month_ago),
            total_votes=len(polls),
            active_votes=sum(1 for v in polls if v.is_active and v.end_date > now),
            active_final_votes=len(open_final_votes),
            total_proposals=len(proposals),
            pending_proposals=sum(1 for p in proposals if p.status == "pending"),
            total_applications=len(applications),
            pending_applications=sum(1 for a in applications if a.status in OPEN_STATUSES),
            accepted_applications=sum(1 for a in applications if a.status == "accepted"),
            rejected_applications=sum(1 for a in applications if a.status == "rejected"),
            monthly_proposals=len(monthly_proposals),
            monthly_upvotes=sum(p.upvotes for p in monthly_proposals),
            monthly_votes=sum(1 for v in polls if v.created_at > month_ago),
            recent_votes=sorted(polls, key=by_newest, reverse=True)[:RECENT_ITEMS],
            recent_proposals=sorted(proposals, key=by_newest, reverse=True)[:RECENT_ITEMS],
            recent_applications=sorted(applications, key=by_newest, reverse=True)[:RECENT_ITEMS],
            top_proposals=proposals[:TOP_ITEMS],
            most_active_members=active_members[:TOP_ITEMS],
        )

    def get_community_metrics(self, now: Optional[int] = None) -> CommunityMetrics:
        stats = self.get_dashboard_stats(now=now)

        def pct(part: int, whole: int) -> float:
            return part / whole * 100 if whole > 0 else 0.0

        return CommunityMetrics(
            engagement_rate=pct(stats.active_members, stats.total_members),
            voting_participation=pct(stats.total_votes + stats.total_applications, stats.total_members),
            proposal_success_rate=pct(stats.total_proposals - stats.pending_proposals, stats.total_proposals),
            application_acceptance_rate=pct(stats.accepted_applications, stats.total_applications),
        )

    def get_member_activity(self, uid: str) -> MemberActivity:
        try:
            profile = self.profiles.find_profile(uid)
            ballots = sum(
                len(fetch_all(self.supabase, table, user_id=uid))
                for table in ("user_votes", "final_user_votes")
            )
            proposals_created = len(fetch_all(self.supabase, "proposals", created_by=uid))
            applications_reviewed = len(fetch_all(self.supabase, "application_votes", voter_id=uid))
            return MemberActivity(
                uid=uid,
                votes_participated=ballots,
                proposals_created=proposals_created,
                applications_reviewed=applications_reviewed,
                last_activity=profile.last_active if profile else 0,
            )
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("get_member_activity", e)

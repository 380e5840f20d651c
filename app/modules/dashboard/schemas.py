from pydantic import BaseModel
from typing import List
from app.modules.applications.schemas import ApplicationResponse
from app.modules.polls.schemas import PollResponse
from app.modules.profiles.schemas import ProfileResponse
from app.modules.proposals.schemas import ProposalResponse


class MemberActivity(BaseModel):
    uid: str
    votes_participated: int
    proposals_created: int
    applications_reviewed: int
    last_activity: int


class ActiveMember(ProfileResponse):
    activity_score: int


class DashboardStats(BaseModel):
    # Community overview
    total_members: int
    active_members: int
    new_members_this_month: int

    # Voting
    total_votes: int
    active_votes: int
    active_final_votes: int
    total_proposals: int
    pending_proposals: int

    # Applications
    total_applications: int
    pending_applications: int
    accepted_applications: int
    rejected_applications: int

    # Last 30 days
    monthly_proposals: int
    monthly_upvotes: int
    monthly_votes: int

    recent_votes: List[PollResponse]
    recent_proposals: List[ProposalResponse]
    recent_applications: List[ApplicationResponse]

    top_proposals: List[ProposalResponse]
    most_active_members: List[ActiveMember]


class CommunityMetrics(BaseModel):
    engagement_rate: float
    voting_participation: float
    proposal_success_rate: float
    application_acceptance_rate: float

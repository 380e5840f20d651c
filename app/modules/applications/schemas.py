from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from app.modules.proposals.schemas import GameType

ApplicationStatus = Literal["pending", "under_review", "accepted", "rejected"]
ApplicationChoice = Literal["accept", "reject", "abstain"]
CommentType = Literal["general", "concern", "support"]


class ApplicationCreate(BaseModel):
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    game: GameType
    experience: str = Field(min_length=1)
    motivation: str = Field(min_length=1)
    availability: str = Field(min_length=1)
    additional_info: Optional[str] = None


class ApplicationVotes(BaseModel):
    accept: int = 0
    reject: int = 0
    abstain: int = 0


class ApplicationResponse(BaseModel):
    id: str
    applicant_id: str
    applicant_name: str
    applicant_email: str
    game: GameType
    experience: str
    motivation: str
    availability: str
    additional_info: Optional[str] = None
    status: ApplicationStatus
    review_end_date: int
    total_votes: int = 0
    votes: ApplicationVotes
    voted_by: List[str] = []
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True


class ApplicationVoteCreate(BaseModel):
    vote: ApplicationChoice
    comment: Optional[str] = None


class ApplicationVoteResponse(BaseModel):
    application_id: str
    voter_id: str
    vote: ApplicationChoice
    comment: Optional[str] = None
    voted_at: int

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    content: str = Field(min_length=1)
    type: CommentType = "general"


class ApplicationCommentResponse(BaseModel):
    id: str
    application_id: str
    author_id: str
    author_name: str
    content: str
    type: CommentType
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True


class ResolutionResult(BaseModel):
    application_id: str
    decision: str
    status: ApplicationStatus
    review_end_date: int

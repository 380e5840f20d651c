from pydantic import BaseModel, Field
from typing import Optional, List, Literal

GameType = Literal["apex-legends", "valorant"]
ProposalStatus = Literal["pending", "approved", "rejected"]


class ProposalCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    game: Optional[GameType] = None


class ProposalResponse(BaseModel):
    id: str
    title: str
    description: str
    game: Optional[GameType] = None
    created_by: str
    status: ProposalStatus = "pending"
    upvotes: int = 0
    upvoted_by: List[str] = []
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True


class DiscussionCreate(BaseModel):
    content: str = Field(min_length=1)
    author_name: Optional[str] = None


class DiscussionReplyResponse(BaseModel):
    id: str
    discussion_id: str
    proposal_id: str
    author_id: str
    author_name: str
    content: str
    created_at: int

    class Config:
        from_attributes = True


class DiscussionResponse(BaseModel):
    id: str
    proposal_id: str
    author_id: str
    author_name: str
    content: str
    created_at: int
    replies: List[DiscussionReplyResponse] = []

    class Config:
        from_attributes = True

from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from app.modules.proposals.schemas import ProposalResponse

SelectionStatus = Literal["active", "completed"]


class SelectionCreate(BaseModel):
    limit: Optional[int] = Field(default=None, ge=1, le=100)


class MonthlySelectionResponse(BaseModel):
    id: str
    month: int
    year: int
    proposal_ids: List[str]
    status: SelectionStatus = "active"
    end_date: int
    final_vote_ids: List[str] = []
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True


class MonthlyStats(BaseModel):
    total_proposals: int
    total_upvotes: int
    top_proposal: Optional[ProposalResponse] = None
    average_upvotes: float

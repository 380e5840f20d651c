from pydantic import BaseModel
from typing import Optional, List, Literal
from app.modules.proposals.schemas import GameType

FinalVoteOptionId = Literal["for", "abstain", "against"]

# Fixed and ordered; ids and labels are the same for every final vote
FINAL_VOTE_OPTIONS = (
    ("for", "Pour"),
    ("abstain", "Ne se prononce pas"),
    ("against", "Contre"),
)


class VoteOption(BaseModel):
    id: str
    text: str
    votes: int = 0


class FinalVoteResponse(BaseModel):
    id: str
    proposal_id: str
    title: str
    description: str
    game: Optional[GameType] = None
    created_by: str
    end_date: int
    is_active: bool
    total_votes: int = 0
    options: List[VoteOption]
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True


class BallotCreate(BaseModel):
    option_id: FinalVoteOptionId


class BallotResponse(BaseModel):
    final_vote_id: str
    user_id: str
    option_id: str
    voted_at: int

    class Config:
        from_attributes = True

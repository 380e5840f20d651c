from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from app.modules.final_votes.schemas import VoteOption
from app.modules.proposals.schemas import GameType


class PollOptionCreate(BaseModel):
    id: str = Field(min_length=1)
    text: str = Field(min_length=1)


class PollCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    game: Optional[GameType] = None
    options: List[PollOptionCreate] = Field(min_length=2)
    duration_days: int = Field(default=7, ge=1, le=90)

    @field_validator("options")
    @classmethod
    def option_ids_unique(cls, options):
        ids = [option.id for option in options]
        if len(set(ids)) != len(ids):
            raise ValueError("option ids must be unique")
        return options


class PollResponse(BaseModel):
    id: str
    title: str
    description: str
    game: Optional[GameType] = None
    options: List[VoteOption]
    created_by: str
    end_date: int
    is_active: bool
    total_votes: int = 0
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True


class PollBallotCreate(BaseModel):
    option_id: str


class PollBallotResponse(BaseModel):
    vote_id: str
    user_id: str
    option_id: str
    voted_at: int

    class Config:
        from_attributes = True

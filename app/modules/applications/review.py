"""
Resolution rule for membership applications.

An application is due for a decision once its review deadline has passed or
it has collected the quorum of votes. A due application is accepted or
rejected when one side reaches the majority percentage; otherwise its
deadline moves forward and it stays open.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from app.database.records import DAY_MS

TERMINAL_STATUSES = ("accepted", "rejected")
OPEN_STATUSES = ("pending", "under_review")


class ReviewDecision(str, Enum):
    NOT_DUE = "not_due"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXTENDED = "extended"
    ALREADY_CLOSED = "already_closed"


@dataclass(frozen=True)
class ReviewOutcome:
    decision: ReviewDecision
    accept_pct: float = 0.0
    reject_pct: float = 0.0
    review_end_date: Optional[int] = None


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def evaluate_review(
    status: str,
    votes: Mapping[str, int],
    total_votes: int,
    review_end_date: int,
    now: int,
    quorum: int = 5,
    majority_pct: float = 60.0,
    extension_days: int = 3,
) -> ReviewOutcome:
    if is_terminal(status):
        return ReviewOutcome(ReviewDecision.ALREADY_CLOSED)
    if not (now > review_end_date or total_votes >= quorum):
        return ReviewOutcome(ReviewDecision.NOT_DUE)

    accept_pct = votes.get("accept", 0) / total_votes * 100 if total_votes else 0.0
    reject_pct = votes.get("reject", 0) / total_votes * 100 if total_votes else 0.0

    if accept_pct >= majority_pct:
        return ReviewOutcome(ReviewDecision.ACCEPTED, accept_pct, reject_pct)
    if reject_pct >= majority_pct:
        return ReviewOutcome(ReviewDecision.REJECTED, accept_pct, reject_pct)
    # Never move the deadline backwards, and land in the future even when it is long past
    extended = max(review_end_date, now) + extension_days * DAY_MS
    return ReviewOutcome(ReviewDecision.EXTENDED, accept_pct, reject_pct, review_end_date=extended)

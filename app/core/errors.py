"""
Error taxonomy for the governance rules.

Every error is an HTTPException so services can raise them exactly where they
would raise an HTTP error, and the global handler in app.main renders them in
the {"success": false, "error": {...}} envelope.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException


class GovernanceError(HTTPException):
    status_code = 400
    code = "GOVERNANCE_ERROR"
    message = "The request could not be completed"

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        self.message = message or self.message
        self.cause = cause
        super().__init__(status_code=self.status_code, detail=self.message)

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        error = {"message": self.message, "code": self.code}
        if include_cause and self.cause is not None:
            error["cause"] = str(self.cause)
        return error


class DuplicateProposal(GovernanceError):
    status_code = 409
    code = "DUPLICATE_PROPOSAL"
    message = "A similar proposal was submitted recently. Please wait before submitting again."


class AlreadyVoted(GovernanceError):
    status_code = 409
    code = "ALREADY_VOTED"
    message = "You have already voted"


class NotVoted(GovernanceError):
    status_code = 409
    code = "NOT_VOTED"
    message = "You have not voted for this item"


class NotFound(GovernanceError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str = "Item", cause: Optional[BaseException] = None):
        super().__init__(f"{entity} not found", cause)


class AlreadyExists(GovernanceError):
    status_code = 409
    code = "ALREADY_EXISTS"
    message = "Item already exists"


class AuthRequired(GovernanceError):
    status_code = 401
    code = "AUTH_REQUIRED"
    message = "User not authenticated"


class AdminRequired(GovernanceError):
    status_code = 403
    code = "ADMIN_REQUIRED"
    message = "Only admins can perform this action"


class VotingClosed(GovernanceError):
    status_code = 409
    code = "VOTING_CLOSED"
    message = "Voting is closed for this item"


class ConcurrentModification(GovernanceError):
    status_code = 409
    code = "CONCURRENT_MODIFICATION"
    message = "The item was modified concurrently, please try again"


class StoreFailure(GovernanceError):
    status_code = 500
    code = "STORE_FAILURE"

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        super().__init__(f"{operation} failed", cause)


def is_unique_violation(error: BaseException) -> bool:
    """True for Postgres duplicate-key errors surfaced by PostgREST."""
    return str(getattr(error, "code", "")) == "23505"

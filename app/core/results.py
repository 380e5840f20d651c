from pydantic import BaseModel
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorBody(BaseModel):
    message: str
    code: str
    cause: Optional[str] = None


class OperationResult(BaseModel, Generic[T]):
    """Success envelope; failures are rendered by the exception handlers in app.main"""
    success: bool = True
    data: T


class OperationError(BaseModel):
    success: bool = False
    error: ErrorBody


def ok(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}


def failure(message: str, code: str, cause: Optional[str] = None) -> Dict[str, Any]:
    error = {"message": message, "code": code}
    if cause is not None:
        error["cause"] = cause
    return {"success": False, "error": error}

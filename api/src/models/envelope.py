"""Uniform response envelope shared by every endpoint."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Structured error attached to failed responses."""
    code: int = Field(..., description="HTTP status code")
    description: str = Field(..., description="Error description")


class ApiResponse(BaseModel):
    """Envelope schema: ``{success, message, data}`` plus optional ``error``."""
    success: bool = Field(..., description="Whether the request succeeded")
    message: str = Field(..., description="Human-readable outcome")
    data: Any = Field(None, description="Payload, null when there is none")
    error: Optional[ErrorDetail] = Field(None, description="Present on failures only")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "message": "User not found!",
                "data": None,
                "error": {"code": 404, "description": "User not found!"}
            }
        }
    }


def success_body(message: str, data: Any = None) -> dict:
    return ApiResponse(success=True, message=message, data=data).model_dump(exclude={"error"})


def error_body(code: int, message: str, description: Optional[str] = None) -> dict:
    return ApiResponse(
        success=False,
        message=message,
        data=None,
        error=ErrorDetail(code=code, description=description or message),
    ).model_dump()

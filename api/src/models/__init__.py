"""Data models for the user API.

This package contains Pydantic models for request validation and the
response envelope.
"""

from .envelope import ApiResponse, ErrorDetail, error_body, success_body
from .user import Address, FullName, OrderCreate, UserCreate, UserUpdate

__all__ = [
    "ApiResponse",
    "ErrorDetail",
    "error_body",
    "success_body",
    "Address",
    "FullName",
    "OrderCreate",
    "UserCreate",
    "UserUpdate",
]

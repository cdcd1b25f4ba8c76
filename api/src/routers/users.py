"""
Users router.

Provides REST API endpoints for:
- User management (create, list, get, partial update, delete)
- Orders embedded in a user (append, list, total price)

Request bodies are taken as raw JSON and validated by the user service so
that every validation failure is reported as a 400 envelope carrying the
first violated constraint.
"""

import structlog
from typing import Annotated, Any
from fastapi import APIRouter, Body, Depends, Path, status
from fastapi.responses import JSONResponse

from api.src.dependencies import get_user_service
from api.src.models.envelope import ApiResponse, success_body
from api.src.models.user import INT64_MAX, INT64_MIN
from api.src.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(
    tags=["Users"],
    responses={
        400: {"model": ApiResponse, "description": "Validation Error"},
        500: {"model": ApiResponse, "description": "Internal Server Error"}
    }
)

NOT_FOUND = {404: {"model": ApiResponse, "description": "User not found"}}

UserId = Annotated[int, Path(ge=INT64_MIN, le=INT64_MAX, description="userId of the user")]


def envelope(message: str, data: Any = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=success_body(message, data))


# ============================================================================
# USER ENDPOINTS
# ============================================================================


@router.post(
    "/",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    responses={409: {"model": ApiResponse, "description": "userId or username already exists"}}
)
async def create_user(
    payload: Any = Body(..., examples=[{
        "userId": 1,
        "username": "Ann",
        "password": "secret",
        "fullName": {"firstName": "Ann", "lastName": "Smith"},
        "age": 20,
        "email": "ann@example.com",
        "isActive": True,
        "hobbies": ["chess"],
        "address": {"street": "1 Main St", "city": "Springfield", "country": "US"}
    }]),
    service: UserService = Depends(get_user_service)
) -> JSONResponse:
    """Create a user; the password is stored hashed and never returned."""
    user = await service.create_user(payload)
    return envelope("User created successfully!", user, status.HTTP_201_CREATED)


@router.get("/", response_model=ApiResponse, summary="List Users")
async def list_users(service: UserService = Depends(get_user_service)) -> JSONResponse:
    """List all users with userId, username, fullName, age, email and address."""
    users = await service.list_users()
    return envelope("Users fetched successfully!", users)


@router.get("/{user_id}", response_model=ApiResponse, summary="Get User", responses=NOT_FOUND)
async def get_user(user_id: UserId, service: UserService = Depends(get_user_service)) -> JSONResponse:
    user = await service.get_user(user_id)
    return envelope("User fetched successfully!", user)


@router.put(
    "/{user_id}",
    response_model=ApiResponse,
    summary="Update User",
    responses={**NOT_FOUND, 409: {"model": ApiResponse, "description": "userId or username already exists"}}
)
async def update_user(
    user_id: UserId,
    payload: Any = Body(..., examples=[{"age": 21, "hobbies": ["chess", "go"]}]),
    service: UserService = Depends(get_user_service)
) -> JSONResponse:
    """
    Partially update a user.

    Only the fields present in the body are changed; a new password is
    hashed before it is stored.
    """
    user = await service.update_user(user_id, payload)
    return envelope("User updated successfully!", user)


@router.delete("/{user_id}", response_model=ApiResponse, summary="Delete User", responses=NOT_FOUND)
async def delete_user(user_id: UserId, service: UserService = Depends(get_user_service)) -> JSONResponse:
    await service.delete_user(user_id)
    return envelope("User deleted successfully!", None)


# ============================================================================
# ORDER ENDPOINTS
# ============================================================================


@router.put("/{user_id}/orders", response_model=ApiResponse, summary="Add Order", responses=NOT_FOUND)
async def add_order(
    user_id: UserId,
    payload: Any = Body(..., examples=[{"productName": "Pen", "price": 2, "quantity": 3}]),
    service: UserService = Depends(get_user_service)
) -> JSONResponse:
    """Append an order to the user's orders and return it."""
    order = await service.add_order(user_id, payload)
    return envelope("Order created successfully!", order)


@router.get("/{user_id}/orders", response_model=ApiResponse, summary="List Orders", responses=NOT_FOUND)
async def list_orders(user_id: UserId, service: UserService = Depends(get_user_service)) -> JSONResponse:
    orders = await service.list_orders(user_id)
    return envelope("Orders fetched successfully!", orders)


@router.get(
    "/{user_id}/orders/total-price",
    response_model=ApiResponse,
    summary="Total Order Price",
    responses=NOT_FOUND
)
async def get_total_price(user_id: UserId, service: UserService = Depends(get_user_service)) -> JSONResponse:
    """Sum of price * quantity over the user's orders."""
    total = await service.get_total_price(user_id)
    return envelope("Total price calculated successfully!", total)

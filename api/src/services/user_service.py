"""
User service implementing the user and order operations.

Provides:
- Payload validation (create, partial update, order)
- Password hashing before anything is persisted
- Per-endpoint response shaping
- Mapping of missing users to NotFoundError

Each operation returns the ``data`` payload of the response envelope; the
router decides the message and status code.
"""

import structlog
import math
from decimal import Decimal
from typing import Any, Dict, List
from starlette.concurrency import run_in_threadpool

from api.src.errors import InternalError, NotFoundError, ValidationError
from api.src.repositories.user_repo import UserRepository
from api.src.services.password_hasher import PasswordHasher
from api.src.validation import validate_order, validate_user, validate_user_update

logger = structlog.get_logger(__name__)

# Fields echoed back by the create endpoint.
CREATE_RESPONSE_FIELDS = (
    "userId",
    "username",
    "fullName",
    "age",
    "email",
    "isActive",
    "hobbies",
    "address",
)


def total_price(orders: List[Dict[str, Any]]) -> float:
    """
    Sum ``price * quantity`` over orders.

    Prices go through their decimal string form so that e.g. 0.1 + 0.2
    totals 0.3 rather than 0.30000000000000004.

    Raises:
        InternalError: If stored orders add up to a non-finite total
    """
    total = sum(
        (Decimal(str(order["price"])) * order["quantity"] for order in orders),
        Decimal(0),
    )
    value = float(total)
    if not math.isfinite(value):
        raise InternalError(description="Total price is not a finite number")
    return value


class UserService:
    """Service for user and order operations."""

    def __init__(self, user_repo: UserRepository, password_hasher: PasswordHasher):
        """
        Initialize user service.

        Args:
            user_repo: User repository
            password_hasher: One-way password hash capability
        """
        self.user_repo = user_repo
        self.password_hasher = password_hasher

    async def _hash_password(self, password: str) -> str:
        # bcrypt is CPU bound; keep it off the event loop
        return await run_in_threadpool(self.password_hasher.hash, password)

    async def create_user(self, payload: Any) -> Dict[str, Any]:
        """
        Validate and store a new user.

        Args:
            payload: Raw JSON body

        Returns:
            Public fields of the created user (no password, no orders)

        Raises:
            ValidationError: If the payload does not match the user schema
            ConflictError: If userId or username is taken
        """
        result = validate_user(payload)
        if not result.ok:
            logger.info("user_create_rejected", reason=result.message)
            raise ValidationError(result.message)

        document = result.value.to_document()
        document["password"] = await self._hash_password(document["password"])

        created = await self.user_repo.create_user(document)
        return {field: created[field] for field in CREATE_RESPONSE_FIELDS}

    async def list_users(self) -> List[Dict[str, Any]]:
        """
        List every user.

        Returns:
            Users projected to userId, username, fullName, age, email, address
        """
        return await self.user_repo.list_users()

    async def get_user(self, user_id: int) -> Dict[str, Any]:
        """
        Get a single user.

        Raises:
            NotFoundError: If no user has this userId
        """
        user = await self.user_repo.get_user(user_id)
        if user is None:
            raise NotFoundError()
        return user

    async def update_user(self, user_id: int, payload: Any) -> Dict[str, Any]:
        """
        Apply a partial update.

        Fields absent from the payload are left untouched. A new password is
        hashed before it is stored.

        Args:
            user_id: User ID
            payload: Raw JSON body

        Returns:
            Updated user without password and orders

        Raises:
            ValidationError: If a present field violates the schema
            NotFoundError: If no user has this userId
            ConflictError: If the new userId or username is taken
        """
        result = validate_user_update(payload)
        if not result.ok:
            logger.info("user_update_rejected", user_id=user_id, reason=result.message)
            raise ValidationError(result.message)

        changes = result.value.changes()
        if "password" in changes:
            changes["password"] = await self._hash_password(changes["password"])

        updated = await self.user_repo.update_user(user_id, changes)
        if updated is None:
            raise NotFoundError()
        return updated

    async def delete_user(self, user_id: int) -> None:
        """
        Delete a user.

        Raises:
            NotFoundError: If no user has this userId
        """
        if not await self.user_repo.delete_user(user_id):
            raise NotFoundError()

    async def add_order(self, user_id: int, payload: Any) -> Dict[str, Any]:
        """
        Append an order to a user.

        Args:
            user_id: User ID
            payload: Raw JSON body

        Returns:
            The appended order

        Raises:
            ValidationError: If the order is malformed
            NotFoundError: If no user has this userId
        """
        result = validate_order(payload)
        if not result.ok:
            logger.info("order_add_rejected", user_id=user_id, reason=result.message)
            raise ValidationError(result.message)

        order = result.value.to_document()
        if not await self.user_repo.add_order(user_id, order):
            raise NotFoundError()
        return order

    async def list_orders(self, user_id: int) -> Dict[str, Any]:
        """
        Get a user's orders.

        Returns:
            ``{"orders": [...]}``, empty when the user has never ordered

        Raises:
            NotFoundError: If no user has this userId
        """
        orders = await self.user_repo.get_orders(user_id)
        if orders is None:
            raise NotFoundError()
        return {"orders": orders}

    async def get_total_price(self, user_id: int) -> Dict[str, Any]:
        """
        Total value of a user's orders.

        Returns:
            ``{"totalPrice": <sum of price * quantity>}``

        Raises:
            NotFoundError: If no user has this userId
        """
        orders = await self.user_repo.get_orders(user_id)
        if orders is None:
            raise NotFoundError()
        return {"totalPrice": total_price(orders)}

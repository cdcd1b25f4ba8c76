"""
User repository for document store operations.

Provides async CRUD operations on the users collection using PyMongo's
asyncio API. Each user is one document that embeds its ``orders`` list;
``userId`` and ``username`` are kept unique by indexes created at startup.
"""

import structlog
from typing import Any, Dict, List, Optional
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from api.src.errors import ConflictError

logger = structlog.get_logger(__name__)

# Shape returned by the list endpoint. Inclusion keeps password out.
LIST_PROJECTION: Dict[str, int] = {
    "_id": 0,
    "userId": 1,
    "username": 1,
    "fullName": 1,
    "age": 1,
    "email": 1,
    "address": 1,
}

# Shape returned by get and update.
DETAIL_PROJECTION: Dict[str, int] = {
    "_id": 0,
    "password": 0,
    "orders": 0,
}

ORDERS_PROJECTION: Dict[str, int] = {
    "_id": 0,
    "orders": 1,
}


class UserRepository:
    """Repository for user document operations."""

    def __init__(self, collection: AsyncCollection):
        """
        Initialize user repository.

        Args:
            collection: PyMongo async collection holding user documents
        """
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create the unique indexes backing the userId/username invariants."""
        try:
            await self.collection.create_index("userId", unique=True)
            await self.collection.create_index("username", unique=True)
            logger.info("user_indexes_ensured", collection=self.collection.name)
        except Exception as e:
            logger.error("user_indexes_failed", error=str(e))
            raise

    async def create_user(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new user document.

        Args:
            document: User document with an already hashed password

        Returns:
            The inserted document, without the store's ``_id``

        Raises:
            ConflictError: If userId or username already exists
        """
        # insert_one adds _id to the dict it is given
        to_insert = dict(document)
        try:
            await self.collection.insert_one(to_insert)
        except DuplicateKeyError as e:
            logger.warning(
                "user_already_exists",
                user_id=document.get("userId"),
                username=document.get("username"),
                key=(e.details or {}).get("keyValue"),
            )
            raise ConflictError()
        except Exception as e:
            logger.error("user_create_failed", error=str(e), user_id=document.get("userId"))
            raise

        logger.info("user_created", user_id=document.get("userId"), username=document.get("username"))
        return document

    async def list_users(self) -> List[Dict[str, Any]]:
        """
        List all users in storage order.

        Returns:
            User documents limited to the list projection
        """
        try:
            cursor = self.collection.find({}, LIST_PROJECTION)
            return await cursor.to_list()
        except Exception as e:
            logger.error("user_list_failed", error=str(e))
            raise

    async def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """
        Get user by userId.

        Args:
            user_id: User ID

        Returns:
            User document without password and orders, or None if not found
        """
        try:
            document = await self.collection.find_one({"userId": user_id}, DETAIL_PROJECTION)
        except Exception as e:
            logger.error("user_get_failed", error=str(e), user_id=user_id)
            raise

        if document is None:
            logger.debug("user_not_found", user_id=user_id)
        return document

    async def update_user(self, user_id: int, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Merge fields into a user document.

        Only the given top-level fields are overwritten; everything else is
        left as stored.

        Args:
            user_id: User ID
            changes: Fields to set

        Returns:
            Updated document without password and orders, or None if not found

        Raises:
            ConflictError: If the change collides with another user's
                userId or username
        """
        if not changes:
            return await self.get_user(user_id)

        try:
            document = await self.collection.find_one_and_update(
                {"userId": user_id},
                {"$set": changes},
                projection=DETAIL_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            logger.warning("user_update_conflict", user_id=user_id, fields=sorted(changes))
            raise ConflictError()
        except Exception as e:
            logger.error("user_update_failed", error=str(e), user_id=user_id)
            raise

        if document is None:
            logger.debug("user_not_found", user_id=user_id)
            return None

        logger.info("user_updated", user_id=user_id, fields=sorted(changes))
        return document

    async def delete_user(self, user_id: int) -> bool:
        """
        Delete user document.

        Args:
            user_id: User ID

        Returns:
            True if deleted, False if not found
        """
        try:
            result = await self.collection.delete_one({"userId": user_id})
        except Exception as e:
            logger.error("user_delete_failed", error=str(e), user_id=user_id)
            raise

        deleted = result.deleted_count == 1
        if deleted:
            logger.info("user_deleted", user_id=user_id)
        else:
            logger.debug("user_not_found", user_id=user_id)
        return deleted

    async def add_order(self, user_id: int, order: Dict[str, Any]) -> bool:
        """
        Append an order to a user's orders.

        Uses a single ``$push`` so concurrent appends never overwrite each
        other. MongoDB creates the array when the field is absent.

        Args:
            user_id: User ID
            order: Order document

        Returns:
            True if the user exists and the order was appended
        """
        try:
            result = await self.collection.update_one(
                {"userId": user_id},
                {"$push": {"orders": order}},
            )
        except Exception as e:
            logger.error("order_add_failed", error=str(e), user_id=user_id)
            raise

        if result.matched_count == 0:
            logger.debug("user_not_found", user_id=user_id)
            return False

        logger.info("order_added", user_id=user_id, product_name=order.get("productName"))
        return True

    async def get_orders(self, user_id: int) -> Optional[List[Dict[str, Any]]]:
        """
        Get a user's orders.

        Args:
            user_id: User ID

        Returns:
            The orders list (empty when the user has none yet), or None if
            the user does not exist
        """
        try:
            document = await self.collection.find_one({"userId": user_id}, ORDERS_PROJECTION)
        except Exception as e:
            logger.error("order_list_failed", error=str(e), user_id=user_id)
            raise

        if document is None:
            logger.debug("user_not_found", user_id=user_id)
            return None
        return document.get("orders") or []

"""
FastAPI dependency injection for the document store and services.

Provides injectable dependencies for:
- MongoDB client lifecycle (one client per process)
- The users collection
- Repository instances
- Service instances (password hasher, user service)

All dependencies use FastAPI's dependency injection system; tests replace
them through ``app.dependency_overrides``.
"""

import structlog
from typing import Optional
from functools import lru_cache
from fastapi import Depends
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection

from api.src.config import get_settings
from api.src.repositories.user_repo import UserRepository
from api.src.services.password_hasher import PasswordHasher
from api.src.services.user_service import UserService

logger = structlog.get_logger(__name__)


# ============================================================================
# MONGODB CLIENT
# ============================================================================

_client: Optional[AsyncMongoClient] = None


async def init_mongo_client() -> AsyncMongoClient:
    """
    Initialize the MongoDB client.

    Should be called during application startup. The client owns the
    connection pool; a ping verifies the server is reachable.

    Returns:
        Connected async client
    """
    global _client

    if _client is not None:
        return _client

    settings = get_settings()

    try:
        _client = AsyncMongoClient(
            settings.mongodb_url,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
        )
        await _client.admin.command("ping")

        logger.info(
            "mongo_client_initialized",
            database=settings.mongodb_database,
            collection=settings.mongodb_collection,
        )

        return _client

    except Exception as e:
        logger.error("mongo_client_init_failed", error=str(e))
        if _client is not None:
            await _client.close()
            _client = None
        raise


async def close_mongo_client():
    """
    Close the MongoDB client.

    Should be called during application shutdown.
    """
    global _client

    if _client is not None:
        await _client.close()
        logger.info("mongo_client_closed")
        _client = None


def get_mongo_client() -> AsyncMongoClient:
    """
    Get the MongoDB client.

    Returns:
        Async MongoDB client

    Raises:
        RuntimeError: If the client is not initialized
    """
    if _client is None:
        logger.error("mongo_client_not_initialized")
        raise RuntimeError(
            "MongoDB client not initialized. Call init_mongo_client() during startup."
        )
    return _client


def get_users_collection() -> AsyncCollection:
    """
    Get the users collection.

    Returns:
        Collection configured by ``mongodb_database``/``mongodb_collection``
    """
    settings = get_settings()
    client = get_mongo_client()
    return client[settings.mongodb_database][settings.mongodb_collection]


# ============================================================================
# REPOSITORY DEPENDENCIES
# ============================================================================


def get_user_repository(
    collection: AsyncCollection = Depends(get_users_collection)
) -> UserRepository:
    """
    Get user repository instance.

    Args:
        collection: Users collection

    Returns:
        User repository
    """
    return UserRepository(collection)


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


@lru_cache()
def get_password_hasher() -> PasswordHasher:
    """
    Get password hasher instance (cached).

    The passlib context is built once per process.

    Returns:
        Password hasher using the configured bcrypt cost factor
    """
    return PasswordHasher(get_settings().password_bcrypt_rounds)


def get_user_service(
    user_repo: UserRepository = Depends(get_user_repository),
    password_hasher: PasswordHasher = Depends(get_password_hasher)
) -> UserService:
    """
    Get user service with the request's repository.

    Args:
        user_repo: User repository
        password_hasher: Password hasher

    Returns:
        User service
    """
    return UserService(user_repo, password_hasher)

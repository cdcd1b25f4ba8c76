"""Shared fixtures: in-memory repository, fake password hasher, API client."""

import copy
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from api.src.config import Settings
from api.src.dependencies import get_password_hasher, get_user_repository
from api.src.errors import ConflictError
from api.src.main import create_app
from api.src.repositories.user_repo import DETAIL_PROJECTION, LIST_PROJECTION


# ============================================================================
# TEST DOUBLES
# ============================================================================


class FakePasswordHasher:
    """Reversible stand-in for bcrypt; fast and deterministic."""

    def __init__(self):
        self.calls: List[str] = []

    def hash(self, password: str) -> str:
        self.calls.append(password)
        return f"hashed::{password}"


class InMemoryUserRepository:
    """Mirrors UserRepository's contract over a plain list of documents."""

    UNIQUE_KEYS = ("userId", "username")

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []

    def _find(self, user_id: int) -> Optional[Dict[str, Any]]:
        for document in self.documents:
            if document["userId"] == user_id:
                return document
        return None

    def _collides(self, candidate: Dict[str, Any], ignore: Optional[Dict[str, Any]] = None) -> bool:
        for document in self.documents:
            if document is ignore:
                continue
            if any(key in candidate and document.get(key) == candidate[key] for key in self.UNIQUE_KEYS):
                return True
        return False

    @staticmethod
    def _detail(document: Dict[str, Any]) -> Dict[str, Any]:
        hidden = {key for key, value in DETAIL_PROJECTION.items() if not value}
        return {key: copy.deepcopy(value) for key, value in document.items() if key not in hidden}

    async def create_user(self, document: Dict[str, Any]) -> Dict[str, Any]:
        if self._collides(document):
            raise ConflictError()
        self.documents.append(copy.deepcopy(document))
        return document

    async def list_users(self) -> List[Dict[str, Any]]:
        shown = [key for key, value in LIST_PROJECTION.items() if value]
        return [
            {key: copy.deepcopy(document[key]) for key in shown if key in document}
            for document in self.documents
        ]

    async def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        document = self._find(user_id)
        return None if document is None else self._detail(document)

    async def update_user(self, user_id: int, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        document = self._find(user_id)
        if document is None:
            return None
        if self._collides(changes, ignore=document):
            raise ConflictError()
        document.update(copy.deepcopy(changes))
        return self._detail(document)

    async def delete_user(self, user_id: int) -> bool:
        document = self._find(user_id)
        if document is None:
            return False
        self.documents.remove(document)
        return True

    async def add_order(self, user_id: int, order: Dict[str, Any]) -> bool:
        document = self._find(user_id)
        if document is None:
            return False
        document.setdefault("orders", []).append(copy.deepcopy(order))
        return True

    async def get_orders(self, user_id: int) -> Optional[List[Dict[str, Any]]]:
        document = self._find(user_id)
        if document is None:
            return None
        return copy.deepcopy(document.get("orders") or [])


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def user_payload() -> Dict[str, Any]:
    """A valid create-user body."""
    return {
        "userId": 1,
        "username": "Ann",
        "password": "x",
        "fullName": {"firstName": "A", "lastName": "B"},
        "age": 20,
        "email": "a@b.com",
        "isActive": True,
        "hobbies": ["chess"],
        "address": {"street": "S", "city": "C", "country": "D"},
    }


@pytest.fixture
def repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def password_hasher() -> FakePasswordHasher:
    return FakePasswordHasher()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(environment="test", log_format="text", api_prefix="/api/users")


@pytest.fixture
def api_app(test_settings, repository, password_hasher):
    """Application wired to the in-memory repository; lifespan is not run."""
    app = create_app(test_settings, metrics_registry=CollectorRegistry())
    app.dependency_overrides[get_user_repository] = lambda: repository
    app.dependency_overrides[get_password_hasher] = lambda: password_hasher
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app) -> TestClient:
    return TestClient(api_app)

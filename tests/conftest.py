"""Shared pytest fixtures.

Services run against an in-memory stand-in for the asynchronous PyMongo
collection API. It supports the query and update operators the services use
and enforces unique indexes (including partial ones) the way MongoDB does,
raising DuplicateKeyError. Every operation yields to the event loop first so
concurrent callers interleave between, never inside, store operations.
"""

import asyncio
import copy
from types import SimpleNamespace
from typing import Any
from uuid import UUID

import pytest
import pytest_asyncio
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from tourguide.app import App
from tourguide.config import Config
from tourguide.core.core import Core, Services
from tourguide.core.modules.guide.models import Guide
from tourguide.core.modules.user.models import User

_MISSING = object()


def _compare(op: str, value: Any, operand: Any) -> bool:
    if op == "$exists":
        return (value is not _MISSING) == bool(operand)
    if op == "$type":
        return operand == "string" and isinstance(value, str)
    if op == "$ne":
        return not _equals(value, operand)
    if op == "$in":
        return any(_equals(value, item) for item in operand)
    if value is _MISSING or value is None:
        return False
    if op == "$gt":
        return value > operand
    if op == "$gte":
        return value >= operand
    if op == "$lt":
        return value < operand
    if op == "$lte":
        return value <= operand
    raise NotImplementedError(op)


def _equals(value: Any, operand: Any) -> bool:
    if operand is None:
        return value is _MISSING or value is None
    return value == operand


def matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
            continue
        value = doc.get(key, _MISSING)
        if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
            if not all(_compare(op, value, operand) for op, operand in condition.items()):
                return False
        elif not _equals(value, condition):
            return False
    return True


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    def __aiter__(self) -> "FakeCursor":
        return self

    async def __anext__(self) -> dict[str, Any]:
        await asyncio.sleep(0)
        if not self._docs:
            raise StopAsyncIteration
        return self._docs.pop(0)


class FakeCollection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.docs: list[dict[str, Any]] = []
        self.indexes: list[dict[str, Any]] = [{"key": [("_id", 1)], "unique": True, "name": "_id_"}]

    async def create_index(self, keys: list[tuple[str, int]], **kwargs: Any) -> str:
        await asyncio.sleep(0)
        name = kwargs.get("name") or "_".join(f"{field}_{direction}" for field, direction in keys)
        if not any(index["name"] == name for index in self.indexes):
            self.indexes.append({"key": keys, "name": name, **kwargs})
        return name

    def index(self, name: str) -> dict[str, Any] | None:
        return next((index for index in self.indexes if index["name"] == name), None)

    def _check_unique(self, candidate: dict[str, Any], ignore: dict[str, Any] | None = None) -> None:
        for index in self.indexes:
            if not index.get("unique"):
                continue
            field = index["key"][0][0]
            partial = index.get("partialFilterExpression")
            if partial and not matches(candidate, partial):
                continue
            value = candidate.get(field)
            for other in self.docs:
                if other is ignore:
                    continue
                if partial and not matches(other, partial):
                    continue
                if other.get(field) == value:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error collection: {self.name} index: {index['name']}",
                        11000,
                        {"keyPattern": {field: 1}, "keyValue": {field: value}},
                    )

    @staticmethod
    def _apply(doc: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
        updated = copy.deepcopy(doc)
        for op, fields in update.items():
            if op != "$set":
                raise NotImplementedError(op)
            updated.update(copy.deepcopy(fields))
        return updated

    def _update(self, doc: dict[str, Any], update: dict[str, Any]) -> bool:
        updated = self._apply(doc, update)
        self._check_unique(updated, ignore=doc)
        changed = updated != doc
        doc.clear()
        doc.update(updated)
        return changed

    async def insert_one(self, document: dict[str, Any]) -> SimpleNamespace:
        await asyncio.sleep(0)
        self._check_unique(document)
        self.docs.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(self, query: dict[str, Any] | None = None, projection: Any = None) -> dict[str, Any] | None:
        await asyncio.sleep(0)
        doc = next((d for d in self.docs if matches(d, query or {})), None)
        return copy.deepcopy(doc) if doc is not None else None

    def find(self, query: dict[str, Any] | None = None, projection: Any = None) -> FakeCursor:
        return FakeCursor([copy.deepcopy(d) for d in self.docs if matches(d, query or {})])

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        await asyncio.sleep(0)
        doc = next((d for d in self.docs if matches(d, query)), None)
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        changed = self._update(doc, update)
        return SimpleNamespace(matched_count=1, modified_count=int(changed))

    async def update_many(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        await asyncio.sleep(0)
        matched = [d for d in self.docs if matches(d, query)]
        modified = sum(self._update(doc, update) for doc in matched)
        return SimpleNamespace(matched_count=len(matched), modified_count=modified)

    async def find_one_and_update(
        self,
        query: dict[str, Any],
        update: dict[str, Any],
        return_document: bool = ReturnDocument.BEFORE,
    ) -> dict[str, Any] | None:
        await asyncio.sleep(0)
        doc = next((d for d in self.docs if matches(d, query)), None)
        if doc is None:
            return None
        before = copy.deepcopy(doc)
        self._update(doc, update)
        return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        await asyncio.sleep(0)
        for i, doc in enumerate(self.docs):
            if matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query: dict[str, Any]) -> SimpleNamespace:
        await asyncio.sleep(0)
        kept = [d for d in self.docs if not matches(d, query)]
        deleted = len(self.docs) - len(kept)
        self.docs = kept
        return SimpleNamespace(deleted_count=deleted)

    async def count_documents(self, query: dict[str, Any]) -> int:
        await asyncio.sleep(0)
        return sum(1 for d in self.docs if matches(d, query))


class FakeDatabase:
    name = "tourguide_test"

    def __init__(self) -> None:
        self._collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]

    def __getitem__(self, name: str) -> FakeCollection:
        return self.get_collection(name)


@pytest.fixture
def config():
    """Configuration for tests; no MongoDB server is contacted."""
    return Config(database_url="mongodb://localhost:27017/tourguide_test", secure_cookies=False)


@pytest.fixture
def database():
    return FakeDatabase()


@pytest_asyncio.fixture
async def core(config, database):
    """Core assembled over the in-memory database with all indexes created."""
    core = Core.__new__(Core)
    core.config = config
    core.database = database
    core.services = Services(database)
    core.services.set_core(core)
    await core.services.start_all()
    return core


@pytest_asyncio.fixture
async def user(database):
    """A user inserted directly, without password hashing."""
    user = User(
        id=UUID("87654321-4321-8765-4321-876543218765"),
        name="Test Traveler",
        username="traveler",
        email="traveler@example.com",
        password_hash="$2b$12$hashed_password_here",
    )
    await database["users"].insert_one(user.to_mongo())
    return user


@pytest_asyncio.fixture
async def guide(database):
    """A guide inserted directly, without password hashing."""
    guide = Guide(
        id=UUID("12345678-1234-5678-1234-567812345678"),
        name="Test Guide",
        email="guide@example.com",
        phone="+919800000000",
        password_hash="$2b$12$hashed_password_here",
        city="Jaipur",
    )
    await database["guides"].insert_one(guide.to_mongo())
    return guide


@pytest.fixture
def app(core):
    """App facade over the test core; lifespan is never entered."""
    app = App.__new__(App)
    app._core = core
    return app

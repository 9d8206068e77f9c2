import os

# Settings are read at import time, so the environment has to be in place first
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017/snapvault_test")
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "test-cloud")
os.environ.setdefault("CLOUDINARY_API_KEY", "test-key")
os.environ.setdefault("CLOUDINARY_API_SECRET", "test-secret")
os.environ.setdefault("ADMIN_PASSWORD", "letmein")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-token")

from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import DESCENDING

from snapvault.dependencies import get_repository
from snapvault.models import ImageCreate, ImageRecord
from snapvault.repository import CatalogRepository

ADMIN_HEADERS = {"Authorization": "Bearer test-admin-token"}


class FakeCursor:
    """Enough of a Motor cursor for find().sort() and async iteration."""

    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction):
        self._docs = sorted(self._docs, key=lambda d: d.get(key), reverse=direction == DESCENDING)
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """In-memory stand-in for an AsyncIOMotorCollection with equality filters."""

    def __init__(self):
        self.docs = []

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(k) == v for k, v in (query or {}).items())

    def find(self, query=None):
        return FakeCursor([dict(d) for d in self.docs if self._matches(d, query)])

    async def find_one(self, query):
        for doc in self.docs:
            if self._matches(doc, query):
                return dict(doc)
        return None

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if self._matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def update_one(self, query, update):
        for doc in self.docs:
            if self._matches(doc, query):
                for field, amount in update.get("$inc", {}).items():
                    doc[field] = doc.get(field, 0) + amount
                return SimpleNamespace(matched_count=1)
        return SimpleNamespace(matched_count=0)


def make_image(**overrides) -> ImageCreate:
    data = {
        "url": "https://res.cloudinary.com/test/image/upload/lake.jpg",
        "thumbnail_url": "https://res.cloudinary.com/test/image/upload/c_fill,h_400,w_400/lake.jpg",
        "delete_url": "snapvault/lake",
        "title": "Lake",
        "description": "A calm lake at dawn",
        "category": "Nature",
        "keywords": ["lake", "calm"],
        "slug": "lake-1",
        "author": "Ada",
        "created_at": 1_700_000_000_000,
    }
    data.update(overrides)
    return ImageCreate(**data)


def make_record(image_id: str, **overrides) -> ImageRecord:
    return ImageRecord(id=image_id, **make_image(**overrides).model_dump())


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def repository(collection):
    return CatalogRepository(collection)


@pytest.fixture
def client(repository):
    from snapvault.main import app

    app.dependency_overrides[get_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()

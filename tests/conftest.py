"""
Shared pytest fixtures.

The API is tested against an in-memory stand-in for a pymongo Database
that implements only the calls database.py makes, so no MongoDB server is
needed.
"""
import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

from main import create_app


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, keys):
        # Stable sorts applied from the last key to the first give a multi-key order
        for field, direction in reversed(keys):
            self._docs.sort(key=lambda d: d[field], reverse=direction < 0)
        return self

    def __iter__(self):
        return iter(self._docs)


class FakeCollection:
    def __init__(self, fail=False):
        self.docs = {}
        self.fail = fail

    def _check(self):
        if self.fail:
            raise PyMongoError("connection refused")

    def find(self, filter_dict):
        self._check()
        return FakeCursor([copy.deepcopy(d) for d in self.docs.values()])

    def find_one(self, filter_dict):
        self._check()
        doc = self.docs.get(filter_dict["_id"])
        return copy.deepcopy(doc) if doc is not None else None

    def insert_one(self, doc):
        self._check()
        doc.setdefault("_id", ObjectId())
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def find_one_and_update(self, filter_dict, update, return_document=None):
        self._check()
        doc = self.docs.get(filter_dict["_id"])
        if doc is None:
            return None
        doc.update(copy.deepcopy(update["$set"]))
        return copy.deepcopy(doc)

    def delete_one(self, filter_dict):
        self._check()
        removed = self.docs.pop(filter_dict["_id"], None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)


class FakeDatabase:
    name = "crowdfunding_test"

    def __init__(self, fail=False):
        self.fail = fail
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(fail=self.fail)
        return self.collections[name]

    def command(self, name):
        if self.fail:
            raise PyMongoError("connection refused")
        return {"ok": 1.0}

    def list_collection_names(self):
        if self.fail:
            raise PyMongoError("connection refused")
        return [name for name, coll in self.collections.items() if coll.docs]


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def broken_db():
    """A database whose every call fails like a lost connection"""
    return FakeDatabase(fail=True)


@pytest.fixture
def client(db):
    return TestClient(create_app(db))


@pytest.fixture
def broken_client(broken_db):
    return TestClient(create_app(broken_db))


@pytest.fixture
def campaign_payload():
    return {"title": "T", "description": "D", "goal": 1000}

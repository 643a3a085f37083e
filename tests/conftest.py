"""Shared fixtures: in-memory MongoDB, a temporary blob area, seeded projects and users."""

from __future__ import annotations

import asyncio

import pytest
from mongomock_motor import AsyncMongoMockClient

from contenthub.core.settings import settings
from contenthub.db import mongo

PROJECT_ID = "project-alpha"
OTHER_PROJECT_ID = "project-beta"


async def _seed(database) -> None:
    await mongo.create_indexes()
    await database["projects"].insert_many([
        {"project_id": PROJECT_ID, "name": "Alpha"},
        {"project_id": OTHER_PROJECT_ID, "name": "Beta"},
    ])
    await database["users"].insert_many([
        {"username": "alice", "email": "alice@example.com", "role": "engineer"},
        {"username": "bob", "email": "bob@example.com", "role": "viewer"},
    ])


@pytest.fixture
def mongo_db(monkeypatch):
    """Fresh in-memory database wired into contenthub.db.mongo.db()."""
    database = AsyncMongoMockClient()["contenthub_test"]
    monkeypatch.setattr(mongo, "_db", database)
    monkeypatch.setattr(settings, "ITEM_LOCK_POLL_SECONDS", 0.001)
    asyncio.run(_seed(database))
    return database


@pytest.fixture
def storage_root(tmp_path, monkeypatch):
    """Blob area under the test's temporary directory."""
    root = tmp_path / "uploads"
    monkeypatch.setattr(settings, "STORAGE_ROOT", str(root))
    return root

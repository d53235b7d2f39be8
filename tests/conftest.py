"""Shared fixtures for the Ash & Aether test suite."""
from __future__ import annotations

import random
from typing import Any, Callable, Iterable

import pytest

from ash_aether.content.loader import load_default_content, load_raw_bundle


def sequence_rng(values: Iterable[float]) -> Callable[[], float]:
    """RNG stub returning the given values in order."""
    it = iter(values)
    return lambda: next(it)


@pytest.fixture
def raw_bundle() -> dict[str, list[Any]]:
    return load_raw_bundle()


@pytest.fixture
def content():
    return load_default_content()


@pytest.fixture
def session(content):
    from ash_aether.engine.session import GameSession

    return GameSession(content=content)


@pytest.fixture
def in_memory_db(tmp_path):
    from ash_aether.storage.database import Database

    db = Database(str(tmp_path / "test.db"))
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def kv_repo(in_memory_db):
    from ash_aether.storage.repos.kv_repo import KeyValueRepo

    return KeyValueRepo(in_memory_db)


@pytest.fixture
def save_slots(kv_repo):
    from ash_aether.storage.repos.save_slot_repo import SaveSlotRepo

    return SaveSlotRepo(kv_repo)


@pytest.fixture
def seeded_rng():
    return random.Random(42).random


@pytest.fixture
def make_rng():
    return sequence_rng

"""Tests for src/ash_aether/storage/repos/save_slot_repo.py."""
from __future__ import annotations

import json

import pytest

from ash_aether.models.save import SaveFile
from ash_aether.models.session import SessionSnapshot
from ash_aether.storage.repos.save_slot_repo import CORRUPTED, SLOT_PREFIX


def _save(cinders: int = 80) -> SaveFile:
    return SaveFile(timestamp="2000-01-01T00:00:00+00:00", session=SessionSnapshot(cinders=cinders))


class TestSaveAndLoad:
    def test_empty_slot(self, save_slots):
        assert save_slots.load(0) is None

    def test_round_trip(self, save_slots):
        written = save_slots.save(1, _save(cinders=42))
        loaded = save_slots.load(1)
        assert loaded == written
        assert loaded.session.cinders == 42

    def test_save_stamps_timestamp(self, save_slots):
        original = _save()
        written = save_slots.save(0, original)
        assert written.timestamp != original.timestamp
        assert original.timestamp == "2000-01-01T00:00:00+00:00"

    def test_session_round_trip(self, save_slots, session):
        session.add_cinders(15)
        save_slots.save(2, session.to_save_file())
        loaded = save_slots.load(2)
        assert loaded.session.cinders == 95
        assert loaded.session.inventory == session.serialize().inventory

    def test_legacy_payload_is_migrated(self, save_slots, kv_repo):
        legacy = {
            "saveVersion": 1,
            "timestamp": "1999-12-31T00:00:00+00:00",
            "player": {"level": 2, "hp": 50, "max_hp": 106, "cinders": 12},
            "inventory": {"width": 6, "height": 8, "slots": [], "quickbar": [None] * 8},
            "quests": {"quests": [], "flags": {}},
            "world_flags": {},
        }
        kv_repo.set(f"{SLOT_PREFIX}-0", json.dumps(legacy))
        loaded = save_slots.load(0)
        assert loaded.save_version == 3
        assert loaded.session.player.stamina == 100
        assert loaded.session.cinders == 12

    def test_corrupted_payload_raises(self, save_slots, kv_repo):
        kv_repo.set(f"{SLOT_PREFIX}-0", "{not json")
        with pytest.raises(ValueError):
            save_slots.load(0)

    def test_clear(self, save_slots):
        save_slots.save(0, _save())
        save_slots.clear(0)
        assert save_slots.load(0) is None


class TestSlotIndex:
    @pytest.mark.parametrize("slot", [-1, 3, True, "0", 1.0])
    def test_invalid_slot(self, save_slots, slot):
        with pytest.raises(ValueError, match="Save slot index is out of range"):
            save_slots.load(slot)
        with pytest.raises(ValueError, match="out of range"):
            save_slots.save(slot, _save())

    def test_max_slots(self, save_slots):
        assert save_slots.get_max_slots() == 3


class TestListSlots:
    def test_lists_every_slot(self, save_slots, kv_repo):
        written = save_slots.save(0, _save())
        kv_repo.set(f"{SLOT_PREFIX}-2", json.dumps({"saveVersion": 99}))

        slots = save_slots.list_slots()

        assert [(s.slot, s.exists) for s in slots] == [(0, True), (1, False), (2, True)]
        assert slots[0].timestamp == written.timestamp
        assert slots[1].timestamp is None
        assert slots[2].timestamp == CORRUPTED

    def test_bad_json_is_corrupted(self, save_slots, kv_repo):
        kv_repo.set(f"{SLOT_PREFIX}-1", "garbage")
        assert save_slots.list_slots()[1].timestamp == CORRUPTED

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from ash_aether.mechanics.save_migrations import migrate_save
from ash_aether.models.save import SaveFile
from ash_aether.storage.repos.kv_repo import KeyValueRepo
from ash_aether.utils import utc_now_iso

logger = logging.getLogger(__name__)

SLOT_COUNT = 3
SLOT_PREFIX = "ash-aether-save-slot"
CORRUPTED = "corrupted"


@dataclass
class SaveSlotInfo:
    slot: int
    exists: bool
    timestamp: str | None = None


class SaveSlotRepo:
    """Numbered save slots; payloads are migrated to the current format on load."""

    def __init__(self, store: KeyValueRepo) -> None:
        self.store = store

    def get_max_slots(self) -> int:
        return SLOT_COUNT

    def load(self, slot: int) -> SaveFile | None:
        """Read and migrate a slot. Raises ValueError on a corrupted payload."""
        self._check_slot(slot)
        payload = self.store.get(self._slot_key(slot))
        if not payload:
            return None
        save_file = migrate_save(json.loads(payload))
        logger.info("Loaded save slot %d (%s)", slot, save_file.timestamp)
        return save_file

    def save(self, slot: int, save_file: SaveFile) -> SaveFile:
        """Write a slot, stamping it with the current time. Returns what was written."""
        self._check_slot(slot)
        stamped = save_file.model_copy(update={"timestamp": utc_now_iso()})
        self.store.set(self._slot_key(slot), json.dumps(stamped.to_payload()))
        logger.info("Wrote save slot %d", slot)
        return stamped

    def clear(self, slot: int) -> None:
        self._check_slot(slot)
        self.store.delete(self._slot_key(slot))

    def list_slots(self) -> list[SaveSlotInfo]:
        """Every slot with its timestamp; an unreadable slot reports 'corrupted'."""
        slots = []
        for slot in range(SLOT_COUNT):
            payload = self.store.get(self._slot_key(slot))
            if not payload:
                slots.append(SaveSlotInfo(slot=slot, exists=False))
                continue
            try:
                timestamp = migrate_save(json.loads(payload)).timestamp
            except (json.JSONDecodeError, ValueError) as exc:
                logger.warning("Save slot %d is corrupted: %s", slot, exc)
                timestamp = CORRUPTED
            slots.append(SaveSlotInfo(slot=slot, exists=True, timestamp=timestamp))
        return slots

    def _slot_key(self, slot: int) -> str:
        return f"{SLOT_PREFIX}-{slot}"

    def _check_slot(self, slot: int) -> None:
        if not isinstance(slot, int) or isinstance(slot, bool) or not 0 <= slot < SLOT_COUNT:
            raise ValueError(f"Save slot index is out of range: {slot}")

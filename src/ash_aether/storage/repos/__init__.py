from __future__ import annotations

from ash_aether.storage.repos.kv_repo import KeyValueRepo
from ash_aether.storage.repos.save_slot_repo import SaveSlotInfo, SaveSlotRepo

__all__ = [
    "KeyValueRepo",
    "SaveSlotInfo",
    "SaveSlotRepo",
]

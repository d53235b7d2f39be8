"""Application bootstrap — wires config, storage, content and sessions together."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ash_aether.content.loader import load_default_content, load_raw_bundle
from ash_aether.content.validator import ContentValidationResult, validate_content
from ash_aether.engine.session import GameSession
from ash_aether.storage.repos.save_slot_repo import SaveSlotInfo

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config.toml"


def _load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load config.toml (project root unless a path is given); missing file means defaults."""
    import tomllib

    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


class GameApp:
    """Owns the lazily created database, repos and content for one process."""

    def __init__(self, config_path: Path | str | None = None, config: dict[str, Any] | None = None):
        self.config = config if config is not None else _load_config(config_path)

        # Lazy-initialized components
        self._db = None
        self._kv = None
        self._save_slots = None

    # -- Component initialization (lazy) --

    @property
    def db(self):
        if self._db is None:
            from ash_aether.storage.database import Database

            db_path = self.config.get("storage", {}).get("db_path", "saves/ash_aether.db")
            self._db = Database(db_path)
            self._db.initialize()
        return self._db

    @property
    def kv(self):
        if self._kv is None:
            from ash_aether.storage.repos.kv_repo import KeyValueRepo

            self._kv = KeyValueRepo(self.db)
        return self._kv

    @property
    def save_slots(self):
        if self._save_slots is None:
            from ash_aether.storage.repos.save_slot_repo import SaveSlotRepo

            self._save_slots = SaveSlotRepo(self.kv)
        return self._save_slots

    @property
    def starting_cinders(self) -> int:
        return int(self.config.get("session", {}).get("starting_cinders", 80))

    # -- Content --

    def validate_content(self, content_dir: Path | str | None = None) -> ContentValidationResult:
        return validate_content(load_raw_bundle(content_dir))

    # -- Sessions and saves --

    def new_game(self, slot: int) -> GameSession:
        """Start a fresh session and write it to ``slot``."""
        session = GameSession(content=load_default_content(), starting_cinders=self.starting_cinders)
        self.save_game(slot, session)
        logger.info("New game written to slot %d", slot)
        return session

    def load_game(self, slot: int) -> GameSession | None:
        save_file = self.save_slots.load(slot)
        if save_file is None:
            return None
        return GameSession.from_save_file(save_file, content=load_default_content())

    def save_game(self, slot: int, session: GameSession) -> None:
        self.save_slots.save(slot, session.to_save_file())

    def list_saves(self) -> list[SaveSlotInfo]:
        return self.save_slots.list_slots()

    def clear_save(self, slot: int) -> None:
        self.save_slots.clear(slot)

    def close(self) -> None:
        if self._db is not None:
            self._db.close()
            self._db = None
            self._kv = None
            self._save_slots = None

"""Tests for src/ash_aether/app.py."""
from __future__ import annotations

import pytest

from ash_aether.app import GameApp, _load_config


@pytest.fixture
def game_app(tmp_path):
    app = GameApp(config={
        "storage": {"db_path": str(tmp_path / "app.db")},
        "session": {"starting_cinders": 55},
    })
    yield app
    app.close()


class TestConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert _load_config(tmp_path / "absent.toml") == {}

    def test_reads_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[session]\nstarting_cinders = 10\n', encoding="utf-8")
        assert GameApp(config_path=path).starting_cinders == 10

    def test_default_starting_cinders(self):
        assert GameApp(config={}).starting_cinders == 80


class TestGameApp:
    def test_validate_default_content(self, game_app):
        assert game_app.validate_content().ok

    def test_new_and_load(self, game_app):
        session = game_app.new_game(0)
        assert session.get_cinders() == 55
        loaded = game_app.load_game(0)
        assert loaded.get_cinders() == 55
        assert loaded.get_events() == session.get_events()

    def test_load_empty_slot(self, game_app):
        assert game_app.load_game(1) is None

    def test_save_and_list(self, game_app):
        session = game_app.new_game(0)
        session.add_cinders(5)
        game_app.save_game(2, session)
        infos = game_app.list_saves()
        assert [i.exists for i in infos] == [True, False, True]
        assert game_app.load_game(2).get_cinders() == 60

    def test_clear_save(self, game_app):
        game_app.new_game(0)
        game_app.clear_save(0)
        assert game_app.load_game(0) is None

    def test_close_resets_components(self, game_app):
        db = game_app.db
        game_app.close()
        assert game_app.db is not db

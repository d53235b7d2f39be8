"""Tests for src/ash_aether/mechanics/loot.py."""
from __future__ import annotations

from ash_aether.mechanics.loot import LootDrop, LootSystem
from ash_aether.models.content import LootTableData


def _system() -> LootSystem:
    table = LootTableData.model_validate({
        "id": "loot_test",
        "entries": [
            {"item_id": "ore", "chance": 0.5, "min_amount": 1, "max_amount": 3},
            {"item_id": "gem", "chance": 0.1, "min_amount": 2, "max_amount": 2},
        ],
    })
    return LootSystem([table])


class TestRoll:
    def test_unknown_table_drops_nothing(self, make_rng):
        assert _system().roll("ghost", make_rng([])) == []

    def test_entry_skipped_when_roll_exceeds_chance(self, make_rng):
        assert _system().roll("loot_test", make_rng([0.9, 0.9])) == []

    def test_roll_equal_to_chance_drops(self, make_rng):
        drops = _system().roll("loot_test", make_rng([0.5, 0.0, 0.95]))
        assert drops == [LootDrop(item_id="ore", amount=1)]

    def test_amount_spans_inclusive_range(self, make_rng):
        assert _system().roll("loot_test", make_rng([0.1, 0.99, 1.0])) == [LootDrop("ore", 3)]
        assert _system().roll("loot_test", make_rng([0.1, 0.4, 1.0])) == [LootDrop("ore", 2)]

    def test_fixed_amount_uses_no_extra_roll(self, make_rng):
        drops = _system().roll("loot_test", make_rng([0.9, 0.05]))
        assert drops == [LootDrop(item_id="gem", amount=2)]

    def test_amounts_stay_in_range(self, seeded_rng):
        system = _system()
        for _ in range(200):
            for drop in system.roll("loot_test", seeded_rng):
                if drop.item_id == "ore":
                    assert 1 <= drop.amount <= 3
                else:
                    assert drop.amount == 2

    def test_default_tables_roll(self, content, seeded_rng):
        system = LootSystem(content.loot_tables)
        item_ids = {i.id for i in content.items}
        for table in content.loot_tables:
            for drop in system.roll(table.id, seeded_rng):
                assert drop.item_id in item_ids

"""Tests for src/ash_aether/engine/session.py."""
from __future__ import annotations

import pytest

from ash_aether.engine.events import EventEmitter, SessionEvent
from ash_aether.engine.session import EVENT_LOG_LIMIT, GameSession
from ash_aether.models.content import ObjectiveType
from ash_aether.models.inventory import InventoryTag
from ash_aether.models.quest import QuestStatus
from ash_aether.models.session import (
    RewardItemGrant,
    RewardPackage,
    SessionSnapshot,
    WeaponMode,
)


def _always(value: float):
    return lambda: value


def _complete_anchordust(session: GameSession) -> None:
    session.set_flag("talked_to_archivist", True)
    session.start_quest("main_find_anchordust")
    session.complete_quest("main_find_anchordust")


class TestNewSession:
    def test_starting_state(self, session):
        assert session.get_cinders() == 80
        assert session.count_item("consumable_heal_small") == 4
        assert session.count_item("material_cloudleaf") == 6
        assert session.count_item("material_iron_ore") == 8
        assert session.count_item("key_anchor_dust") == 1
        assert session.get_stats().level == 1
        assert session.get_regions().unlocked == ["cinderhaven", "gloamwood"]

    def test_starting_cinders_override(self, content):
        assert GameSession(content=content, starting_cinders=120).get_cinders() == 120

    def test_deploy_message_is_newest(self, session):
        events = session.get_events()
        assert events[0] == "Warden deployed to Cinderhaven fringe."
        assert "Received Cloudleaf Tincture x4." in events

    def test_quickbar_is_seeded(self, session):
        quickbar = session.get_hud_view_model().quickbar
        assert quickbar[:4] == [
            "1: Cloudleaf Tincture x4",
            "2: Iron Ore x8",
            "3: Cloudleaf x6",
            "4: --",
        ]
        assert len(quickbar) == 8

    def test_all_quests_start_locked(self, session):
        assert {e.status for e in session.get_quest_entries()} == {QuestStatus.LOCKED}
        assert session.get_quest_hint() == "No active objectives. Explore Cinderhaven for leads."

    def test_default_content_is_loaded(self):
        assert GameSession().get_item("material_iron_ore").name == "Iron Ore"


class TestStats:
    def test_award_xp_levels_up_and_grants_perk_points(self, session):
        assert session.award_xp(250) == 2
        stats = session.get_stats()
        assert stats.level == 3
        assert session.perks.get_points() == 2
        assert session.get_events()[:2] == ["Level up! Reached 3.", "Level up! Reached 2."]
        assert stats.attack == 16

    def test_heal_caps_at_max(self, session):
        session.receive_damage(30)
        session.heal(500)
        assert session.get_stats().hp == 100

    def test_receive_damage_after_defense(self, session):
        assert session.receive_damage(20) == 19
        assert session.get_stats().hp == 81

    def test_blocked_damage(self, session):
        assert session.receive_damage(20, blocked=True) == 10

    def test_minimum_damage_is_one(self, session):
        assert session.receive_damage(0) == 1

    def test_death(self, session):
        session.receive_damage(500)
        assert session.get_stats().hp == 0
        assert not session.is_alive()
        assert session.get_events()[0] == "Warden has fallen."

    def test_stamina_spend_and_regen(self, session):
        assert session.spend_stamina(30)
        assert not session.spend_stamina(200)
        assert session.get_stats().stamina == 70
        session.regen_stamina(1.0)
        assert session.get_stats().stamina == 82
        session.regen_stamina(60)
        assert session.get_stats().stamina == 100

    def test_rest_restores_everything(self, session):
        session.receive_damage(40)
        session.spend_stamina(50)
        session.rest_at_checkpoint()
        stats = session.get_stats()
        assert (stats.hp, stats.stamina) == (stats.max_hp, stats.max_stamina)

    def test_get_stats_returns_copy(self, session):
        session.get_stats().hp = 1
        assert session.get_stats().hp == 100


class TestPerks:
    def test_unlock_perk_updates_derived_stats(self, session):
        session.award_xp(100)
        session.unlock_perk("warden_iron_skin")
        assert session.get_stats().defense == 8
        assert session.get_perk_effect("defense") == 2
        assert session.get_events()[0] == "Perk unlocked: Iron Skin (rank 1)."

    def test_stamina_perk_announces_new_cap(self, session):
        session.perks.add_points(1)
        session.unlock_perk("warden_deep_lungs")
        assert session.get_stats().max_stamina == 110
        assert "Stamina capacity adjusted to 110." in session.get_events()

    def test_no_points(self, session):
        with pytest.raises(ValueError, match="Not enough perk points"):
            session.unlock_perk("warden_iron_skin")


class TestItemsAndCinders:
    def test_spend_cinders(self, session):
        assert session.spend_cinders(30)
        assert not session.spend_cinders(60)
        assert session.get_cinders() == 50

    def test_add_cinders_ignores_negative(self, session):
        session.add_cinders(-10)
        assert session.get_cinders() == 80

    def test_unknown_item_defaults(self, session):
        assert session.add_item("ghost_item", 2) == 0
        assert session.get_events()[0] == "Received ghost_item x2."
        assert session.get_item_value("ghost_item") == 1
        assert session.can_sell_item("ghost_item")
        entry = next(e for e in session.get_inventory_entries() if e.item_id == "ghost_item")
        assert entry.tags == [InventoryTag.MATERIAL]

    def test_item_tags_follow_type(self, session):
        session.add_item("weapon_pilgrim_bow", 1)
        entry = next(e for e in session.get_inventory_entries() if e.item_id == "weapon_pilgrim_bow")
        assert entry.tags == [InventoryTag.GEAR]

    def test_unsellable_types(self, session):
        assert not session.can_sell_item("key_anchor_dust")
        assert not session.can_sell_item("quest_archive_ledger")
        assert session.can_sell_item("material_iron_ore")

    def test_add_item_overflow(self, session):
        free = sum(1 for e in session.get_inventory_entries() if e.item_id is None)
        assert session.add_item("weapon_pilgrim_bow", free + 2) == 2

    def test_remove_item_emits_change(self, session):
        seen = []
        session.events.subscribe(SessionEvent.INVENTORY_CHANGED, seen.append)
        assert session.remove_item("material_iron_ore", 3) == 3
        assert seen[0].get("delta") == -3

    def test_inventory_entries_cover_every_slot(self, session):
        entries = session.get_inventory_entries()
        assert len(entries) == 48
        assert entries[0].item_id == "consumable_heal_small"
        assert entries[0].amount == 4
        assert entries[-1].item_id is None

    def test_apply_reward(self, session):
        session.apply_reward(RewardPackage(
            cinders=20,
            xp=10,
            reputation={"pilgrims": 4},
            items=[RewardItemGrant(item_id="material_marsh_resin", amount=3)],
        ))
        assert session.get_cinders() == 100
        assert session.get_stats().xp == 10
        assert session.get_reputation("pilgrims") == 4
        assert session.count_item("material_marsh_resin") == 3

    def test_zero_amount_reward_item_takes_no_slot(self, session):
        before = [s.item_id if s else None for s in session.inventory.get_slots()]
        session.apply_reward(RewardPackage(
            items=[RewardItemGrant(item_id="material_marsh_resin", amount=0)],
        ))
        assert [s.item_id if s else None for s in session.inventory.get_slots()] == before
        assert session.count_item("material_marsh_resin") == 0


class TestEquipmentAndWorld:
    def test_weapon_mode(self, session):
        session.set_weapon_mode("bow")
        assert session.get_weapon_mode() == WeaponMode.BOW
        assert session.get_hud_view_model().active_weapon_mode == WeaponMode.BOW
        with pytest.raises(ValueError):
            session.set_weapon_mode("flail")

    def test_upgrade_level_is_clamped(self, session):
        session.set_equipment_upgrade_level("weapon", 9)
        assert session.get_equipment_upgrades().weapon == 5
        assert session.get_events()[0] == "WEAPON upgraded to +5."

    def test_unknown_upgrade_target(self, session):
        with pytest.raises(ValueError, match="Unknown upgrade target helmet"):
            session.set_equipment_upgrade_level("helmet", 1)

    def test_non_boolean_flags(self, session):
        session.set_flag("visits", 3)
        assert session.get_flag("visits") == 3
        assert session.get_flag("unset") is None
        assert session.quests.get_flag("visits") is False

    def test_reputation_log(self, session):
        session.add_reputation("foundry", 5)
        session.add_reputation("foundry", -2)
        assert session.get_reputation("foundry") == 3
        assert session.get_events()[:2] == ["foundry reputation -2.", "foundry reputation +5."]

    def test_discover_region_awards_xp_once(self, session):
        session.discover_region("ember_quarry")
        session.discover_region("ember_quarry")
        assert session.get_stats().xp == 20
        assert "ember_quarry" in session.get_regions().discovered

    def test_unlock_region_emits_once(self, session):
        seen = []
        session.events.subscribe(SessionEvent.REGION_UNLOCKED, seen.append)
        session.unlock_region("sunken_marsh")
        session.unlock_region("sunken_marsh")
        assert [e.get("region_id") for e in seen] == ["sunken_marsh"]

    def test_shop_state_is_copied(self, session):
        state = session.get_shop_runtime_state()
        state.stock_by_listing_id["heal_tonic"] = 1
        assert session.get_shop_runtime_state().stock_by_listing_id == {}
        session.set_shop_runtime_state(state)
        assert session.get_shop_runtime_state().stock_by_listing_id == {"heal_tonic": 1}


class TestQuests:
    def test_flag_makes_quest_available(self, session):
        session.set_flag("talked_to_archivist", True)
        assert session.get_quest_status("main_find_anchordust") == QuestStatus.AVAILABLE
        assert session.get_quest_hint() == "Dust for the Forge: COLLECT: key_anchor_dust (0/1)"

    def test_start_requires_available(self, session):
        session.start_quest("main_find_anchordust")
        assert session.get_quest_status("main_find_anchordust") == QuestStatus.LOCKED

    def test_collect_progress_from_add_item(self, session):
        session.set_flag("talked_to_archivist", True)
        session.start_quest("side_herbal_supplies")
        session.add_item("material_cloudleaf", 3)
        entry = next(e for e in session.get_quest_entries() if e.id == "side_herbal_supplies")
        assert entry.objectives[0].progress == 3

        session.add_item("material_cloudleaf", 5)
        assert session.get_quest_status("side_herbal_supplies") == QuestStatus.COMPLETED
        assert session.get_cinders() == 105
        assert session.get_reputation("pilgrims") == 3
        assert session.count_item("consumable_heal_small") == 6
        assert "Quest complete: Herbal Supplies." in session.get_events()

    def test_complete_quest_pays_rewards_and_unlocks_followups(self, session):
        _complete_anchordust(session)
        assert session.get_quest_status("main_find_anchordust") == QuestStatus.COMPLETED
        assert session.get_cinders() == 140
        assert session.get_stats().xp == 80
        assert session.count_item("consumable_stamina_vial") == 1
        assert session.get_reputation("foundry") == 5
        assert session.get_flag("gate_gloamwood_unlocked") is True
        assert session.get_quest_status("main_hollow_hart") == QuestStatus.AVAILABLE
        assert session.get_quest_status("side_quarry_supply") == QuestStatus.AVAILABLE

    def test_completion_event_order(self, session):
        seen = []
        for event_type in (SessionEvent.OBJECTIVE_PROGRESSED, SessionEvent.QUEST_COMPLETED):
            session.events.subscribe(event_type, lambda e: seen.append((e.type, e.get("quest_id"))))
        _complete_anchordust(session)
        assert seen[-2:] == [
            (SessionEvent.OBJECTIVE_PROGRESSED, "main_find_anchordust"),
            (SessionEvent.QUEST_COMPLETED, "main_find_anchordust"),
        ]

    def test_complete_requires_active(self, session):
        session.set_flag("talked_to_archivist", True)
        session.complete_quest("main_find_anchordust")
        assert session.get_quest_status("main_find_anchordust") == QuestStatus.AVAILABLE

    def test_kill_and_zone_objectives(self, session):
        _complete_anchordust(session)
        session.start_quest("main_hollow_hart")
        session.discover_region("gloamwood")
        assert session.get_quest_status("main_hollow_hart") == QuestStatus.ACTIVE

        drops = session.defeat_enemy("hollow_hart", _always(0.0))

        assert [d.item_id for d in drops] == [
            "material_hart_antler", "key_anchor_dust", "consumable_ember_draught",
        ]
        assert session.get_quest_status("main_hollow_hart") == QuestStatus.COMPLETED
        assert "sunken_marsh" in session.get_regions().unlocked
        assert session.get_flag("hollow_hart_defeated") is True
        assert session.get_quest_status("bounty_marsh_leeches") == QuestStatus.AVAILABLE
        assert session.get_quest_status("exploration_lost_shrine") == QuestStatus.AVAILABLE
        assert session.count_item("key_anchor_dust") == 1 + 2 + 2

    def test_loot_counts_toward_collect(self, session):
        _complete_anchordust(session)
        session.start_quest("side_quarry_supply")
        session.defeat_enemy("quarry_golem", _always(0.0))
        entry = next(e for e in session.get_quest_entries() if e.id == "side_quarry_supply")
        progress = {o.id: o.progress for o in entry.objectives}
        assert progress == {"haul_ore": 2, "break_golems": 1}

    def test_unknown_enemy_drops_nothing(self, session):
        assert session.defeat_enemy("ghost", _always(0.0)) == []

    def test_record_progress_only_for_active(self, session):
        session.set_flag("talked_to_archivist", True)
        session.record_objective_progress(ObjectiveType.COLLECT, "material_cloudleaf", 5)
        assert session.get_quest_status("side_herbal_supplies") == QuestStatus.AVAILABLE

    def test_talk_objective(self, session):
        session.set_flag("talked_to_archivist", True)
        session.start_quest("main_find_anchordust")
        session.record_objective_progress("talk", "npc_rook")
        session.advance_quest_objective("main_find_anchordust", "loot_cache")
        assert session.get_quest_status("main_find_anchordust") == QuestStatus.COMPLETED

    def test_fail_quest(self, session):
        seen = []
        session.events.subscribe(SessionEvent.QUEST_FAILED, seen.append)
        session.set_flag("talked_to_archivist", True)
        session.fail_quest("side_herbal_supplies")
        assert session.get_quest_status("side_herbal_supplies") == QuestStatus.FAILED
        assert session.get_events()[0] == "Quest failed: Herbal Supplies."
        session.fail_quest("side_herbal_supplies")
        session.fail_quest("ghost")
        assert len(seen) == 1

    def test_fail_completed_is_ignored(self, session):
        _complete_anchordust(session)
        session.fail_quest("main_find_anchordust")
        assert session.get_quest_status("main_find_anchordust") == QuestStatus.COMPLETED


class TestEventLog:
    def test_newest_first_and_capped(self, session):
        for i in range(12):
            session.log(f"message {i}")
        events = session.get_events()
        assert len(events) == EVENT_LOG_LIMIT
        assert events[0] == "message 11"
        assert events[-1] == "message 4"

    def test_log_emits(self, session):
        seen = []
        session.events.subscribe(SessionEvent.LOG, lambda e: seen.append(e.get("message")))
        session.log("hello")
        assert seen == ["hello"]

    def test_shared_emitter(self, content):
        emitter = EventEmitter()
        seen = []
        emitter.subscribe(SessionEvent.LOG, seen.append)
        GameSession(content=content, events=emitter)
        assert seen


class TestHud:
    def test_hud_view_model(self, session):
        session.spend_stamina(29.5)
        hud = session.get_hud_view_model()
        assert hud.stamina == 71
        assert (hud.hp, hud.max_hp, hud.level, hud.cinders) == (100, 100, 1, 80)
        assert hud.events == session.get_events()

    def test_stamina_rounds_down_below_half(self, session):
        session.spend_stamina(29.6)
        assert session.get_hud_view_model().stamina == 70


class TestPersistence:
    def test_round_trip(self, session):
        _complete_anchordust(session)
        session.award_xp(50)
        session.set_flag("visits", 2)
        session.set_weapon_mode("spear")
        session.set_equipment_upgrade_level("armor", 2)

        restored = GameSession(session.serialize(), content=session.content)

        exclude = {"timestamp"}
        assert restored.serialize().model_dump(exclude=exclude) == session.serialize().model_dump(exclude=exclude)
        assert restored.get_events() == session.get_events()
        assert restored.get_quest_status("main_hollow_hart") == QuestStatus.AVAILABLE

    def test_restore_does_not_reseed(self, session):
        session.remove_item("material_iron_ore", 8)
        restored = GameSession(session.serialize(), content=session.content)
        assert restored.count_item("material_iron_ore") == 0
        assert restored.get_events() == session.get_events()

    def test_snapshot_is_not_aliased(self, session):
        snapshot = session.serialize()
        restored = GameSession(snapshot, content=session.content)
        restored.add_cinders(10)
        restored.add_item("material_iron_ore", 1)
        assert snapshot.cinders == 80
        assert snapshot.inventory == session.serialize().inventory

    def test_missing_factions_are_filled(self, content):
        restored = GameSession(SessionSnapshot(reputations={"foundry": 4}), content=content)
        assert restored.serialize().reputations == {"archivists": 0, "pilgrims": 0, "foundry": 4}

    def test_save_file(self, session):
        save = session.to_save_file()
        assert save.save_version == 3
        assert save.timestamp == save.session.timestamp
        restored = GameSession.from_save_file(save, content=session.content)
        assert restored.get_cinders() == session.get_cinders()

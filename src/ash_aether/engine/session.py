"""Game session — owns the canonical simulation state and wires the subsystems.

Gameplay collaborators (combat, economy, UI) mutate the world only through the
methods here. Quest progress from gameplay events fans out through
``record_objective_progress``; completed quests pay out their rewards before
the call returns, so several events in the same frame always see a consistent
quest state.
"""
from __future__ import annotations

import logging
import math
import random
from typing import Callable

from ash_aether.content.validator import ContentBundle
from ash_aether.engine.events import EventEmitter, SessionEvent
from ash_aether.mechanics import progression
from ash_aether.mechanics.dialogue import DialogueRuntime, DialogueStateAccess
from ash_aether.mechanics.inventory import Inventory
from ash_aether.mechanics.loot import LootDrop, LootSystem
from ash_aether.mechanics.perks import PerkTree
from ash_aether.mechanics.quests import QuestStateMachine
from ash_aether.models.content import (
    DialogueData,
    FlagValue,
    ItemData,
    ItemType,
    ObjectiveType,
    QuestData,
    QuestObjectiveData,
)
from ash_aether.models.inventory import InventoryTag
from ash_aether.models.quest import (
    FlagRequirement,
    QuestDefinition,
    QuestObjective,
    QuestPrerequisites,
    QuestStatus,
)
from ash_aether.models.save import SaveFile
from ash_aether.models.session import (
    EquipmentState,
    EquipmentUpgradeState,
    HudViewModel,
    InventoryUiEntry,
    PlayerStats,
    QuestUiEntry,
    QuestUiObjective,
    RegionState,
    RewardItemGrant,
    RewardPackage,
    SessionSnapshot,
    ShopRuntimeState,
    WeaponMode,
    default_reputations,
)

logger = logging.getLogger(__name__)

EVENT_LOG_LIMIT = 8
DEFAULT_MAX_STACK = 99

STARTING_INVENTORY: tuple[tuple[str, int], ...] = (
    ("consumable_heal_small", 4),
    ("material_cloudleaf", 6),
    ("material_iron_ore", 8),
    ("key_anchor_dust", 1),
)
STARTING_QUICKBAR: tuple[str, ...] = (
    "consumable_heal_small",
    "material_iron_ore",
    "material_cloudleaf",
)

_ITEM_TYPE_TAGS = {
    ItemType.QUEST: InventoryTag.QUEST,
    ItemType.CONSUMABLE: InventoryTag.CONSUMABLE,
    ItemType.MATERIAL: InventoryTag.MATERIAL,
    ItemType.KEY: InventoryTag.KEY,
}


def objective_description(objective: QuestObjectiveData) -> str:
    return f"{objective.type.value.upper()}: {objective.target_id}"


def to_quest_definition(quest: QuestData) -> QuestDefinition:
    prerequisites = quest.prerequisites
    return QuestDefinition(
        id=quest.id,
        title=quest.title,
        objectives=[
            QuestObjective(id=o.id, description=objective_description(o), required=o.required)
            for o in quest.objectives
        ],
        prerequisites=QuestPrerequisites(
            flags=[FlagRequirement(id=f.id, equals=f.equals) for f in prerequisites.flags],
            quests_completed=list(prerequisites.quests),
        ) if prerequisites else None,
    )


class GameSession:
    """One playthrough's live state."""

    def __init__(
        self,
        snapshot: SessionSnapshot | None = None,
        content: ContentBundle | None = None,
        events: EventEmitter | None = None,
        starting_cinders: int | None = None,
    ) -> None:
        if content is None:
            from ash_aether.content.loader import load_default_content
            content = load_default_content()
        self.content = content
        self.events = events or EventEmitter()

        restored = snapshot is not None
        state = snapshot.model_copy(deep=True) if snapshot is not None else SessionSnapshot()
        if not restored and starting_cinders is not None:
            state.cinders = starting_cinders

        self._items: dict[str, ItemData] = {i.id: i for i in content.items}
        self._quest_data: dict[str, QuestData] = {q.id: q for q in content.quests}
        self._dialogues: dict[str, DialogueData] = {d.conversation_id: d for d in content.dialogues}
        self.loot = LootSystem(content.loot_tables)

        self.inventory = Inventory.from_serialized(state.inventory) if restored else Inventory(6, 8, 8)
        self.quests = QuestStateMachine.from_serialized(state.quests) if restored else QuestStateMachine()
        self.perks = PerkTree(content.perks, state.perks if restored else None)

        self._stats: PlayerStats = state.player
        self._cinders = state.cinders
        self._equipment: EquipmentState = state.equipment
        self._upgrades: EquipmentUpgradeState = state.upgrades
        self._shop_state: ShopRuntimeState = state.shop
        self._flags: dict[str, FlagValue] = dict(state.world_flags)
        self._reputations: dict[str, int] = {**default_reputations(), **state.reputations}
        self._regions: RegionState = state.regions
        self._event_log: list[str] = list(state.event_log[:EVENT_LOG_LIMIT])

        for quest in content.quests:
            self.quests.register_quest(to_quest_definition(quest))
        for flag_id, value in self._flags.items():
            if isinstance(value, bool):
                self.quests.set_flag(flag_id, value)

        if not restored:
            self._seed_starting_inventory()
            self.log("Warden deployed to Cinderhaven fringe.")

        self._recompute_derived_stats(announce=False)
        self.quests.sync_availability()

    @classmethod
    def from_save_file(
        cls,
        save_file: SaveFile,
        content: ContentBundle | None = None,
        events: EventEmitter | None = None,
    ) -> GameSession:
        return cls(snapshot=save_file.session, content=content, events=events)

    # -- Stats --

    def get_stats(self) -> PlayerStats:
        return self._stats.model_copy()

    def is_alive(self) -> bool:
        return self._stats.hp > 0

    def award_xp(self, amount: int) -> int:
        """Grant XP; returns the number of levels gained."""
        levels = progression.apply_xp(self._stats, amount)
        if levels:
            self.perks.add_points(levels * progression.LEVEL_UP_PERK_POINTS)
            for level in range(self._stats.level - levels + 1, self._stats.level + 1):
                self.log(f"Level up! Reached {level}.")
        self._recompute_derived_stats()
        self.events.emit(SessionEvent.STATS_CHANGED)
        return levels

    def heal(self, amount: int) -> None:
        self._stats.hp = min(self._stats.max_hp, self._stats.hp + amount)
        self.events.emit(SessionEvent.STATS_CHANGED)

    def receive_damage(self, amount: int, blocked: bool = False) -> int:
        """Apply incoming damage after defense (and block) mitigation; returns damage taken."""
        outgoing = max(1, amount - math.floor(self._stats.defense * 0.25))
        if blocked:
            mitigation = 0.55 - self.get_perk_effect("block_mitigation")
            outgoing = max(1, math.floor(outgoing * mitigation))
        self._stats.hp = max(0, self._stats.hp - outgoing)
        if self._stats.hp <= 0:
            self.log("Warden has fallen.")
        self.events.emit(SessionEvent.STATS_CHANGED)
        return outgoing

    def spend_stamina(self, amount: float) -> bool:
        if self._stats.stamina < amount:
            return False
        self._stats.stamina -= amount
        return True

    def regen_stamina(self, delta_seconds: float) -> None:
        self._stats.stamina = progression.stamina_after_regen(
            self._stats, self.perks.get_all_effects(), delta_seconds,
        )

    def rest_at_checkpoint(self) -> None:
        self._stats.hp = self._stats.max_hp
        self._stats.stamina = self._stats.max_stamina
        self.log("Rested at checkpoint.")
        self.events.emit(SessionEvent.STATS_CHANGED)

    def get_attack_power(self, base: float) -> float:
        return progression.attack_power(base, self._stats, self._upgrades)

    def get_crit_chance(self) -> float:
        return self._stats.crit

    def get_move_speed(self) -> float:
        return self._stats.move_speed

    # -- Perks --

    def unlock_perk(self, perk_id: str) -> None:
        self.perks.unlock(perk_id)
        definition = self.perks.get_definition(perk_id)
        self._recompute_derived_stats()
        self.log(f"Perk unlocked: {definition.name} (rank {self.perks.get_rank(perk_id)}).")
        self.events.emit(SessionEvent.STATS_CHANGED)

    def get_perk_effect(self, effect_id: str) -> float:
        return self.perks.get_all_effects().get(effect_id, 0)

    # -- Cinders --

    def get_cinders(self) -> int:
        return self._cinders

    def add_cinders(self, amount: int) -> None:
        self._cinders += max(0, int(amount))
        self.events.emit(SessionEvent.STATS_CHANGED)

    def spend_cinders(self, amount: int) -> bool:
        if self._cinders < amount:
            return False
        self._cinders -= amount
        self.events.emit(SessionEvent.STATS_CHANGED)
        return True

    # -- Items --

    def get_item(self, item_id: str) -> ItemData | None:
        return self._items.get(item_id)

    def get_item_value(self, item_id: str) -> int:
        item = self._items.get(item_id)
        return item.value if item else 1

    def can_sell_item(self, item_id: str) -> bool:
        item = self._items.get(item_id)
        if item is None:
            return True
        return item.type not in (ItemType.QUEST, ItemType.KEY)

    def add_item(self, item_id: str, amount: int, max_stack: int | None = None) -> int:
        """Store items and count them toward collect objectives. Returns the overflow."""
        item = self._items.get(item_id)
        stack = max_stack or (item.stack_size if item else DEFAULT_MAX_STACK)
        overflow = self.inventory.add_item(item_id, amount, stack, self._infer_tags(item))

        received = amount - overflow
        if received > 0:
            self.log(f"Received {item.name if item else item_id} x{received}.")
            self.events.emit(SessionEvent.INVENTORY_CHANGED, item_id=item_id, delta=received)
            self.record_objective_progress(ObjectiveType.COLLECT, item_id, received)
        return overflow

    def remove_item(self, item_id: str, amount: int) -> int:
        removed = self.inventory.remove_item(item_id, amount)
        if removed:
            self.events.emit(SessionEvent.INVENTORY_CHANGED, item_id=item_id, delta=-removed)
        return removed

    def count_item(self, item_id: str) -> int:
        return self.inventory.count_item(item_id)

    def grant_loot(self, drops: list[LootDrop]) -> int:
        """Add every drop; returns the total that did not fit."""
        return sum(self.add_item(drop.item_id, drop.amount) for drop in drops)

    def defeat_enemy(self, enemy_id: str, rng: Callable[[], float] = random.random) -> list[LootDrop]:
        """Record a kill, roll the enemy's loot table and grant the drops."""
        enemy = next((e for e in self.content.enemies if e.id == enemy_id), None)
        self.record_objective_progress(ObjectiveType.KILL, enemy_id)
        if enemy is None:
            return []
        drops = self.loot.roll(enemy.loot_table_id, rng)
        self.grant_loot(drops)
        return drops

    # -- Equipment --

    def get_equipment(self) -> EquipmentState:
        return self._equipment.model_copy(deep=True)

    def get_weapon_mode(self) -> WeaponMode:
        return self._equipment.weapon_mode

    def set_weapon_mode(self, mode: WeaponMode | str) -> None:
        self._equipment.weapon_mode = WeaponMode(mode)
        self.log(f"Weapon stance switched: {self._equipment.weapon_mode.value}.")

    def get_equipment_upgrades(self) -> EquipmentUpgradeState:
        return self._upgrades.model_copy()

    def set_equipment_upgrade_level(self, target: str, level: int) -> None:
        if target not in ("weapon", "armor"):
            raise ValueError(f"Unknown upgrade target {target}")
        clamped = progression.clamp_upgrade_level(level)
        setattr(self._upgrades, target, clamped)
        self._recompute_derived_stats()
        self.log(f"{target.upper()} upgraded to +{clamped}.")
        self.events.emit(SessionEvent.STATS_CHANGED)

    # -- World --

    def set_flag(self, flag_id: str, value: FlagValue) -> None:
        """Write a world flag; booleans also gate quests, so availability is re-synced."""
        self._flags[flag_id] = value
        if isinstance(value, bool):
            self.quests.set_flag(flag_id, value)
        promoted = self.quests.sync_availability()
        if promoted:
            logger.debug("Flag %s made quests available: %s", flag_id, promoted)
        self.events.emit(SessionEvent.FLAG_CHANGED, flag_id=flag_id, value=value)

    def get_flag(self, flag_id: str) -> FlagValue | None:
        return self._flags.get(flag_id)

    def get_reputation(self, faction_id: str) -> int:
        return self._reputations.get(faction_id, 0)

    def add_reputation(self, faction_id: str, amount: int) -> None:
        self._reputations[faction_id] = self._reputations.get(faction_id, 0) + amount
        sign = "+" if amount >= 0 else ""
        self.log(f"{faction_id} reputation {sign}{amount}.")

    def get_regions(self) -> RegionState:
        return self._regions.model_copy(deep=True)

    def discover_region(self, region_id: str) -> None:
        """First visit to a region grants discovery XP and counts toward enter_zone objectives."""
        if region_id not in self._regions.discovered:
            self._regions.discovered.append(region_id)
            self.award_xp(progression.DISCOVERY_XP)
            self.log(f"Discovered {region_id}.")
        self.record_objective_progress(ObjectiveType.ENTER_ZONE, region_id)

    def unlock_region(self, region_id: str) -> None:
        if region_id in self._regions.unlocked:
            return
        self._regions.unlocked.append(region_id)
        self.log(f"Unlocked region: {region_id}.")
        self.events.emit(SessionEvent.REGION_UNLOCKED, region_id=region_id)

    def get_shop_runtime_state(self) -> ShopRuntimeState:
        return self._shop_state.model_copy(deep=True)

    def set_shop_runtime_state(self, state: ShopRuntimeState) -> None:
        self._shop_state = state.model_copy(deep=True)

    # -- Quests --

    def get_quest_status(self, quest_id: str) -> QuestStatus | None:
        return self.quests.get_status(quest_id)

    def start_quest(self, quest_id: str) -> None:
        if self.quests.get_status(quest_id) != QuestStatus.AVAILABLE:
            return
        self.quests.start_quest(quest_id)
        self.log(f"Quest started: {self._quest_title(quest_id)}.")
        logger.debug("Quest %s started", quest_id)
        self.events.emit(SessionEvent.QUEST_STARTED, quest_id=quest_id)

    def advance_quest_objective(self, quest_id: str, objective_id: str, amount: int = 1) -> None:
        if self.quests.get_status(quest_id) != QuestStatus.ACTIVE:
            return
        self._advance(quest_id, objective_id, amount)

    def complete_quest(self, quest_id: str) -> None:
        """Force-fill every remaining objective, which completes the quest and pays out."""
        quest = self.quests.get_quest(quest_id)
        if quest is None or quest.status != QuestStatus.ACTIVE:
            return
        for objective in quest.objectives:
            if objective.progress < objective.required:
                self._advance(quest_id, objective.id, objective.required - objective.progress)

    def fail_quest(self, quest_id: str) -> None:
        status = self.quests.get_status(quest_id)
        if status is None or status in (QuestStatus.COMPLETED, QuestStatus.FAILED):
            return
        self.quests.fail_quest(quest_id)
        self.log(f"Quest failed: {self._quest_title(quest_id)}.")
        self.events.emit(SessionEvent.QUEST_FAILED, quest_id=quest_id)

    def record_objective_progress(
        self,
        objective_type: ObjectiveType | str,
        target_id: str,
        amount: int = 1,
    ) -> None:
        """Advance every active quest objective matching (type, target)."""
        objective_type = ObjectiveType(objective_type)
        progress = max(1, int(amount))

        for quest_data in self.content.quests:
            for objective in quest_data.objectives:
                if objective.type != objective_type or objective.target_id != target_id:
                    continue
                quest = self.quests.get_quest(quest_data.id)
                if quest is None or quest.status != QuestStatus.ACTIVE:
                    break
                current = next((o for o in quest.objectives if o.id == objective.id), None)
                if current is None:
                    continue
                remaining = current.required - current.progress
                if remaining <= 0:
                    continue
                self._advance(quest_data.id, objective.id, min(remaining, progress))

    def apply_reward(self, reward: RewardPackage) -> None:
        if reward.cinders:
            self.add_cinders(reward.cinders)
        if reward.xp:
            self.award_xp(reward.xp)
        for faction_id, amount in reward.reputation.items():
            self.add_reputation(faction_id, amount)
        for item in reward.items:
            self.add_item(item.item_id, item.amount, item.max_stack)

    def _advance(self, quest_id: str, objective_id: str, amount: int) -> None:
        self.quests.advance_objective(quest_id, objective_id, amount)
        self.events.emit(
            SessionEvent.OBJECTIVE_PROGRESSED,
            quest_id=quest_id, objective_id=objective_id, amount=amount,
        )
        if self.quests.get_status(quest_id) == QuestStatus.COMPLETED:
            logger.info("Quest %s completed", quest_id)
            self.events.emit(SessionEvent.QUEST_COMPLETED, quest_id=quest_id)
            self._apply_quest_rewards(quest_id)

    def _apply_quest_rewards(self, quest_id: str) -> None:
        quest = self._quest_data.get(quest_id)
        if quest is None:
            return

        rewards = quest.rewards
        self.apply_reward(RewardPackage(
            cinders=rewards.cinders,
            xp=rewards.xp,
            reputation={r.faction_id: r.amount for r in rewards.reputation},
            items=[RewardItemGrant(item_id=i.item_id, amount=i.amount) for i in rewards.items],
        ))

        if quest.on_complete:
            for flag in quest.on_complete.set_flags:
                self.set_flag(flag.id, flag.value)
                if flag.value and flag.id.startswith("gate_") and flag.id.endswith("_unlocked"):
                    self.unlock_region(flag.id[len("gate_"):-len("_unlocked")])
            for region_id in quest.on_complete.unlock_regions:
                self.unlock_region(region_id)

        self.log(f"Quest complete: {quest.title}.")
        logger.debug("Rewards applied for %s", quest_id)
        self.quests.sync_availability()

    def _quest_title(self, quest_id: str) -> str:
        quest = self._quest_data.get(quest_id)
        return quest.title if quest else quest_id

    # -- Dialogue --

    def get_dialogue(self, conversation_id: str) -> DialogueData | None:
        return self._dialogues.get(conversation_id)

    def open_dialogue(self, conversation_id: str) -> DialogueRuntime:
        conversation = self._dialogues.get(conversation_id)
        if conversation is None:
            raise ValueError(f"Unknown dialogue {conversation_id}")
        return DialogueRuntime(conversation, SessionDialogueState(self))

    # -- Event log and view models --

    def log(self, message: str) -> None:
        self._event_log.insert(0, message)
        del self._event_log[EVENT_LOG_LIMIT:]
        logger.debug("Session log: %s", message)
        self.events.emit(SessionEvent.LOG, message=message)

    def get_events(self) -> list[str]:
        return list(self._event_log)

    def get_quest_entries(self) -> list[QuestUiEntry]:
        entries = []
        for quest_data in self.content.quests:
            instance = self.quests.get_quest(quest_data.id)
            if instance is None:
                continue
            descriptions = {o.id: objective_description(o) for o in quest_data.objectives}
            entries.append(QuestUiEntry(
                id=quest_data.id,
                title=quest_data.title,
                status=instance.status,
                objectives=[
                    QuestUiObjective(
                        id=o.id,
                        description=descriptions.get(o.id, o.id),
                        progress=o.progress,
                        required=o.required,
                    )
                    for o in instance.objectives
                ],
            ))
        return entries

    def get_inventory_entries(self) -> list[InventoryUiEntry]:
        return [
            InventoryUiEntry(
                index=index,
                item_id=slot.item_id if slot else None,
                amount=slot.amount if slot else 0,
                tags=list(slot.tags) if slot else [],
            )
            for index, slot in enumerate(self.inventory.get_slots())
        ]

    def get_quest_hint(self) -> str:
        entries = self.get_quest_entries()
        quest = next((e for e in entries if e.status == QuestStatus.ACTIVE), None)
        if quest is None:
            quest = next((e for e in entries if e.status == QuestStatus.AVAILABLE), None)
        if quest is None or not quest.objectives:
            return "No active objectives. Explore Cinderhaven for leads."
        objective = next((o for o in quest.objectives if o.progress < o.required), quest.objectives[0])
        return f"{quest.title}: {objective.description} ({objective.progress}/{objective.required})"

    def get_hud_view_model(self) -> HudViewModel:
        stats = self._stats
        return HudViewModel(
            hp=_round_half_up(stats.hp),
            max_hp=stats.max_hp,
            stamina=_round_half_up(stats.stamina),
            max_stamina=stats.max_stamina,
            level=stats.level,
            xp=stats.xp,
            xp_to_next=stats.xp_to_next,
            cinders=self._cinders,
            active_weapon_mode=self._equipment.weapon_mode,
            quest_hint=self.get_quest_hint(),
            events=self.get_events(),
            quickbar=self._quickbar_labels(),
        )

    # -- Persistence --

    def serialize(self) -> SessionSnapshot:
        """Full snapshot of the session, stamped with the current time."""
        return SessionSnapshot(
            player=self._stats.model_copy(),
            cinders=self._cinders,
            equipment=self.get_equipment(),
            inventory=self.inventory.serialize(),
            quests=self.quests.serialize(),
            world_flags=dict(self._flags),
            reputations=dict(self._reputations),
            perks=self.perks.serialize(),
            regions=self.get_regions(),
            upgrades=self.get_equipment_upgrades(),
            shop=self.get_shop_runtime_state(),
            event_log=self.get_events(),
        )

    def to_save_file(self) -> SaveFile:
        snapshot = self.serialize()
        return SaveFile(timestamp=snapshot.timestamp, session=snapshot)

    # -- Internals --

    def _seed_starting_inventory(self) -> None:
        for item_id, amount in STARTING_INVENTORY:
            self.add_item(item_id, amount)
        for quickbar_index, item_id in enumerate(STARTING_QUICKBAR):
            self.inventory.assign_quickbar(quickbar_index, self._find_slot(item_id))

    def _find_slot(self, item_id: str) -> int | None:
        for index, slot in enumerate(self.inventory.get_slots()):
            if slot is not None and slot.item_id == item_id:
                return index
        return None

    def _infer_tags(self, item: ItemData | None) -> list[InventoryTag]:
        if item is None:
            return [InventoryTag.MATERIAL]
        return [_ITEM_TYPE_TAGS.get(item.type, InventoryTag.GEAR)]

    def _recompute_derived_stats(self, announce: bool = True) -> None:
        before = self._stats.max_stamina
        progression.derive_stats(self._stats, self.perks.get_all_effects(), self._upgrades)
        if announce and before != self._stats.max_stamina:
            self.log(f"Stamina capacity adjusted to {self._stats.max_stamina}.")

    def _quickbar_labels(self) -> list[str]:
        slots = self.inventory.get_slots()
        labels = []
        for index, slot_index in enumerate(self.inventory.get_quickbar(), start=1):
            slot = slots[slot_index] if slot_index is not None else None
            if slot is None:
                labels.append(f"{index}: --")
                continue
            item = self._items.get(slot.item_id)
            labels.append(f"{index}: {item.name if item else slot.item_id} x{slot.amount}")
        return labels


class SessionDialogueState(DialogueStateAccess):
    """Exposes a GameSession to the dialogue runtime."""

    def __init__(self, session: GameSession) -> None:
        self.session = session

    def get_flag(self, flag_id: str) -> FlagValue | None:
        return self.session.get_flag(flag_id)

    def set_flag(self, flag_id: str, value: FlagValue) -> None:
        self.session.set_flag(flag_id, value)

    def get_stat(self, stat_id: str) -> float:
        if stat_id == "cinders":
            return self.session.get_cinders()
        value = getattr(self.session.get_stats(), stat_id, 0)
        return value if isinstance(value, (int, float)) else 0

    def get_item_count(self, item_id: str) -> int:
        return self.session.count_item(item_id)

    def add_item(self, item_id: str, amount: int) -> None:
        self.session.add_item(item_id, amount)

    def get_reputation(self, faction_id: str) -> int:
        return self.session.get_reputation(faction_id)

    def add_reputation(self, faction_id: str, amount: int) -> None:
        self.session.add_reputation(faction_id, amount)

    def get_quest_status(self, quest_id: str) -> QuestStatus | None:
        return self.session.get_quest_status(quest_id)

    def start_quest(self, quest_id: str) -> None:
        self.session.start_quest(quest_id)

    def complete_quest(self, quest_id: str) -> None:
        self.session.complete_quest(quest_id)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)

"""Player progression — XP curve and derived-stat formulas, pure math, no I/O.

Functions that take a PlayerStats update it in place; they never touch
anything else.
"""
from __future__ import annotations

import math

from ash_aether.models.session import EquipmentUpgradeState, PlayerStats

BASE_PLAYER = PlayerStats()

MAX_UPGRADE_LEVEL = 5
BASE_STAMINA_REGEN = 12.0
MIN_MAX_STAMINA = 30
DISCOVERY_XP = 20

# Gains applied on every level-up.
LEVEL_UP_MAX_HP = 6
LEVEL_UP_MAX_STAMINA = 4
LEVEL_UP_PERK_POINTS = 1


def next_xp_threshold(xp_to_next: int) -> int:
    """XP needed for the level after the one just reached."""
    return math.floor(xp_to_next * 1.2 + 15)


def apply_xp(stats: PlayerStats, amount: int) -> int:
    """Add XP, rolling over as many level-ups as it pays for.

    Each level-up raises max HP and stamina and fully restores both.
    Returns the number of levels gained.
    """
    stats.xp += max(0, int(amount))
    levels = 0
    while stats.xp >= stats.xp_to_next:
        stats.xp -= stats.xp_to_next
        stats.level += 1
        stats.xp_to_next = next_xp_threshold(stats.xp_to_next)
        stats.max_hp += LEVEL_UP_MAX_HP
        stats.hp = stats.max_hp
        stats.max_stamina += LEVEL_UP_MAX_STAMINA
        stats.stamina = stats.max_stamina
        levels += 1
    return levels


def derive_stats(
    stats: PlayerStats,
    effects: dict[str, float],
    upgrades: EquipmentUpgradeState,
) -> None:
    """Recompute attack, defense, crit, speed and stamina cap from level, perks and upgrades."""
    level_bonus = stats.level - 1
    stats.max_stamina = max(
        MIN_MAX_STAMINA,
        int(BASE_PLAYER.max_stamina + level_bonus * LEVEL_UP_MAX_STAMINA + effects.get("max_stamina", 0)),
    )
    stats.stamina = min(stats.stamina, stats.max_stamina)
    stats.attack = int(BASE_PLAYER.attack + level_bonus * 2 + effects.get("attack", 0))
    stats.defense = int(
        BASE_PLAYER.defense + level_bonus // 2 + effects.get("defense", 0) + upgrades.armor * 2
    )
    stats.crit = BASE_PLAYER.crit + effects.get("crit", 0)
    stats.move_speed = BASE_PLAYER.move_speed


def stamina_after_regen(stats: PlayerStats, effects: dict[str, float], delta_seconds: float) -> float:
    rate = BASE_STAMINA_REGEN + effects.get("stamina_regen", 0)
    return min(float(stats.max_stamina), stats.stamina + rate * delta_seconds)


def attack_power(base: float, stats: PlayerStats, upgrades: EquipmentUpgradeState) -> float:
    """Outgoing damage before crits: weapon base + derived attack + 3 per weapon upgrade."""
    return base + stats.attack + upgrades.weapon * 3


def clamp_upgrade_level(level: int) -> int:
    return max(0, min(MAX_UPGRADE_LEVEL, int(level)))

"""Loot table rolls — pure, RNG injected."""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Callable

from ash_aether.models.content import LootTableData

Rng = Callable[[], float]


@dataclass
class LootDrop:
    item_id: str
    amount: int


class LootSystem:
    def __init__(self, tables: list[LootTableData]) -> None:
        self._tables = {t.id: t for t in tables}

    def roll(self, table_id: str, rng: Rng = random.random) -> list[LootDrop]:
        """Roll every entry independently; an unknown table drops nothing."""
        table = self._tables.get(table_id)
        if table is None:
            return []

        drops: list[LootDrop] = []
        for entry in table.entries:
            if rng() > entry.chance:
                continue
            amount = _roll_amount(entry.min_amount, entry.max_amount, rng)
            drops.append(LootDrop(item_id=entry.item_id, amount=amount))
        return drops


def _roll_amount(low: int, high: int, rng: Rng) -> int:
    if low == high:
        return low
    return low + math.floor(rng() * (high - low + 1))

"""Perk tree — point spending and per-rank effect totals."""
from __future__ import annotations

from ash_aether.models.content import PerkData
from ash_aether.models.session import PerkState


class PerkTree:
    def __init__(self, definitions: list[PerkData], state: PerkState | None = None) -> None:
        self._definitions: dict[str, PerkData] = {d.id: d for d in definitions}
        self._ranks: dict[str, int] = {}
        self._points = 0
        if state is not None:
            self._points = state.points
            self._ranks.update(state.ranks)

    def set_points(self, points: int) -> None:
        self._points = max(0, int(points))

    def add_points(self, points: int) -> None:
        self._points += max(0, int(points))

    def get_points(self) -> int:
        return self._points

    def get_rank(self, perk_id: str) -> int:
        return self._ranks.get(perk_id, 0)

    def get_definition(self, perk_id: str) -> PerkData | None:
        return self._definitions.get(perk_id)

    def get_all_definitions(self) -> list[PerkData]:
        return list(self._definitions.values())

    def get_all_effects(self) -> dict[str, float]:
        """Sum every effect across ranked perks (amount per rank times rank)."""
        effects: dict[str, float] = {}
        for definition in self._definitions.values():
            rank = self.get_rank(definition.id)
            if rank <= 0:
                continue
            for effect_id, per_rank in definition.effects.items():
                effects[effect_id] = effects.get(effect_id, 0) + per_rank * rank
        return effects

    def unlock(self, perk_id: str) -> None:
        definition = self._definitions.get(perk_id)
        if definition is None:
            raise ValueError(f"Perk {perk_id} is not defined")
        if self._points <= 0:
            raise ValueError("Not enough perk points")
        rank = self.get_rank(perk_id)
        if rank >= definition.max_rank:
            raise ValueError(f"Perk {perk_id} is already max rank")
        self._ranks[perk_id] = rank + 1
        self._points -= 1

    def serialize(self) -> PerkState:
        return PerkState(points=self._points, ranks=dict(self._ranks))

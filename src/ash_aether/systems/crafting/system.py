"""Crafting system — turns recipe costs into items at a station."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ash_aether.mechanics.inventory import Inventory
from ash_aether.models.content import CraftStation, RecipeData
from ash_aether.models.inventory import InventoryTag

logger = logging.getLogger(__name__)

REFUND_MAX_STACK = 99


@dataclass
class CraftResult:
    ok: bool
    new_cinders: int
    reason: str = ""


class CraftingSystem:
    def __init__(self, recipes: list[RecipeData]) -> None:
        self._recipes: dict[str, RecipeData] = {r.id: r for r in recipes}

    def list_recipes(self, station: CraftStation | str) -> list[RecipeData]:
        station = CraftStation(station)
        return [r for r in self._recipes.values() if r.station == station]

    def get_recipe(self, recipe_id: str) -> RecipeData:
        recipe = self._recipes.get(recipe_id)
        if recipe is None:
            raise ValueError(f"Unknown recipe {recipe_id}")
        return recipe

    def can_craft(self, recipe_id: str, inventory: Inventory, cinders: int) -> bool:
        recipe = self.get_recipe(recipe_id)
        if cinders < recipe.cinders_cost:
            return False
        return all(inventory.count_item(c.item_id) >= c.amount for c in recipe.cost)

    def craft(self, recipe_id: str, inventory: Inventory, cinders: int) -> CraftResult:
        """Consume costs and store the output; if it does not fit, refund the costs."""
        recipe = self.get_recipe(recipe_id)
        if cinders < recipe.cinders_cost:
            return CraftResult(ok=False, new_cinders=cinders, reason="Not enough cinders.")
        if not self.can_craft(recipe_id, inventory, cinders):
            return CraftResult(ok=False, new_cinders=cinders, reason="Missing materials.")

        for cost in recipe.cost:
            inventory.remove_item(cost.item_id, cost.amount)

        overflow = inventory.add_item(
            recipe.output.item_id,
            recipe.output.amount,
            recipe.output.max_stack,
            list(recipe.output.tags),
        )
        if overflow > 0:
            # Take back whatever part of the output did fit before refunding.
            inventory.remove_item(recipe.output.item_id, recipe.output.amount - overflow)
            for cost in recipe.cost:
                inventory.add_item(cost.item_id, cost.amount, REFUND_MAX_STACK, [InventoryTag.MATERIAL])
            logger.debug("Craft %s refunded: inventory full", recipe_id)
            return CraftResult(ok=False, new_cinders=cinders, reason="Inventory full.")

        logger.debug("Crafted %s x%d", recipe.output.item_id, recipe.output.amount)
        return CraftResult(ok=True, new_cinders=cinders - recipe.cinders_cost)

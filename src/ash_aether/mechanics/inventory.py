"""Grid inventory with stacking and a quickbar of slot references."""
from __future__ import annotations

from ash_aether.models.inventory import InventoryTag, ItemStack, SerializedInventory


class Inventory:
    def __init__(self, width: int = 6, height: int = 8, quickbar_size: int = 8) -> None:
        self.width = width
        self.height = height
        self._slots: list[ItemStack | None] = [None] * (width * height)
        self._quickbar: list[int | None] = [None] * quickbar_size

    @classmethod
    def from_serialized(cls, data: SerializedInventory) -> Inventory:
        inventory = cls(data.width, data.height, len(data.quickbar))
        for i in range(inventory.capacity):
            stack = data.slots[i] if i < len(data.slots) else None
            inventory._slots[i] = stack.model_copy(deep=True) if stack else None
        for i, slot_index in enumerate(data.quickbar):
            inventory._quickbar[i] = slot_index if isinstance(slot_index, int) else None
        return inventory

    @property
    def capacity(self) -> int:
        return self.width * self.height

    def add_item(
        self,
        item_id: str,
        amount: int,
        max_stack: int,
        tags: list[InventoryTag] | None = None,
    ) -> int:
        """Top up existing stacks first, then fill empty slots. Returns the overflow."""
        if amount <= 0:
            return 0
        remaining = amount

        for stack in self._slots:
            if stack is None or stack.item_id != item_id or stack.amount >= stack.max_stack:
                continue
            moved = min(stack.max_stack - stack.amount, remaining)
            stack.amount += moved
            remaining -= moved
            if remaining <= 0:
                return 0

        for i, stack in enumerate(self._slots):
            if stack is not None:
                continue
            stored = min(max_stack, remaining)
            self._slots[i] = ItemStack(
                item_id=item_id, amount=stored, max_stack=max_stack, tags=list(tags or []),
            )
            remaining -= stored
            if remaining <= 0:
                return 0

        return remaining

    def remove_item(self, item_id: str, amount: int) -> int:
        """Remove up to ``amount``; returns how many were actually removed."""
        remaining = amount
        for i, stack in enumerate(self._slots):
            if stack is None or stack.item_id != item_id:
                continue
            taken = min(stack.amount, remaining)
            stack.amount -= taken
            remaining -= taken
            if stack.amount <= 0:
                self._slots[i] = None
            if remaining <= 0:
                break
        return amount - remaining

    def count_item(self, item_id: str) -> int:
        return sum(s.amount for s in self._slots if s is not None and s.item_id == item_id)

    def get_slots(self) -> list[ItemStack | None]:
        return [s.model_copy(deep=True) if s else None for s in self._slots]

    def assign_quickbar(self, quickbar_index: int, slot_index: int | None) -> None:
        if quickbar_index < 0 or quickbar_index >= len(self._quickbar):
            raise ValueError(f"Quickbar index {quickbar_index} is out of range")
        if slot_index is not None and (slot_index < 0 or slot_index >= self.capacity):
            raise ValueError(f"Slot index {slot_index} is out of range")
        self._quickbar[quickbar_index] = slot_index

    def get_quickbar(self) -> list[int | None]:
        return list(self._quickbar)

    def serialize(self) -> SerializedInventory:
        return SerializedInventory(
            width=self.width,
            height=self.height,
            slots=self.get_slots(),
            quickbar=self.get_quickbar(),
        )

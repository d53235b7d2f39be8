"""Shop system — buying, selling, and timed restocking of market listings."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ash_aether.models.content import ShopListing
from ash_aether.models.session import ShopRuntimeState

if TYPE_CHECKING:
    from ash_aether.engine.session import GameSession

logger = logging.getLogger(__name__)

RESTOCK_INTERVAL_SECONDS = 240
SELL_RATE = 0.6


@dataclass
class CatalogEntry:
    listing: ShopListing
    stock: int


@dataclass
class ShopPurchaseResult:
    ok: bool
    listing_id: str
    item_id: str = ""
    spent_cinders: int = 0
    reason: str = ""


@dataclass
class ShopSellResult:
    ok: bool
    sold_item_id: str
    sold_amount: int = 0
    earned_cinders: int = 0
    reason: str = ""


class ShopSystem:
    def __init__(self, listings: list[ShopListing], snapshot: ShopRuntimeState | None = None) -> None:
        self._listings: dict[str, ShopListing] = {listing.id: listing for listing in listings}
        self._stock: dict[str, int] = {}
        persisted = snapshot.stock_by_listing_id if snapshot else {}
        for listing in listings:
            saved = persisted.get(listing.id)
            self._stock[listing.id] = max(0, int(saved)) if saved is not None else listing.base_stock
        self._restock_progress = snapshot.restock_progress if snapshot else 0.0

    def tick(self, delta_seconds: float) -> bool:
        """Advance the restock clock. Returns True if at least one restock happened."""
        self._restock_progress += delta_seconds
        restocked = False
        while self._restock_progress >= RESTOCK_INTERVAL_SECONDS:
            self._restock_progress -= RESTOCK_INTERVAL_SECONDS
            self._restock()
            restocked = True
        return restocked

    def list_catalog(self) -> list[CatalogEntry]:
        return [
            CatalogEntry(listing=listing, stock=self._stock.get(listing.id, 0))
            for listing in self._listings.values()
        ]

    def get_stock(self, listing_id: str) -> int:
        return self._stock.get(listing_id, 0)

    def buy(self, listing_id: str, session: GameSession) -> ShopPurchaseResult:
        listing = self._listings.get(listing_id)
        if listing is None:
            return ShopPurchaseResult(ok=False, listing_id=listing_id, reason=f"Unknown listing {listing_id}")

        stock = self._stock.get(listing.id, 0)
        if stock <= 0:
            return ShopPurchaseResult(
                ok=False, listing_id=listing_id, item_id=listing.item_id,
                reason=f"{listing.display_name} is out of stock.",
            )
        if session.get_cinders() < listing.buy_price:
            return ShopPurchaseResult(
                ok=False, listing_id=listing_id, item_id=listing.item_id,
                reason=f"Not enough cinders for {listing.display_name}.",
            )

        overflow = session.add_item(listing.item_id, 1, listing.max_stack)
        if overflow > 0:
            return ShopPurchaseResult(
                ok=False, listing_id=listing_id, item_id=listing.item_id, reason="Inventory full.",
            )

        if not session.spend_cinders(listing.buy_price):
            session.remove_item(listing.item_id, 1)
            return ShopPurchaseResult(
                ok=False, listing_id=listing_id, item_id=listing.item_id,
                reason="Unable to spend cinders.",
            )

        self._stock[listing.id] = stock - 1
        logger.debug("Bought %s for %d cinders", listing.item_id, listing.buy_price)
        return ShopPurchaseResult(
            ok=True, listing_id=listing_id, item_id=listing.item_id, spent_cinders=listing.buy_price,
        )

    def sell(self, item_id: str, amount: int, session: GameSession) -> ShopSellResult:
        if amount <= 0:
            return ShopSellResult(ok=False, sold_item_id=item_id, reason="Amount must be positive.")
        if not session.can_sell_item(item_id):
            return ShopSellResult(ok=False, sold_item_id=item_id, reason=f"{item_id} cannot be sold.")

        removed = session.remove_item(item_id, amount)
        if removed <= 0:
            return ShopSellResult(ok=False, sold_item_id=item_id, reason=f"{item_id} is not in inventory.")

        earned = sell_price(session.get_item_value(item_id), removed)
        session.add_cinders(earned)
        logger.debug("Sold %s x%d for %d cinders", item_id, removed, earned)
        return ShopSellResult(ok=True, sold_item_id=item_id, sold_amount=removed, earned_cinders=earned)

    def serialize(self) -> ShopRuntimeState:
        return ShopRuntimeState(
            stock_by_listing_id=dict(self._stock),
            restock_progress=self._restock_progress,
        )

    def get_seconds_to_restock(self) -> int:
        return max(0, math.ceil(RESTOCK_INTERVAL_SECONDS - self._restock_progress))

    def _restock(self) -> None:
        for listing in self._listings.values():
            current = self._stock.get(listing.id, 0)
            self._stock[listing.id] = min(listing.restock_to, current + 1)


def sell_price(value: int, amount: int) -> int:
    """Cinders paid for ``amount`` units of an item worth ``value``; never less than 1."""
    return max(1, math.floor(value * SELL_RATE) * amount)

"""Promotions and coupons, and their in-memory storage."""

from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import uuid4

from shipping.promotion.offers import ShipmentPromotionOffer


@dataclass
class Promotion:
    """A discount campaign carrying one shipment offer.

    Conditions are callables receiving the order; all of them must hold for
    the promotion to apply.
    """

    name: str
    offer: ShipmentPromotionOffer
    id: str = field(default_factory=lambda: str(uuid4()))
    display_name: str = ""
    status: bool = True
    stores: list[str] = field(default_factory=list)
    order_types: list[str] = field(default_factory=list)
    requires_coupon: bool = False
    weight: int = 0
    conditions: list[Callable] = field(default_factory=list)

    def is_available(self, order) -> bool:
        if not self.status:
            return False
        if self.stores and order.store_id not in self.stores:
            return False
        if self.order_types and order.order_type not in self.order_types:
            return False
        return True

    def applies(self, order) -> bool:
        return self.is_available(order) and all(condition(order) for condition in self.conditions)

    def apply(self, order) -> None:
        self.offer.apply(order, self)


@dataclass
class Coupon:
    code: str
    promotion: Promotion
    status: bool = True


class PromotionStorage:
    def __init__(self):
        self._promotions: dict[str, Promotion] = {}
        self._coupons: dict[str, Coupon] = {}

    def add(self, promotion: Promotion) -> Promotion:
        self._promotions[promotion.id] = promotion
        return promotion

    def add_coupon(self, coupon: Coupon) -> Coupon:
        self.add(coupon.promotion)
        self._coupons[coupon.code] = coupon
        return coupon

    def load(self, promotion_id: str) -> Promotion | None:
        return self._promotions.get(promotion_id)

    def load_available(self, order, offer_ids: list[str] | None = None) -> list[Promotion]:
        """Return the automatic promotions available for the order, by weight."""
        promotions = [
            promotion
            for promotion in self._promotions.values()
            if not promotion.requires_coupon
            and promotion.is_available(order)
            and (offer_ids is None or promotion.offer.plugin_id in offer_ids)
        ]
        return sorted(promotions, key=lambda p: p.weight)

    def load_coupons(self, order, offer_ids: list[str] | None = None) -> list[Coupon]:
        """Return the enabled coupons applied to the order."""
        coupons = []
        for code in order.get_coupon_codes():
            coupon = self._coupons.get(code)
            if coupon is None or not coupon.status:
                continue
            if offer_ids is not None and coupon.promotion.offer.plugin_id not in offer_ids:
                continue
            coupons.append(coupon)
        return coupons

    def load_for_order(self, order, offer_ids: list[str] | None = None) -> list[Promotion]:
        """Return the automatic promotions followed by those reached through coupons."""
        promotions = {p.id: p for p in self.load_available(order, offer_ids)}
        for coupon in self.load_coupons(order, offer_ids):
            promotions[coupon.promotion.id] = coupon.promotion
        return list(promotions.values())

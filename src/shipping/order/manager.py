"""ShippingOrderManager — shipping-specific queries and packing for orders."""

import os

import structlog

from shipping.packer.manager import PackerManager
from shipping.profile import get_profile_storage

logger = structlog.get_logger(__name__)

DEFAULT_PROFILE_TYPE = "customer"


def load_profile_types() -> dict[str, str]:
    """Read the order type to shipping profile type mapping.

    SHIPPING_PROFILE_TYPES holds comma-separated ``order_type:profile_type``
    pairs, e.g. ``b2b:business,default:customer``.
    """
    raw = os.environ.get("SHIPPING_PROFILE_TYPES", "")
    profile_types = {}
    for pair in filter(None, (p.strip() for p in raw.split(","))):
        order_type, sep, profile_type = pair.partition(":")
        if not sep or not order_type or not profile_type:
            raise ValueError(f"Invalid SHIPPING_PROFILE_TYPES entry: {pair}")
        profile_types[order_type.strip()] = profile_type.strip()
    return profile_types


class ShippingOrderManager:
    def __init__(
        self,
        packer_manager: PackerManager | None = None,
        profile_storage=None,
        profile_types: dict[str, str] | None = None,
    ):
        self.packer_manager = packer_manager or PackerManager()
        self._profile_storage = profile_storage
        self.profile_types = load_profile_types() if profile_types is None else dict(profile_types)

    @property
    def profile_storage(self):
        return self._profile_storage or get_profile_storage()

    def create_profile(self, order, values: dict | None = None):
        """Build an unsaved shipping profile of the order type's profile type."""
        values = dict(values or {})
        values["profile_type"] = self.profile_types.get(order.order_type, values.get("profile_type", DEFAULT_PROFILE_TYPE))
        return self.profile_storage.create(**values)

    def get_profile(self, order):
        """Return the order's shipping profile, falling back to the first shipment's.

        The fallback also applies when the order points to a deleted profile.
        """
        profile = None
        if order.shipping_profile_id is not None:
            profile = self.profile_storage.load(order.shipping_profile_id)
        if profile is None:
            profile_id = next((s.shipping_profile_id for s in order.get_shipments() if s.shipping_profile_id), None)
            profile = self.profile_storage.load(profile_id)
        return profile

    def has_shipments(self, order) -> bool:
        return order.has_shipments()

    def is_shippable(self, order) -> bool:
        return any(item.is_shippable() for item in (order.items or []))

    def pack(self, order, profile=None) -> list:
        """Pack the order into shipments, deleting the shipments no longer needed.

        The returned shipments are not set on the order; callers decide when
        to do that.
        """
        if profile is None:
            profile = self.get_profile(order) or self.create_profile(order)

        shipments, removed = self.packer_manager.pack_to_shipments(order, profile, order.get_shipments())
        order.remove_shipment_set(removed, reason="repacked")
        order.record_packing(len(shipments), len(removed))
        logger.info(
            "Packed order into shipments",
            order_id=str(order.id),
            shipment_count=len(shipments),
            removed_count=len(removed),
        )
        return shipments

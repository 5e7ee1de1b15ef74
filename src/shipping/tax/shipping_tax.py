"""Shipping tax type — taxes shipments based on the taxes already on the order.

Three strategies are available:

- ``default``: the default rate of the zone the order is taxed in.
- ``highest``: the highest rate found on the order.
- ``proportional``: every rate found on the order items, weighted by the
  share of the subtotal the items taxed at that rate represent.

Only tax adjustments with a known percentage and a ``type|zone|rate`` source
ID are considered; others usually come from remote tax services.
"""

from decimal import Decimal

from shipping.order.manager import ShippingOrderManager
from shipping.shared.adjustment import Adjustment
from shipping.shared.price import Price
from shipping.shared.rounding import round_price
from shipping.tax import get_tax_type_storage
from shipping.tax.tax_type import LocalTaxType

STRATEGIES = ("default", "highest", "proportional")
STORE_FILTERS = ("none", "include", "exclude")


class ShippingTaxType:
    def __init__(
        self,
        id: str = "shipping",
        label: str = "Shipping",
        strategy: str = "default",
        store_filter: str = "none",
        stores: list[str] | None = None,
        status: bool = True,
        tax_type_storage=None,
        shipping_order_manager: ShippingOrderManager | None = None,
    ):
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown shipping tax strategy: {strategy}")
        if store_filter not in STORE_FILTERS:
            raise ValueError(f"Unknown store filter: {store_filter}")

        self.id = id
        self.label = label
        self.strategy = strategy
        self.store_filter = store_filter
        self.stores = list(stores or [])
        self.status = status
        self._tax_type_storage = tax_type_storage
        self.shipping_order_manager = shipping_order_manager or ShippingOrderManager()

    @property
    def tax_type_storage(self):
        return self._tax_type_storage or get_tax_type_storage()

    def applies(self, order) -> bool:
        if not self.shipping_order_manager.is_shippable(order):
            return False
        if not self.shipping_order_manager.has_shipments(order):
            return False
        if self.store_filter != "none":
            match = order.store_id in self.stores
            if self.store_filter == "exclude":
                match = not match
            if not match:
                return False
        return True

    def apply(self, order) -> None:
        tax_adjustments = [
            adjustment
            for adjustment in order.collect_adjustments(["tax"])
            if adjustment.percentage is not None and adjustment.source_id.count("|") == 2
        ]
        if not tax_adjustments:
            return

        if self.strategy == "default":
            self._apply_default(order, tax_adjustments)
        elif self.strategy == "highest":
            self._apply_highest(order, tax_adjustments)
        elif self.strategy == "proportional":
            self._apply_proportional(order, tax_adjustments)

    # -------------------------------------------------------------------
    # Strategies
    # -------------------------------------------------------------------
    def _apply_default(self, order, tax_adjustments: list[Adjustment]) -> None:
        # All tax adjustments are assumed to share the tax type and zone.
        tax_type_id, zone_id, _ = tax_adjustments[0].source_id.split("|")
        tax_type = self.tax_type_storage.load(tax_type_id)
        if not isinstance(tax_type, LocalTaxType):
            return
        zone = tax_type.get_zone(zone_id)
        if zone is None:
            return
        default_rate = zone.get_default_rate()
        if default_rate is None:
            return

        for shipment in self._get_shipments(order):
            included = tax_type.display_inclusive
            tax_amount = self._calculate_tax_amount(shipment, default_rate.percentage, included)
            shipment.add_adjustment(
                Adjustment(
                    type="tax",
                    label=zone.display_label,
                    amount=round_price(tax_amount),
                    percentage=default_rate.percentage,
                    source_id=f"{tax_type.id}|{zone.id}|{default_rate.id}",
                    included=included,
                )
            )

    def _apply_highest(self, order, tax_adjustments: list[Adjustment]) -> None:
        by_source: dict[str, Adjustment] = {}
        for adjustment in tax_adjustments:
            by_source[adjustment.source_id] = adjustment
        highest = sorted(by_source.values(), key=lambda a: Decimal(a.percentage), reverse=True)[0]

        for shipment in self._get_shipments(order):
            tax_amount = self._calculate_tax_amount(shipment, highest.percentage, highest.included)
            shipment.add_adjustment(highest.with_amount(round_price(tax_amount)))

    def _apply_proportional(self, order, tax_adjustments: list[Adjustment]) -> None:
        if len({adjustment.source_id for adjustment in tax_adjustments}) == 1:
            self._apply_highest(order, tax_adjustments)
            return

        # Group the order items by tax percentage.
        groups: dict[Decimal, dict] = {}
        for order_item in order.items or []:
            item_tax_adjustments = order_item.get_adjustments(["tax"])
            if not item_tax_adjustments or item_tax_adjustments[0].percentage is None:
                continue
            item_total = order_item.get_total_price()
            item_tax_adjustment = item_tax_adjustments[0]
            percentage = Decimal(item_tax_adjustment.percentage)
            if percentage not in groups:
                groups[percentage] = {"total": item_total, "adjustment": item_tax_adjustment}
            else:
                groups[percentage]["total"] = groups[percentage]["total"].add(item_total)
                groups[percentage]["adjustment"] = groups[percentage]["adjustment"].add(item_tax_adjustment)

        subtotal = order.get_subtotal_price()
        if subtotal is None or subtotal.is_zero():
            return
        for group in groups.values():
            group["ratio"] = group["total"].to_decimal() / subtotal.to_decimal()
        ordered_groups = [groups[percentage] for percentage in sorted(groups, reverse=True)]

        for shipment in self._get_shipments(order):
            for group in ordered_groups:
                existing_adjustment = group["adjustment"]
                tax_amount = self._calculate_tax_amount(
                    shipment, existing_adjustment.percentage, existing_adjustment.included
                )
                tax_amount = tax_amount.multiply(group["ratio"])
                shipment.add_adjustment(existing_adjustment.with_amount(round_price(tax_amount)))

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _get_shipments(self, order) -> list:
        """Return the shipments with a selected rate."""
        return [s for s in order.get_shipments() if s.shipping_method_id and s.amount is not None]

    def _calculate_tax_amount(self, shipment, percentage: str, included: bool = False) -> Price:
        """Return the unrounded tax for the shipment's amount after shipping promotions."""
        tax_amount = shipment.get_adjusted_amount(["shipping_promotion"]).multiply(percentage)
        if included:
            tax_amount = tax_amount.divide(Decimal(1) + Decimal(percentage))
        return tax_amount

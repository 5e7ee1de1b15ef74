"""ShipmentManager — calculates, selects and applies shipping rates."""

import structlog

from shipping.method import get_shipping_method_storage
from shipping.method.rate import ShippingRate
from shipping.shipment.rates_event import RatesSubscriber, ShippingRatesEvent

logger = structlog.get_logger(__name__)


class ShipmentManager:
    def __init__(self, method_storage=None, subscribers: list[RatesSubscriber] | None = None):
        self._method_storage = method_storage
        self.subscribers: list[RatesSubscriber] = list(subscribers or [])

    @property
    def method_storage(self):
        return self._method_storage or get_shipping_method_storage()

    def add_subscriber(self, subscriber: RatesSubscriber) -> None:
        self.subscribers.append(subscriber)

    def calculate_rates(self, shipment, order) -> dict[str, ShippingRate]:
        """Calculate the rates of every shipping method available for the shipment.

        A method whose provider fails is logged and skipped; the others still
        contribute. Each method's rates are sorted by original amount, cheapest
        first, and merged in method order, keyed by rate id.
        """
        all_rates: dict[str, ShippingRate] = {}
        for shipping_method in self.method_storage.load_multiple_for_shipment(order, shipment):
            try:
                rates = shipping_method.plugin.calculate_rates(shipment)
            except Exception as exc:
                logger.bind(method_name=shipping_method.name).error(
                    "Exception occurred when calculating rates",
                    message=str(exc),
                )
                continue

            event = ShippingRatesEvent(
                rates=list(rates),
                shipping_method=shipping_method,
                shipment=shipment,
                order=order,
            )
            for subscriber in self.subscribers:
                subscriber.on_calculate(event)

            for rate in sorted(event.rates, key=lambda r: r.original_amount.to_decimal()):
                all_rates[rate.id] = rate

        return all_rates

    def select_default_rate(self, shipment, rates: dict[str, ShippingRate]) -> ShippingRate:
        """Pick the rate matching the shipment's current selection, or the first one."""
        if not rates:
            raise ValueError("Cannot select a default rate from an empty set of rates")

        candidates = list(rates.values())
        if shipment.shipping_method_id and shipment.shipping_service:
            for rate in candidates:
                if rate.shipping_method_id != shipment.shipping_method_id:
                    continue
                if rate.service.id != shipment.shipping_service:
                    continue
                return rate
        return candidates[0]

    def apply_rate(self, shipment, rate: ShippingRate) -> None:
        shipping_method = self.method_storage.load(rate.shipping_method_id)
        if shipping_method is None:
            raise ValueError(f"Unknown shipping method: {rate.shipping_method_id}")

        plugin = shipping_method.plugin
        if not shipment.package_type_id:
            package_type = plugin.get_default_package_type()
            if package_type is not None:
                shipment.package_type_id = package_type.id
        plugin.select_rate(shipment, rate)

"""Rate calculation hook.

``ShipmentManager`` hands every provider's batch of rates to its registered
rate subscribers before sorting them. Subscribers may replace rates in
``event.rates`` (rates are immutable, so a rewritten rate is a new instance)
or append new ones.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from shipping.method.method import ShippingMethod
from shipping.method.rate import ShippingRate


@dataclass
class ShippingRatesEvent:
    rates: list[ShippingRate]
    shipping_method: ShippingMethod
    shipment: object
    order: object = None
    extras: dict = field(default_factory=dict)


class RatesSubscriber(ABC):
    """Observer notified with each provider's calculated rates."""

    @abstractmethod
    def on_calculate(self, event: ShippingRatesEvent) -> None: ...

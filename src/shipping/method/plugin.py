"""Shipping method plugins — the rate providers behind each shipping method.

All plugins implement ``ShippingMethodPlugin``. A shipping method is bound to
one plugin through its plugin id; plugins are looked up in a string-keyed
registry so new providers can be added with ``register_plugin``.
"""

from abc import ABC, abstractmethod

from shipping.method import get_package_type_storage
from shipping.method.package_type import PackageType
from shipping.method.rate import ShippingRate, ShippingService
from shipping.shared.price import Price


class ShippingMethodPlugin(ABC):
    """Abstract interface for rate providers."""

    plugin_id: str = ""

    def __init__(self, configuration: dict | None = None, parent_method_id: str | None = None):
        self.configuration = {**self.default_configuration(), **(configuration or {})}
        self.parent_method_id = parent_method_id

    def default_configuration(self) -> dict:
        return {
            "default_package_type": "custom_box",
        }

    def get_services(self) -> dict[str, ShippingService]:
        return {}

    def get_default_package_type(self) -> PackageType | None:
        return get_package_type_storage().load(self.configuration["default_package_type"])

    @abstractmethod
    def calculate_rates(self, shipment) -> list[ShippingRate]:
        """Calculate the rates available for the given shipment.

        May return an empty list. Any exception raised here is treated by the
        caller as "no rates from this provider".
        """
        ...

    def select_rate(self, shipment, rate: ShippingRate) -> None:
        """Copy the selected rate onto the shipment."""
        shipment.shipping_method_id = self.parent_method_id
        shipment.shipping_service = rate.service.id
        shipment.original_amount = rate.original_amount
        shipment.amount = rate.amount

    def _configured_amount(self) -> Price:
        rate_amount = self.configuration.get("rate_amount")
        if not rate_amount:
            raise ValueError(f"Shipping method {self.parent_method_id} has no rate amount configured")
        return Price(number=str(rate_amount["number"]), currency_code=rate_amount["currency_code"])


class FlatRate(ShippingMethodPlugin):
    """A single rate with a fixed amount."""

    plugin_id = "flat_rate"

    def default_configuration(self) -> dict:
        return {
            **super().default_configuration(),
            "rate_label": "",
            "rate_description": "",
            "rate_amount": None,
        }

    def get_services(self) -> dict[str, ShippingService]:
        return {"default": ShippingService(id="default", label=self.configuration["rate_label"])}

    def calculate_rates(self, shipment) -> list[ShippingRate]:
        return [
            ShippingRate(
                shipping_method_id=self.parent_method_id,
                service=self.get_services()["default"],
                amount=self._configured_amount(),
                description=self.configuration["rate_description"],
            )
        ]


class FlatRatePerItem(FlatRate):
    """A fixed amount charged once per shipped unit."""

    plugin_id = "flat_rate_per_item"

    def calculate_rates(self, shipment) -> list[ShippingRate]:
        amount = self._configured_amount().multiply(shipment.get_total_quantity())
        return [
            ShippingRate(
                shipping_method_id=self.parent_method_id,
                service=self.get_services()["default"],
                amount=amount,
                description=self.configuration["rate_description"],
            )
        ]


class WeightRate(FlatRate):
    """A fixed amount per gram of the shipment's package type.

    Shipments without a package type get no rate. A package type weighing
    nothing is charged as one gram.
    """

    plugin_id = "weight_rate"

    def calculate_rates(self, shipment) -> list[ShippingRate]:
        if not shipment.package_type_id:
            return []
        package_type = get_package_type_storage().load(shipment.package_type_id)
        if package_type is None:
            return []

        weight = package_type.weight or 1
        return [
            ShippingRate(
                shipping_method_id=self.parent_method_id,
                service=self.get_services()["default"],
                amount=self._configured_amount().multiply(weight),
                description=self.configuration["rate_description"],
            )
        ]


_PLUGINS: dict[str, type[ShippingMethodPlugin]] = {
    FlatRate.plugin_id: FlatRate,
    FlatRatePerItem.plugin_id: FlatRatePerItem,
    WeightRate.plugin_id: WeightRate,
}


def register_plugin(plugin_id: str, plugin_class: type[ShippingMethodPlugin]) -> None:
    """Make a plugin class available under the given id."""
    _PLUGINS[plugin_id] = plugin_class


def unregister_plugin(plugin_id: str) -> None:
    _PLUGINS.pop(plugin_id, None)


def create_plugin(
    plugin_id: str,
    configuration: dict | None = None,
    parent_method_id: str | None = None,
) -> ShippingMethodPlugin:
    try:
        plugin_class = _PLUGINS[plugin_id]
    except KeyError:
        raise ValueError(f"Unknown shipping method plugin: {plugin_id}") from None
    return plugin_class(configuration, parent_method_id=parent_method_id)

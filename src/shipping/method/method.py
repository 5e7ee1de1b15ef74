"""Shipping method configuration and its in-memory storage."""

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import cached_property
from uuid import uuid4

from shipping.method.plugin import ShippingMethodPlugin, create_plugin


@dataclass
class ShippingMethod:
    """A configured shipping method, bound to a rate provider plugin.

    ``uuid`` is the stable identity promotion filters refer to. Conditions are
    callables receiving ``(order, shipment)``; all of them must hold for the
    method to be offered.
    """

    id: str
    name: str
    plugin_id: str
    configuration: dict = field(default_factory=dict)
    uuid: str = field(default_factory=lambda: str(uuid4()))
    stores: list[str] = field(default_factory=list)
    status: bool = True
    weight: int = 0
    conditions: list[Callable] = field(default_factory=list)

    @cached_property
    def plugin(self) -> ShippingMethodPlugin:
        return create_plugin(self.plugin_id, self.configuration, parent_method_id=self.id)

    def applies(self, order, shipment) -> bool:
        if not self.status:
            return False
        if self.stores and order.store_id not in self.stores:
            return False
        return all(condition(order, shipment) for condition in self.conditions)


class ShippingMethodStorage:
    """In-memory collection of shipping methods, kept in insertion order."""

    def __init__(self, methods: list[ShippingMethod] | None = None):
        self._methods: dict[str, ShippingMethod] = {}
        for method in methods or []:
            self.add(method)

    def add(self, method: ShippingMethod) -> ShippingMethod:
        self._methods[method.id] = method
        return method

    def delete(self, method_id: str) -> None:
        self._methods.pop(method_id, None)

    def load(self, method_id: str | None) -> ShippingMethod | None:
        if method_id is None:
            return None
        return self._methods.get(method_id)

    def load_by_uuid(self, uuid: str) -> ShippingMethod | None:
        return next((m for m in self._methods.values() if m.uuid == uuid), None)

    def load_multiple_for_shipment(self, order, shipment) -> list[ShippingMethod]:
        """Return the methods available for the shipment, lightest weight first."""
        methods = [m for m in self._methods.values() if m.applies(order, shipment)]
        return sorted(methods, key=lambda m: m.weight)

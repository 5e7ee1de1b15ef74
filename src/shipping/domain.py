"""Shipping bounded context — Shipment Pricing and Order Reconciliation.

Packs order items into shipments, prices them through the configured
shipping methods, and reconciles shipment-level adjustments (taxes,
promotions) back onto the order total. Uses CQRS: the Order aggregate owns
its shipments and every pricing pass runs synchronously within one request.
"""

from protean.domain import Domain

from shipping.utils.logging import configure_logging

configure_logging()

shipping = Domain(name="shipping")

"""Shows display-inclusive shipment promotions in the calculated rates.

For every rate, the rate is selected on a copy of the shipment, the
display-inclusive promotions are applied to a copy of the order, and the
discounted amount replaces the rate amount. The original amount is kept.
"""

from shipping.order.snapshot import snapshot_order_with_shipment
from shipping.promotion import get_promotion_storage
from shipping.promotion.offers import get_shipment_offer_ids
from shipping.shipment.rates_event import RatesSubscriber, ShippingRatesEvent


class PromotionSubscriber(RatesSubscriber):
    def __init__(self, promotion_storage=None):
        self._promotion_storage = promotion_storage

    @property
    def promotion_storage(self):
        return self._promotion_storage or get_promotion_storage()

    def on_calculate(self, event: ShippingRatesEvent) -> None:
        if not event.rates or event.order is None:
            return
        promotions = self.get_promotions(event.order)
        if not promotions:
            return

        fake_order, fake_shipment = snapshot_order_with_shipment(event.order, event.shipment)
        plugin = event.shipping_method.plugin
        discounted_rates = []
        for rate in event.rates:
            plugin.select_rate(fake_shipment, rate)
            fake_shipment.clear_adjustments()
            for promotion in promotions:
                if promotion.applies(fake_order):
                    promotion.apply(fake_order)
            discounted_rates.append(rate.with_amount(fake_shipment.amount))
        event.rates = discounted_rates

    def get_promotions(self, order) -> list:
        """Return the display-inclusive shipment promotions, including those reached through coupons."""
        promotions = self.promotion_storage.load_for_order(order, get_shipment_offer_ids())
        return [promotion for promotion in promotions if promotion.offer.is_display_inclusive()]

"""PackerManager — runs the packer chain and maps proposals onto shipments."""

from shipping.packer.packer import DefaultPacker, Packer, ProposedShipment
from shipping.shipment.shipment import Shipment

DEFAULT_PACKER_PRIORITY = -100


class PackerManager:
    """Ordered chain of packers; the first one that applies wins.

    Packers with a higher priority run first. Packers sharing a priority run
    in registration order. A DefaultPacker is registered with the lowest
    priority unless ``include_default`` is False.
    """

    def __init__(self, packers: list[Packer] | None = None, include_default: bool = True):
        self._packers: list[tuple[int, int, Packer]] = []
        if include_default:
            self.add_packer(DefaultPacker(), priority=DEFAULT_PACKER_PRIORITY)
        for packer in packers or []:
            self.add_packer(packer)

    def add_packer(self, packer: Packer, priority: int = 0) -> None:
        self._packers.append((priority, len(self._packers), packer))

    def get_packers(self) -> list[Packer]:
        return [packer for _, _, packer in sorted(self._packers, key=lambda p: (-p[0], p[1]))]

    def pack(self, order, profile) -> list[ProposedShipment]:
        for packer in self.get_packers():
            if packer.applies(order, profile):
                return packer.pack(order, profile)
        return []

    def pack_to_shipments(self, order, profile, shipments: list[Shipment]) -> tuple[list[Shipment], list[Shipment]]:
        """Pack the order, reusing the given shipments in order.

        Returns the populated shipments and the leftover shipments that are
        no longer needed. Every populated shipment is marked as owned by the
        packer.
        """
        remaining = list(shipments)
        populated = []
        for proposed_shipment in self.pack(order, profile):
            shipment = remaining.pop(0) if remaining else Shipment()
            shipment.populate_from_proposed_shipment(proposed_shipment)
            shipment.owned_by_packer = True
            populated.append(shipment)
        return populated, remaining

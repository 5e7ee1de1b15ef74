"""Local tax types — zones and rates used to tax order items."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TaxRate:
    id: str
    label: str
    percentage: str
    default: bool = False


@dataclass(frozen=True)
class TaxZone:
    id: str
    label: str
    display_label: str
    rates: list[TaxRate] = field(default_factory=list)

    def get_rate(self, rate_id: str) -> TaxRate | None:
        return next((rate for rate in self.rates if rate.id == rate_id), None)

    def get_default_rate(self) -> TaxRate | None:
        """Return the rate flagged as default, or the first rate."""
        return next((rate for rate in self.rates if rate.default), self.rates[0] if self.rates else None)


@dataclass(frozen=True)
class LocalTaxType:
    """A tax type whose zones and rates are known locally."""

    id: str
    label: str
    display_inclusive: bool = False
    zones: list[TaxZone] = field(default_factory=list)
    status: bool = False

    def get_zone(self, zone_id: str) -> TaxZone | None:
        return next((zone for zone in self.zones if zone.id == zone_id), None)


@dataclass(frozen=True)
class RemoteTaxType:
    """A tax type calculated by an external service; its rates are unknown here."""

    id: str
    label: str
    status: bool = False


class TaxTypeStorage:
    """In-memory registry of tax types, keyed by id."""

    def __init__(self, tax_types: list | None = None):
        self._tax_types: dict = {}
        for tax_type in tax_types or []:
            self.add(tax_type)

    def add(self, tax_type):
        self._tax_types[tax_type.id] = tax_type
        return tax_type

    def load(self, tax_type_id: str):
        return self._tax_types.get(tax_type_id)

    def load_enabled(self) -> list:
        return [tax_type for tax_type in self._tax_types.values() if tax_type.status]

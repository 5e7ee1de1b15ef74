"""Tax type storage factory."""

_tax_type_storage = None


def get_tax_type_storage():
    """Return the current tax type storage (singleton)."""
    global _tax_type_storage
    if _tax_type_storage is None:
        from shipping.tax.tax_type import TaxTypeStorage

        _tax_type_storage = TaxTypeStorage()
    return _tax_type_storage


def set_tax_type_storage(storage) -> None:
    """Override the active tax type storage (useful for tests)."""
    global _tax_type_storage
    _tax_type_storage = storage


def reset_tax_type_storage() -> None:
    """Reset to an empty tax type storage."""
    global _tax_type_storage
    _tax_type_storage = None

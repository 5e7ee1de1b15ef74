"""Promotion storage factory."""

_promotion_storage = None


def get_promotion_storage():
    """Return the current promotion storage (singleton)."""
    global _promotion_storage
    if _promotion_storage is None:
        from shipping.promotion.promotion import PromotionStorage

        _promotion_storage = PromotionStorage()
    return _promotion_storage


def set_promotion_storage(storage) -> None:
    """Override the active promotion storage (useful for tests)."""
    global _promotion_storage
    _promotion_storage = storage


def reset_promotion_storage() -> None:
    """Reset to an empty promotion storage."""
    global _promotion_storage
    _promotion_storage = None

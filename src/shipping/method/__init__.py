"""Shipping method and package type storage factories.

Provides get_*() / set_*() / reset_*() to swap the active storages:
- ShippingMethodStorage holds the configured shipping methods
- PackageTypeStorage holds the known package types
"""

_method_storage = None
_package_type_storage = None


def get_shipping_method_storage():
    """Return the current shipping method storage (singleton). Defaults to an empty one."""
    global _method_storage
    if _method_storage is None:
        from shipping.method.method import ShippingMethodStorage

        _method_storage = ShippingMethodStorage()
    return _method_storage


def set_shipping_method_storage(storage) -> None:
    """Override the active shipping method storage (useful for tests)."""
    global _method_storage
    _method_storage = storage


def reset_shipping_method_storage() -> None:
    """Reset to an empty shipping method storage."""
    global _method_storage
    _method_storage = None


def get_package_type_storage():
    """Return the current package type storage (singleton)."""
    global _package_type_storage
    if _package_type_storage is None:
        from shipping.method.package_type import PackageTypeStorage

        _package_type_storage = PackageTypeStorage()
    return _package_type_storage


def set_package_type_storage(storage) -> None:
    """Override the active package type storage (useful for tests)."""
    global _package_type_storage
    _package_type_storage = storage


def reset_package_type_storage() -> None:
    """Reset to the default package type storage."""
    global _package_type_storage
    _package_type_storage = None

"""Profile storage factory."""

_profile_storage = None


def get_profile_storage():
    """Return the current profile storage (singleton)."""
    global _profile_storage
    if _profile_storage is None:
        from shipping.profile.profile import ProfileStorage

        _profile_storage = ProfileStorage()
    return _profile_storage


def set_profile_storage(storage) -> None:
    """Override the active profile storage (useful for tests)."""
    global _profile_storage
    _profile_storage = storage


def reset_profile_storage() -> None:
    """Reset to an empty profile storage."""
    global _profile_storage
    _profile_storage = None

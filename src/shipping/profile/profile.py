"""Customer profile — the address a shipment is sent to."""

from protean.fields import String, ValueObject

from shipping.domain import shipping


@shipping.value_object(part_of="Profile")
class Address:
    """Postal address of a profile."""

    country_code = String(required=True, max_length=2)
    administrative_area = String(max_length=100)
    locality = String(max_length=100)
    postal_code = String(max_length=20)
    address_line1 = String(max_length=255)


@shipping.aggregate
class Profile:
    profile_type = String(max_length=50, default="customer")
    address = ValueObject(Address)


class ProfileStorage:
    """In-memory profile store, keyed by profile id."""

    def __init__(self):
        self._profiles: dict[str, Profile] = {}

    def create(self, **values) -> Profile:
        """Build a profile without saving it."""
        return Profile(**values)

    def save(self, profile: Profile) -> Profile:
        self._profiles[str(profile.id)] = profile
        return profile

    def load(self, profile_id) -> Profile | None:
        if profile_id is None:
            return None
        return self._profiles.get(str(profile_id))

    def delete(self, profile_id) -> None:
        self._profiles.pop(str(profile_id), None)

"""Package types — the boxes shipments are sent in."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PackageType:
    id: str
    label: str
    weight: float = 0.0  # grams
    length: float = 0.0  # millimetres
    width: float = 0.0
    height: float = 0.0


CUSTOM_BOX = PackageType(id="custom_box", label="Custom box")


class PackageTypeStorage:
    """In-memory registry of the known package types."""

    def __init__(self, package_types: list[PackageType] | None = None):
        self._package_types: dict[str, PackageType] = {CUSTOM_BOX.id: CUSTOM_BOX}
        for package_type in package_types or []:
            self.add(package_type)

    def add(self, package_type: PackageType) -> PackageType:
        self._package_types[package_type.id] = package_type
        return package_type

    def load(self, package_type_id: str) -> PackageType | None:
        return self._package_types.get(package_type_id)

    def load_all(self) -> list[PackageType]:
        return list(self._package_types.values())

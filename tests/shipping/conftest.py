import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def shipping_bed():
    from shipping.domain import shipping

    bed = DomainFixture(shipping)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(shipping_bed):
    with shipping_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def reset_storages():
    """Start every test from empty method, profile, tax and promotion storages."""
    from shipping.method import reset_package_type_storage, reset_shipping_method_storage
    from shipping.profile import reset_profile_storage
    from shipping.promotion import reset_promotion_storage
    from shipping.tax import reset_tax_type_storage

    yield

    reset_shipping_method_storage()
    reset_package_type_storage()
    reset_profile_storage()
    reset_tax_type_storage()
    reset_promotion_storage()

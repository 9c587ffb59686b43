import pytest
from ordering.catalog import get_catalog, reset_catalog, set_catalog
from ordering.catalog.in_memory import InMemoryCatalog
from ordering.delivery import reset_delivery_calculator, set_delivery_calculator
from ordering.delivery.flat_rate import FlatRateDeliveryCalculator
from ordering.gateway import get_gateway, reset_gateway, set_gateway
from ordering.gateway.fake_adapter import FakeGateway
from ordering.notifications import get_dispatcher, reset_dispatcher, set_dispatcher
from ordering.notifications.fake_dispatcher import FakeNotificationDispatcher
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


def _seeded_catalog() -> InMemoryCatalog:
    catalog = InMemoryCatalog()
    catalog.add_store("store-001", name="Riverside Kiosk")
    catalog.add_store("store-002", name="Central Market")
    catalog.add_product("prod-latte", "store-001", 5.00, name="Iced Latte", category_id="cat-coffee")
    catalog.add_product("prod-tea", "store-001", 3.50, name="Green Tea", category_id="cat-tea")
    catalog.add_product("prod-mocha", "store-002", 4.25, name="Mocha", category_id="cat-coffee")
    catalog.add_add_on("addon-shot", 0.75, name="Extra Shot")
    catalog.add_add_on("addon-pearls", 0.50, name="Tapioca Pearls")
    return catalog


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    set_catalog(_seeded_catalog())
    set_gateway(FakeGateway())
    set_dispatcher(FakeNotificationDispatcher())
    set_delivery_calculator(FlatRateDeliveryCalculator())

    with ordering_bed.domain_context():
        yield

    reset_catalog()
    reset_gateway()
    reset_dispatcher()
    reset_delivery_calculator()


@pytest.fixture()
def catalog() -> InMemoryCatalog:
    return get_catalog()


@pytest.fixture()
def gateway() -> FakeGateway:
    return get_gateway()


@pytest.fixture()
def dispatcher() -> FakeNotificationDispatcher:
    return get_dispatcher()

import pytest
from catalogue.ledger import set_ledger
from catalogue.ledger.memory_adapter import InMemoryStockLedger
from catalogue.ledger.port import Product
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.sink import NotificationSink, set_notification_sink
from ordering.checkout import set_checkout_service
from ordering.checkout.service import CheckoutService
from ordering.order.reconciliation import ReconciliationPolicy
from payments.gateway import set_gateway
from payments.gateway.fake_adapter import FakeGateway
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def ledger():
    ledger = InMemoryStockLedger()
    ledger.add_product(Product(id="P1", name="Ceramic Mug", price=4999, stock=5))
    ledger.add_product(Product(id="P2", name="Linen Apron", price=2550, stock=2))
    ledger.add_product(Product(id="P3", name="Last Teapot", price=8900, stock=1))
    set_ledger(ledger)
    return ledger


@pytest.fixture()
def gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def email():
    return FakeEmailAdapter()


@pytest.fixture()
def sink(email):
    sink = NotificationSink(channel=email)
    set_notification_sink(sink)
    yield sink
    sink.shutdown()


@pytest.fixture()
def service(gateway, ledger, sink):
    service = CheckoutService(gateway=gateway, ledger=ledger, notifier=sink, policy=ReconciliationPolicy.LOG_ONLY)
    set_checkout_service(service)
    return service


@pytest.fixture()
def signed_proof(gateway):
    def _proof(order_ref="fake_order_1", payment_ref="pay_1"):
        return {
            "provider_order_id": order_ref,
            "provider_payment_id": payment_ref,
            "signature": gateway.sign(order_ref, payment_ref),
        }

    return _proof

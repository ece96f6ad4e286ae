import pytest
from catalogue.ledger.memory_adapter import InMemoryStockLedger
from catalogue.ledger.port import Product


@pytest.fixture()
def products():
    return [
        Product(id="P1", name="Ceramic Mug", price=4999, stock=5),
        Product(id="P2", name="Linen Apron", price=2550, stock=2),
    ]


@pytest.fixture()
def memory_ledger(products):
    ledger = InMemoryStockLedger()
    for product in products:
        ledger.add_product(product)
    return ledger

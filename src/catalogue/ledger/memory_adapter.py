"""In-memory stock ledger for development and testing.

A single lock guards the product table, so check-and-decrement across all
lines of a commit happens as one step.

Commit records are kept for the life of the ledger, one per order, like the
``stock_commits`` table of the SQL ledger. They are what rejects a second
commit for the same payment reference once the order exists, so they are not
pruned when the order is persisted. Long-running processes should use the SQL
ledger.
"""

import threading
from dataclasses import replace

from catalogue.ledger.port import Product, StockLedger, StockLine
from shared.errors import ConflictError, InsufficientStock, ProductNotFound, ValidationError


class InMemoryStockLedger(StockLedger):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._products: dict[str, Product] = {}
        self._commits: dict[str, list[StockLine]] = {}

    def add_product(self, product: Product) -> Product:
        if product.stock < 0:
            raise ValidationError("Stock cannot be negative")
        with self._lock:
            self._products[product.id] = product
        return product

    def get_product(self, product_id: str) -> Product:
        with self._lock:
            product = self._products.get(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def decrement_stock(self, product_id: str, quantity: int) -> Product:
        _check_quantity(quantity)
        with self._lock:
            product = self._products.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            if product.stock < quantity:
                raise InsufficientStock(product_id, product.name)
            updated = replace(product, stock=product.stock - quantity)
            self._products[product_id] = updated
        return updated

    def commit(self, reference: str, lines: list[StockLine]) -> list[Product]:
        for line in lines:
            _check_quantity(line.quantity)

        with self._lock:
            if reference in self._commits:
                raise ConflictError(f"Stock already committed for {reference}")

            required = _aggregate(lines)
            for product_id, quantity in required.items():
                product = self._products.get(product_id)
                if product is None:
                    raise ProductNotFound(product_id)
                if product.stock < quantity:
                    raise InsufficientStock(product_id, product.name)

            updated = []
            for product_id, quantity in required.items():
                product = replace(self._products[product_id], stock=self._products[product_id].stock - quantity)
                self._products[product_id] = product
                updated.append(product)
            self._commits[reference] = list(lines)
        return updated

    def release(self, reference: str) -> None:
        with self._lock:
            lines = self._commits.pop(reference, None)
            if lines is None:
                return
            for product_id, quantity in _aggregate(lines).items():
                product = self._products.get(product_id)
                if product is not None:
                    self._products[product_id] = replace(product, stock=product.stock + quantity)

    def is_committed(self, reference: str) -> bool:
        with self._lock:
            return reference in self._commits

    def reset(self) -> None:
        with self._lock:
            self._products.clear()
            self._commits.clear()


def _check_quantity(quantity: int) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer")


def _aggregate(lines: list[StockLine]) -> dict[str, int]:
    # The same product may appear on several cart lines
    required: dict[str, int] = {}
    for line in lines:
        required[line.product_id] = required.get(line.product_id, 0) + line.quantity
    return required

"""Stock ledger port (abstract interface).

The ledger owns the authoritative price and stock count of every product.
Adapters must make stock decrements atomic and conditional at the storage
layer: a decrement either applies in full against sufficient stock or does
not apply at all.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Product:
    """A catalog product as seen by checkout. Price is in minor units."""

    id: str
    name: str
    price: int
    stock: int
    currency: str = "USD"


@dataclass(frozen=True)
class StockLine:
    product_id: str
    quantity: int


class StockLedger(ABC):
    """Abstract stock ledger interface."""

    @abstractmethod
    def add_product(self, product: Product) -> Product:
        """Insert or replace a product (catalog management hook)."""
        ...

    @abstractmethod
    def get_product(self, product_id: str) -> Product:
        """Return the product, raising ProductNotFound if absent."""
        ...

    @abstractmethod
    def decrement_stock(self, product_id: str, quantity: int) -> Product:
        """Decrement one product's stock if at least ``quantity`` is available."""
        ...

    @abstractmethod
    def commit(self, reference: str, lines: list[StockLine]) -> list[Product]:
        """Decrement stock for every line as a single atomic unit.

        Raises InsufficientStock (nothing applied) if any line cannot be
        satisfied, and ConflictError if ``reference`` was already committed.
        """
        ...

    @abstractmethod
    def release(self, reference: str) -> None:
        """Return the stock taken by a commit and forget the reference."""
        ...

    @abstractmethod
    def is_committed(self, reference: str) -> bool:
        ...

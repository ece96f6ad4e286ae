"""Order assembler: re-prices a cart from the catalogue and checks stock.

The assembler never trusts client prices and never mutates stock: it returns
the priced line items and the total for the checkout service to commit.
"""

from dataclasses import dataclass, field

from catalogue.ledger import get_ledger
from catalogue.ledger.port import StockLedger, StockLine
from shared.errors import EmptyCart, InsufficientStock, MissingShippingAddress, ValidationError


@dataclass(frozen=True)
class AssembledItem:
    product_id: str
    product_name: str
    quantity: int
    price: int  # unit price, minor units

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": self.price,
        }


@dataclass(frozen=True)
class AssembledOrder:
    items: list[AssembledItem] = field(default_factory=list)
    total: int = 0
    currency: str = "USD"

    @property
    def stock_lines(self) -> list[StockLine]:
        return [StockLine(product_id=item.product_id, quantity=item.quantity) for item in self.items]


class OrderAssembler:
    def __init__(self, ledger: StockLedger | None = None):
        self._ledger = ledger

    @property
    def ledger(self) -> StockLedger:
        return self._ledger or get_ledger()

    def quote(self, cart_items) -> AssembledOrder:
        """Price a cart against current catalogue data without a shipping address."""
        if not cart_items:
            raise EmptyCart()

        items = []
        currencies = set()
        requested: dict[str, int] = {}
        for line in cart_items:
            product_id, quantity = _read_line(line)
            product = self.ledger.get_product(product_id)

            # Stock is checked against the cumulative quantity of repeated lines
            requested[product_id] = requested.get(product_id, 0) + quantity
            if product.stock < requested[product_id]:
                raise InsufficientStock(product.id, product.name)

            currencies.add(product.currency)
            items.append(
                AssembledItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    price=product.price,
                )
            )

        if len(currencies) > 1:
            raise ValidationError("All products in an order must share one currency")

        return AssembledOrder(
            items=items,
            total=sum(item.line_total for item in items),
            currency=currencies.pop(),
        )

    def assemble(self, user_id, cart_items, shipping_address) -> AssembledOrder:
        if not cart_items:
            raise EmptyCart()
        if not shipping_address or not str(shipping_address).strip():
            raise MissingShippingAddress()
        return self.quote(cart_items)


def _read_line(line) -> tuple[str, int]:
    """Accept cart lines as dicts (``product_id``/``productId``) or StockLine-like objects."""
    if isinstance(line, dict):
        product_id = line.get("product_id", line.get("productId"))
        quantity = line.get("quantity")
    else:
        product_id = getattr(line, "product_id", None)
        quantity = getattr(line, "quantity", None)

    if not product_id:
        raise ValidationError("Each item requires a product id")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(f"Quantity must be a positive integer for product: {product_id}")
    return str(product_id), quantity

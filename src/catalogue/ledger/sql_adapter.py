"""SQLAlchemy stock ledger.

Each decrement is a conditional UPDATE (``stock >= :quantity``); a statement
that affects no rows means the stock was not there. A commit runs all of its
UPDATEs and the insert into ``stock_commits`` in one transaction, so a
shortfall on any line or a repeated reference rolls everything back.
"""

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from catalogue.ledger.port import Product, StockLedger, StockLine
from shared.errors import ConflictError, InsufficientStock, ProductNotFound, ValidationError

metadata = MetaData()

products_table = Table(
    "products",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("price", Integer, nullable=False),
    Column("currency", String(3), nullable=False, default="USD"),
    Column("stock", Integer, nullable=False),
)

stock_commits_table = Table(
    "stock_commits",
    metadata,
    Column("reference", String(255), primary_key=True),
)

stock_commit_lines_table = Table(
    "stock_commit_lines",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("reference", String(255), ForeignKey("stock_commits.reference"), nullable=False),
    Column("product_id", String(64), nullable=False),
    Column("quantity", Integer, nullable=False),
)


class SqlStockLedger(StockLedger):
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "SqlStockLedger":
        connect_args = {}
        if database_url.startswith("sqlite"):
            connect_args = {"check_same_thread": False, "timeout": 30}
        return cls(create_engine(database_url, connect_args=connect_args))

    def setup_db(self) -> None:
        metadata.create_all(self.engine)

    def drop_db(self) -> None:
        metadata.drop_all(self.engine)

    def add_product(self, product: Product) -> Product:
        if product.stock < 0:
            raise ValidationError("Stock cannot be negative")
        with self.engine.begin() as conn:
            conn.execute(delete(products_table).where(products_table.c.id == product.id))
            conn.execute(
                insert(products_table).values(
                    id=product.id,
                    name=product.name,
                    price=product.price,
                    currency=product.currency,
                    stock=product.stock,
                )
            )
        return product

    def get_product(self, product_id: str) -> Product:
        with self.engine.connect() as conn:
            return self._fetch(conn, product_id)

    def decrement_stock(self, product_id: str, quantity: int) -> Product:
        _check_quantity(quantity)
        with self.engine.begin() as conn:
            self._decrement(conn, product_id, quantity)
            return self._fetch(conn, product_id)

    def commit(self, reference: str, lines: list[StockLine]) -> list[Product]:
        for line in lines:
            _check_quantity(line.quantity)

        try:
            with self.engine.begin() as conn:
                # Claim the reference first: it is a write, so the transaction
                # takes the write lock before touching any stock rows.
                conn.execute(insert(stock_commits_table).values(reference=reference))
                for line in lines:
                    self._decrement(conn, line.product_id, line.quantity)
                    conn.execute(
                        insert(stock_commit_lines_table).values(
                            reference=reference,
                            product_id=line.product_id,
                            quantity=line.quantity,
                        )
                    )
                product_ids = list(dict.fromkeys(line.product_id for line in lines))
                return [self._fetch(conn, product_id) for product_id in product_ids]
        except IntegrityError:
            raise ConflictError(f"Stock already committed for {reference}") from None

    def release(self, reference: str) -> None:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(stock_commit_lines_table.c.product_id, stock_commit_lines_table.c.quantity).where(
                    stock_commit_lines_table.c.reference == reference
                )
            ).all()
            for product_id, quantity in rows:
                conn.execute(
                    update(products_table)
                    .where(products_table.c.id == product_id)
                    .values(stock=products_table.c.stock + quantity)
                )
            conn.execute(delete(stock_commit_lines_table).where(stock_commit_lines_table.c.reference == reference))
            conn.execute(delete(stock_commits_table).where(stock_commits_table.c.reference == reference))

    def is_committed(self, reference: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(stock_commits_table.c.reference).where(stock_commits_table.c.reference == reference)
            ).first()
        return row is not None

    def _decrement(self, conn, product_id: str, quantity: int) -> None:
        result = conn.execute(
            update(products_table)
            .where(products_table.c.id == product_id)
            .where(products_table.c.stock >= quantity)
            .values(stock=products_table.c.stock - quantity)
        )
        if result.rowcount == 0:
            product = self._fetch(conn, product_id)
            raise InsufficientStock(product.id, product.name)

    def _fetch(self, conn, product_id: str) -> Product:
        row = conn.execute(select(products_table).where(products_table.c.id == product_id)).mappings().first()
        if row is None:
            raise ProductNotFound(product_id)
        return Product(
            id=row["id"],
            name=row["name"],
            price=row["price"],
            stock=row["stock"],
            currency=row["currency"],
        )


def _check_quantity(quantity: int) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer")

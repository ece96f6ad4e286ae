"""Stock ledger factory.

Provides get_ledger() / set_ledger() / reset_ledger() to swap implementations:
- InMemoryStockLedger by default
- SqlStockLedger when STOCK_LEDGER_URL is set
"""

import os

from catalogue.ledger.port import StockLedger

_current_ledger: StockLedger | None = None


def get_ledger() -> StockLedger:
    """Return the current stock ledger, building it on first use."""
    global _current_ledger
    if _current_ledger is None:
        database_url = os.environ.get("STOCK_LEDGER_URL")
        if database_url:
            from catalogue.ledger.sql_adapter import SqlStockLedger

            ledger = SqlStockLedger.from_url(database_url)
            ledger.setup_db()
            _current_ledger = ledger
        else:
            from catalogue.ledger.memory_adapter import InMemoryStockLedger

            _current_ledger = InMemoryStockLedger()
    return _current_ledger


def set_ledger(ledger: StockLedger) -> None:
    """Override the active stock ledger (useful for tests)."""
    global _current_ledger
    _current_ledger = ledger


def reset_ledger() -> None:
    """Reset to the default ledger."""
    global _current_ledger
    _current_ledger = None

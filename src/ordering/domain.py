"""Ordering bounded context: order placement, status lifecycle and payment reconciliation.

Orders are persisted through the Protean repository. Stock is owned by the
catalogue stock ledger and payment proof by the payments gateway; the
checkout service in ``ordering.checkout`` coordinates all three.
"""

from protean.domain import Domain

ordering = Domain(name="ordering")

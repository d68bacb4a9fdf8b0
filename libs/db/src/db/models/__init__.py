"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the ledger models used by ``payment_signals``.
"""

from .ledger import Base, PsCategory, PsPaymentReminder, PsTransaction

__all__ = [
    "Base",
    "PsCategory",
    "PsPaymentReminder",
    "PsTransaction",
]

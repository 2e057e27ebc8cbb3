"""
Ledger spend views: monthly, daily, per-category and per-account reporting
datasets derived from a transaction ledger.
"""

from .dates import InvalidRangeError, generate
from .ledger import LedgerTables, MissingReferenceError, validate_ledger
from .views import VIEW_NAMES, ViewSet, materialize

__all__ = [
    "InvalidRangeError",
    "generate",
    "LedgerTables",
    "MissingReferenceError",
    "validate_ledger",
    "VIEW_NAMES",
    "ViewSet",
    "materialize",
]

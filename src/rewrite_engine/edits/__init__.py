"""Edit batches, the inverse-building engine, and transaction history."""

from .batch import Edit, EditBatch, apply_batch
from .history import TransactionHistory

__all__ = ["Edit", "EditBatch", "apply_batch", "TransactionHistory"]

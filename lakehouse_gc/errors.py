from __future__ import annotations


class LakehouseGcError(Exception):
    """Base error for lakehouse_gc."""


class StorageIOError(LakehouseGcError):
    """Raised when a storage location or backend cannot be used at all.

    The underlying cause is chained (``raise ... from exc``).
    """

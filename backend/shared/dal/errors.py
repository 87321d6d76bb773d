"""Errors raised by repository implementations."""


class StorageError(Exception):
    """The underlying store failed to complete a read or write."""

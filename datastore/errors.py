from __future__ import annotations


class DataStoreError(Exception):
    """Base class for errors raised by the store."""


class InvalidArgumentError(DataStoreError, TypeError):
    """A caller passed something the store cannot work with."""


class InvalidKeyError(InvalidArgumentError):
    def __init__(self, key: object) -> None:
        super().__init__(f"expected a string key, got {type(key).__name__}: {key!r}")
        self.key = key


class StoreWriteError(DataStoreError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"datastore: could not write {path}: {reason}")
        self.path = path

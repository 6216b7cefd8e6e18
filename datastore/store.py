from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .accessor import (
    MISSING,
    Kind,
    deep_copy,
    delete_value,
    get_value,
    has_own,
    has_value,
    kind_of,
    set_value,
)
from .config import Settings, get_settings
from .errors import InvalidArgumentError, StoreWriteError
from .model import DataModel
from .paths import ensure_key, escape_segment
from .scheduler import Policy, TimerFactory, WriteScheduler
from .storage import LocalFileSystem

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def resolve_path(
    name: str,
    path: Optional[PathLike] = None,
    home: Optional[PathLike] = None,
    base: Optional[PathLike] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Work out where the store file lives.

    An explicit ``path`` wins. Otherwise the file is ``<base>/<name>.json``;
    a relative ``base`` is taken relative to ``home``.
    """
    if path:
        return os.path.abspath(os.fspath(path))
    settings = settings or get_settings()
    home_dir = os.path.expanduser(os.fspath(home or settings.home or Path.home()))
    base_dir = os.path.join(home_dir, os.path.expanduser(os.fspath(base or settings.base)))
    return os.path.abspath(os.path.join(base_dir, f"{name}.json"))


def dumps(document: Any, indent: Optional[int]) -> str:
    if indent:
        return json.dumps(document, indent=indent, ensure_ascii=False)
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


def _strict_equal(a: Any, b: Any) -> bool:
    # keeps 1, 1.0 and True apart
    return type(a) is type(b) and a == b


class Store:
    """A JSON document on disk, addressed with dotted keys.

    ```python
    store = Store("app", path="data.json")
    store.set("a.b", 1)
    store.get("a")
    #=> {"b": 1}
    ```
    """

    def __init__(
        self,
        name: str,
        *,
        path: Optional[PathLike] = None,
        home: Optional[PathLike] = None,
        base: Optional[PathLike] = None,
        debounce: Optional[int] = None,
        indent: Optional[int] = None,
        namespace: Optional[str] = None,
        defaults: Optional[Mapping[str, Any]] = None,
        settings: Optional[Settings] = None,
        fs: Optional[LocalFileSystem] = None,
        timer: Optional[TimerFactory] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        policy: Union[Policy, str] = Policy.RESET,
    ) -> None:
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(f"datastore expects a non-empty string name, got {name!r}")
        if namespace is not None and (not isinstance(namespace, str) or not namespace):
            raise InvalidArgumentError(f"namespace must be a non-empty string, got {namespace!r}")
        if defaults is not None and kind_of(defaults) is not Kind.MAPPING:
            raise InvalidArgumentError("defaults must be a mapping")

        settings = settings or get_settings()
        self.name = name
        self.namespace = namespace
        self.path = resolve_path(name, path=path, home=home, base=base, settings=settings)
        self.indent = settings.indent if indent is None else indent
        self.defaults: Dict[str, Any] = dict(defaults or {})
        self.fs = fs or LocalFileSystem(write_retries=settings.write_retries)

        self._model = DataModel(self.path, self.fs, seed=self._seed_defaults)
        self._scheduler = WriteScheduler(
            self.json,
            self._write_content,
            debounce_ms=settings.debounce_ms if debounce is None else debounce,
            timer=timer,
            on_error=on_error,
            policy=Policy(policy),
        )
        logger.debug("Store %s backed by %s (debounce=%sms)", name, self.path, self.debounce)

    def __repr__(self) -> str:
        return f"Store(name={self.name!r}, path={self.path!r})"

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- document -----------------------------------------------------

    @property
    def data(self) -> Dict[str, Any]:
        return self._model.load_or_get_document()

    @data.setter
    def data(self, document: Mapping[str, Any]) -> None:
        if kind_of(document) is not Kind.MAPPING:
            raise InvalidArgumentError("store data must be a mapping")
        self._model.replace_document(document)
        self.save()

    @property
    def debounce(self) -> int:
        return self._scheduler.debounce_ms

    @debounce.setter
    def debounce(self, value: int) -> None:
        self._scheduler.debounce_ms = value

    @property
    def pending(self) -> bool:
        return self._scheduler.pending

    def _seed_defaults(self, document: Dict[str, Any]) -> None:
        if not self.defaults:
            return
        target = document
        if self.namespace:
            target = document.setdefault(self.namespace, {})
            if kind_of(target) is not Kind.MAPPING:
                return
        for key, value in self.defaults.items():
            if key not in target:
                target[key] = deep_copy(value)

    def _key(self, key: str) -> str:
        ensure_key(key)
        if self.namespace:
            return f"{escape_segment(self.namespace)}.{key}" if key else ""
        return key

    def _view(self) -> Any:
        document = self.data
        if self.namespace:
            return document.get(self.namespace)
        return document

    def _scope(self, key: str) -> Optional[Dict[str, Any]]:
        """The mapping an unprefixed ``key`` is relative to, if there is one."""
        ensure_key(key)
        view = self._view()
        return view if kind_of(view) is Kind.MAPPING else None

    # -- reads --------------------------------------------------------

    def get(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Return the value at ``key``, or the whole document when no key is given."""
        if key is None:
            view = self._view()
            return default if view is None else view
        return get_value(self.data, self._key(key), default)

    def has(self, key: str) -> bool:
        return has_value(self.data, self._key(key))

    def has_own(self, key: str) -> bool:
        scope = self._scope(key)
        return scope is not None and has_own(scope, key)

    def clone(self) -> Dict[str, Any]:
        view = self._view()
        return deep_copy(view) if kind_of(view) is Kind.MAPPING else {}

    def json(self, indent: Optional[int] = None) -> str:
        return dumps(self.data, self.indent if indent is None else indent)

    # -- writes -------------------------------------------------------

    def set(self, key: Union[str, Mapping[str, Any], List[Mapping[str, Any]]], value: Any = MISSING) -> "Store":
        """Assign ``value`` at ``key`` and save.

        ``key`` may also be a mapping, whose own property names are taken
        literally, or a list of such mappings applied in order. Setting
        :data:`MISSING` deletes the key.
        """
        if kind_of(key) is Kind.MAPPING:
            changed = self._assign_all([key])
        elif isinstance(key, list):
            changed = self._assign_all(key)
        else:
            if value is MISSING:
                self.delete(key)
                return self
            changed = self._assign(key, value)
        if changed:
            self.save()
        return self

    def _assign_all(self, mappings: Iterable[Any]) -> bool:
        changed = False
        for mapping in mappings:
            if kind_of(mapping) is not Kind.MAPPING:
                raise InvalidArgumentError(f"expected a mapping, got {type(mapping).__name__}")
            for name, value in mapping.items():
                key = escape_segment(name)
                if value is MISSING:
                    changed = self._delete_one(key) or changed
                else:
                    changed = self._assign(key, value) or changed
        return changed

    def _assign(self, key: str, value: Any) -> bool:
        if callable(value):
            raise InvalidArgumentError(f"cannot store functions as values: {value!r}")
        return set_value(self.data, self._key(key), value)

    def merge(self, key: str, value: Mapping[str, Any]) -> "Store":
        """Shallow-merge ``value`` into the mapping stored at ``key``."""
        if kind_of(value) is not Kind.MAPPING:
            raise InvalidArgumentError("merge expects a mapping value")
        existing = self.get(key)
        if kind_of(existing) is Kind.MAPPING:
            merged = dict(existing)
            merged.update(value)
        else:
            merged = dict(value)
        return self.set(key, merged)

    def union(self, key: str, *values: Any) -> "Store":
        """Append ``values`` to the list at ``key``, skipping duplicates.

        Two items are duplicates when they have the same type and compare
        equal, so ``1`` and ``True`` are both kept while two equal dicts
        collapse into one.
        """
        existing = self.get(key, MISSING)
        if existing is MISSING or existing is None or existing == "":
            items: List[Any] = []
        elif kind_of(existing) is Kind.SEQUENCE:
            items = list(existing)
        else:
            items = [existing]
        for value in values:
            if kind_of(value) is Kind.SEQUENCE:
                items.extend(value)
            else:
                items.append(value)

        unique: List[Any] = []
        for item in items:
            if not any(_strict_equal(item, seen) for seen in unique):
                unique.append(item)
        return self.set(key, unique)

    def delete(self, *keys: str) -> bool:
        """Delete each of ``keys``. Saves, and returns True, only if something went."""
        deleted = False
        for key in keys:
            deleted = self._delete_one(key) or deleted
        if deleted:
            self.save()
        return deleted

    def _delete_one(self, key: str) -> bool:
        scope = self._scope(key)
        return scope is not None and delete_value(scope, key)

    del_ = delete

    def clear(self) -> "Store":
        if self.namespace:
            self.data[self.namespace] = {}
        else:
            self._model.replace_document({})
        self.save()
        return self

    # -- lifecycle ----------------------------------------------------

    def load(self) -> Dict[str, Any]:
        """Drop the in-memory document and read it again from disk."""
        return self._model.reload()

    def save(self) -> None:
        self._scheduler.save()

    def write_file(self) -> None:
        self._scheduler.write_file()

    def flush(self) -> bool:
        return self._scheduler.flush()

    def close(self) -> None:
        self._scheduler.flush()

    def unlink(self) -> bool:
        """Cancel any pending write and delete the store file."""
        self._scheduler.cancel()
        return self.fs.remove(self.path)

    def _write_content(self, content: str) -> None:
        try:
            self.fs.write_text(self.path, content)
        except OSError as e:
            raise StoreWriteError(self.path, str(e)) from e

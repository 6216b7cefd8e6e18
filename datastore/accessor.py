from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .paths import parse_key, strip_escapes


class _Missing:
    """Marker for a value that is not there at all (``None`` is JSON null)."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Missing":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_Missing":
        return self


MISSING: Any = _Missing()


class Kind(Enum):
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def kind_of(value: Any) -> Kind:
    if isinstance(value, Mapping):
        return Kind.MAPPING
    if isinstance(value, (list, tuple)):
        return Kind.SEQUENCE
    return Kind.SCALAR


def deep_copy(value: Any) -> Any:
    """Copy mappings and sequences recursively; leave everything else as is."""
    kind = kind_of(value)
    if kind is Kind.MAPPING:
        return {k: deep_copy(v) for k, v in value.items()}
    if kind is Kind.SEQUENCE:
        return [deep_copy(v) for v in value]
    return value


def _walk(root: Mapping[str, Any], segments: List[str]) -> Any:
    current: Any = root
    for segment in segments:
        if kind_of(current) is not Kind.MAPPING or segment not in current:
            return MISSING
        current = current[segment]
    return current


def get_value(root: Mapping[str, Any], key: str, default: Any = MISSING) -> Any:
    segments = parse_key(key)
    if not segments:
        return default
    if len(segments) == 1:
        # literal property, possibly with escaped dots in its name
        return root.get(segments[0], default)
    value = _walk(root, segments)
    return default if value is MISSING else value


def set_value(root: Dict[str, Any], key: str, value: Any) -> bool:
    segments = parse_key(key)
    if not segments:
        return False
    current = root
    for segment in segments[:-1]:
        child = current.get(segment)
        if kind_of(child) is not Kind.MAPPING:
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value
    return True


def has_value(root: Mapping[str, Any], key: str) -> bool:
    return get_value(root, key) is not MISSING


def has_own(root: Mapping[str, Any], key: str) -> bool:
    segments = parse_key(key)
    if not segments:
        return False
    if strip_escapes(key) in root:
        return True
    parent = _walk(root, segments[:-1])
    return kind_of(parent) is Kind.MAPPING and segments[-1] in parent


def delete_value(root: Dict[str, Any], key: str) -> bool:
    """Remove the property at ``key``. Returns False when nothing was there."""
    segments = parse_key(key)
    if not segments:
        return False
    literal = strip_escapes(key)
    if literal in root:
        # a direct property whose name may contain dots
        del root[literal]
        return True
    parent = _walk(root, segments[:-1])
    if kind_of(parent) is not Kind.MAPPING or segments[-1] not in parent:
        return False
    del parent[segments[-1]]
    return True

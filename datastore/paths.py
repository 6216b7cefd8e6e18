"""Dotted key parsing.

A dotted key such as ``"a.b.c"`` addresses nested mappings. A backslash in
front of a dot keeps the dot inside the segment: ``"a\\.b.c"`` is the two
segments ``["a.b", "c"]``.
"""
from __future__ import annotations

import re
from typing import List

from .errors import InvalidKeyError

_UNESCAPED_DOT = re.compile(r"(?<!\\)\.")


def ensure_key(key: object) -> str:
    if not isinstance(key, str):
        raise InvalidKeyError(key)
    return key


def split_key(key: str) -> List[str]:
    """Split on unescaped dots. Escapes stay in the returned segments."""
    ensure_key(key)
    if not key:
        return []
    return _UNESCAPED_DOT.split(key)


def strip_escapes(segment: str) -> str:
    return segment.replace("\\.", ".")


def parse_key(key: str) -> List[str]:
    """Return the property names a dotted key walks through."""
    return [strip_escapes(segment) for segment in split_key(key)]


def escape_segment(name: str) -> str:
    return ensure_key(name).replace(".", "\\.")

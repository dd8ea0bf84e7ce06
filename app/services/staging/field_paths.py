"""Dot/bracket field paths into module props and overrides.

``hero.title``, ``items[2].label`` and ``items.2.label`` are all accepted.
Numeric segments address list positions; missing containers are created on
write as lists when the next segment is numeric and as objects otherwise.
"""

from __future__ import annotations

import copy
import re
from typing import Any

from app.core.exceptions import InvalidFieldPathError

_PATH_PATTERN = re.compile(r"^[^.\[\]\s]+(?:\.[^.\[\]\s]+|\[\d+\])*$")
_SEGMENT_SPLIT = re.compile(r"[.\[\]]")
MAX_LIST_INDEX = 1000

PathSegment = str | int


def parse_path(path: str) -> list[PathSegment]:
    """Split a path into segments; numeric segments become ints."""
    raw = (path or "").strip()
    if not raw or not _PATH_PATTERN.match(raw):
        raise InvalidFieldPathError(path)

    segments: list[PathSegment] = []
    for part in _SEGMENT_SPLIT.split(raw):
        if not part:
            continue
        if part.isdigit():
            index = int(part)
            if index > MAX_LIST_INDEX:
                raise InvalidFieldPathError(path)
            segments.append(index)
        else:
            segments.append(part)
    if not segments or isinstance(segments[0], int):
        raise InvalidFieldPathError(path)
    return segments


def root_key(path: str) -> str:
    return str(parse_path(path)[0])


def _child(container: Any, key: PathSegment) -> Any:
    if isinstance(container, list):
        if isinstance(key, int) and key < len(container):
            return container[key]
        return None
    return container.get(str(key))


def _assign(container: Any, key: PathSegment, value: Any, path: str) -> None:
    if isinstance(container, list):
        if not isinstance(key, int):
            raise InvalidFieldPathError(path)
        while len(container) <= key:
            container.append(None)
        container[key] = value
        return
    container[str(key)] = value


def set_at_path(obj: dict[str, Any] | None, path: str, value: Any) -> dict[str, Any]:
    """Return a deep copy of ``obj`` with ``value`` written at ``path``."""
    segments = parse_path(path)
    result: dict[str, Any] = copy.deepcopy(obj) if isinstance(obj, dict) else {}

    cursor: Any = result
    for position, segment in enumerate(segments[:-1]):
        child = _child(cursor, segment)
        if not isinstance(child, (dict, list)):
            child = [] if isinstance(segments[position + 1], int) else {}
            _assign(cursor, segment, child, path)
        cursor = child

    _assign(cursor, segments[-1], value, path)
    return result


def get_at_path(obj: dict[str, Any] | None, path: str) -> Any:
    """Read the value at ``path``; missing segments yield None."""
    cursor: Any = obj or {}
    for segment in parse_path(path):
        if not isinstance(cursor, (dict, list)):
            return None
        cursor = _child(cursor, segment)
    return cursor

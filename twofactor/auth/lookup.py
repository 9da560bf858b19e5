"""
Nested field lookup for loosely structured request payloads.

Field paths use bracket notation, so ``user[profile][id]`` reads
``payload["user"]["profile"]["id"]``. A plain name is a single segment.
"""
from collections.abc import Mapping
from typing import Any, List, Optional


def split_path(path: str) -> List[str]:
    """Split a bracket-delimited field path into its segments."""
    return path.replace("]", "").split("[")


def _is_composite(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _child(container: Any, segment: str) -> Any:
    if isinstance(container, Mapping):
        return container.get(segment)
    if isinstance(container, (list, tuple)) and segment.isdigit():
        index = int(segment)
        if index < len(container):
            return container[index]
    return None


def lookup(container: Any, path: str) -> Optional[Any]:
    """
    Read a value from a nested container.

    The walk stops early: an absent value yields None, and the first
    non-composite value is returned even when segments remain, so
    ``lookup({"a": "x"}, "a[b]")`` is ``"x"``. A walk that ends on a
    mapping or list yields None.

    Args:
        container: Mapping (or list) to read from; None is allowed.
        path: Field path such as ``"username"`` or ``"user[name]"``.

    Returns:
        The value found, or None.
    """
    if container is None:
        return None

    current = container
    for segment in split_path(path):
        value = _child(current, segment)
        if value is None:
            return None
        if not _is_composite(value):
            return value
        current = value

    return None

"""Dotted-path lookup into nested VC content."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


class PathResolutionError(Exception):
    """Raised when a path walks into a scalar where an object was expected."""
    pass


def resolve_path(content: Any, path: str | None) -> Any:
    """Return the value at ``path`` inside ``content``.

    Segments are separated by dots. List segments may be addressed by index
    (``"marks.0.subject"``). Any missing segment yields ``None``.

    Args:
        content: Decoded document content (normally a dict)
        path: Dot-delimited path, e.g. ``"credentialSubject.address.state"``

    Returns:
        The nested value, or None if the path is empty or any segment is missing

    Raises:
        PathResolutionError: If the content root, or an intermediate value,
            is a scalar that cannot be descended into
    """
    if not path:
        return None

    if not isinstance(content, Mapping):
        raise PathResolutionError(
            f"Cannot resolve '{path}' on {type(content).__name__} content"
        )

    current: Any = content
    for segment in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(segment)
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not segment.isdigit():
                return None
            index = int(segment)
            current = current[index] if index < len(current) else None
        else:
            raise PathResolutionError(
                f"Segment '{segment}' of '{path}' reached a {type(current).__name__} value"
            )

    return current

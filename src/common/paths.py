"""Dotted-path lookups into decoded JSON documents."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class PathError(LookupError):
    """Base class for failed document lookups."""


class NilRootError(PathError):
    """Raised when the document itself is missing."""


class KeyNotFoundError(PathError):
    """Raised when a path segment is absent."""


class TypeMismatchError(PathError):
    """Raised when a value exists but has the wrong shape."""


def get_value(root: Optional[Dict[str, Any]], path: str) -> Any:
    """Return ``root[path]`` where ``path`` is a dot separated string."""

    if root is None:
        raise NilRootError("root is nil")
    if not isinstance(root, dict):
        raise TypeMismatchError(f"root is not a mapping: {type(root).__name__}")

    key, *rest = path.split(".")
    if key not in root:
        raise KeyNotFoundError(f"key {key} not found")
    value = root[key]
    if not rest:
        return value

    if not isinstance(value, dict):
        raise TypeMismatchError(f"value at key {key} is not a mapping")
    return get_value(value, ".".join(rest))


def get_map(root: Optional[Dict[str, Any]], path: str) -> Dict[str, Any]:
    value = get_value(root, path)
    if not isinstance(value, dict):
        raise TypeMismatchError(f"value at path {path} is not a mapping")
    return value


def get_list(root: Optional[Dict[str, Any]], path: str) -> List[Any]:
    value = get_value(root, path)
    if not isinstance(value, list):
        raise TypeMismatchError(f"value at path {path} is not a list")
    return value


def get_string(root: Optional[Dict[str, Any]], path: str) -> str:
    value = get_value(root, path)
    if not isinstance(value, str):
        raise TypeMismatchError(f"value at path {path} is not a string")
    return value


__all__ = [
    "KeyNotFoundError",
    "NilRootError",
    "PathError",
    "TypeMismatchError",
    "get_list",
    "get_map",
    "get_string",
    "get_value",
]

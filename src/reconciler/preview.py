"""Merge patch previews for reconciled ServiceAccounts.

The three-way computation follows the Kubernetes client behaviour: additions
and changes are taken from the ``current -> modified`` merge patch, deletions
from the ``original -> modified`` merge patch, and the two halves must not
disagree on any field.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, List, Optional, Union

import json_merge_patch
import jsonpatch

logger = logging.getLogger(__name__)

JsonInput = Union[bytes, str, None]


class PatchComputationError(Exception):
    """Raised when a merge patch cannot be computed from the inputs."""


class PatchConflictError(PatchComputationError):
    """Raised when additions and deletions touch the same field differently."""


def _decode(raw: JsonInput, label: str) -> Optional[Dict[str, Any]]:
    if raw is None or (isinstance(raw, (bytes, str)) and not raw.strip()):
        return {}
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise PatchComputationError(f"{label} is not valid JSON: {exc}") from exc
    if value is None:
        return None
    if not isinstance(value, dict):
        raise PatchComputationError(f"{label} must be a JSON object, got {type(value).__name__}")
    return value


def _filter_nulls(patch: Dict[str, Any], *, keep_null: bool) -> Dict[str, Any]:
    """Keep only the deletions (``keep_null``) or only the additions of ``patch``."""

    filtered: Dict[str, Any] = {}
    for key, value in patch.items():
        if value is None:
            if keep_null:
                filtered[key] = None
            continue
        if isinstance(value, dict):
            # An explicitly empty mapping is a value, not an empty patch.
            if not value:
                if not keep_null:
                    filtered[key] = value
                continue
            nested = _filter_nulls(value, keep_null=keep_null)
            if nested:
                filtered[key] = nested
            continue
        # Lists and scalars are always replaced wholesale.
        if not keep_null:
            filtered[key] = value
    return filtered


def has_conflicts(left: Any, right: Any) -> bool:
    if isinstance(left, dict) and isinstance(right, dict):
        return any(key in right and has_conflicts(value, right[key]) for key, value in left.items())
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return True
        return any(has_conflicts(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return True
    return left != right


def create_three_way_merge_patch(
    original: Optional[Dict[str, Any]],
    modified: Optional[Dict[str, Any]],
    current: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    original = original or {}
    modified = modified or {}
    current = current or {}

    additions = _filter_nulls(json_merge_patch.create_patch(current, modified) or {}, keep_null=False)
    deletions = _filter_nulls(json_merge_patch.create_patch(original, modified) or {}, keep_null=True)
    if has_conflicts(additions, deletions):
        raise PatchConflictError(
            f"additions {json.dumps(additions, sort_keys=True)} conflict with "
            f"deletions {json.dumps(deletions, sort_keys=True)}"
        )
    return json_merge_patch.merge(copy.deepcopy(deletions), additions)


def preview_patch(original_raw: JsonInput, desired_raw: JsonInput) -> bytes:
    """Return the merge patch taking ``original_raw`` to ``desired_raw``.

    A null or missing desired document means nothing needs reconciling and
    yields the empty patch.
    """

    original = _decode(original_raw, "original")
    if original is None:
        raise PatchComputationError("original must be a JSON object, got null")
    if desired_raw is None:
        return b"{}"
    desired = _decode(desired_raw, "desired")
    if desired is None:
        return b"{}"

    patch = create_three_way_merge_patch(original, desired, None)
    logger.debug("Computed merge patch touching %d top-level field(s)", len(patch))
    return json.dumps(patch, sort_keys=True, separators=(",", ":")).encode("utf-8")


def preview_operations(
    original: Dict[str, Any], desired: Optional[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    if desired is None:
        return []
    return list(jsonpatch.make_patch(original, desired).patch)


__all__ = [
    "PatchComputationError",
    "PatchConflictError",
    "create_three_way_merge_patch",
    "has_conflicts",
    "preview_operations",
    "preview_patch",
]

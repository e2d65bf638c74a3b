from __future__ import annotations

import logging
from typing import Any, Dict

from src.common.paths import NilRootError, PathError, get_map

logger = logging.getLogger(__name__)

KEPT_METADATA_KEYS = frozenset({"name", "namespace", "labels", "annotations"})


def normalize(doc: Dict[str, Any], *, strict: bool = True) -> Dict[str, Any]:
    """Strip volatile metadata and ``status`` from ``doc`` in place.

    Only ``name``, ``namespace``, ``labels`` and ``annotations`` survive under
    ``metadata``. With ``strict`` disabled a missing or malformed ``metadata``
    is logged and skipped instead of raised.
    """

    try:
        metadata = get_map(doc, "metadata")
    except NilRootError:
        raise
    except PathError as exc:
        if strict:
            raise
        logger.warning("Skipping metadata normalisation: %s", exc)
        metadata = None

    if metadata is not None:
        for key in [key for key in metadata if key not in KEPT_METADATA_KEYS]:
            del metadata[key]

    # Status should never be in a backup but drop it just in case.
    doc.pop("status", None)
    return doc


__all__ = ["KEPT_METADATA_KEYS", "normalize"]

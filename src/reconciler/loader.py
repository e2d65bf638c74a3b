from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from src.common.paths import NilRootError

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _ManifestLoader(yaml.SafeLoader):
    """Safe loader that leaves timestamps as the strings the API server sent."""


_ManifestLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class DocumentLoadError(Exception):
    """Raised when an input document cannot be read or decoded."""


def read_raw(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise DocumentLoadError(f"failed to read {path}: {exc}") from exc


def load_document(path: Path) -> Tuple[bytes, Dict[str, Any]]:
    """Read ``path`` and return its JSON bytes together with the decoded object.

    YAML files are re-serialised to JSON so the returned bytes can always be
    handed to the merge patch computation.
    """

    raw = read_raw(path)
    is_yaml = path.suffix.lower() in _YAML_SUFFIXES
    try:
        if is_yaml:
            document = yaml.load(raw, Loader=_ManifestLoader)
        else:
            document = json.loads(raw)
    except (yaml.YAMLError, ValueError) as exc:
        raise DocumentLoadError(f"failed to parse {path}: {exc}") from exc

    if document is None:
        raise NilRootError(f"{path} does not contain a document")
    if not isinstance(document, dict):
        raise DocumentLoadError(f"{path} must contain a JSON object, got {type(document).__name__}")

    if is_yaml:
        try:
            raw = json.dumps(document).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise DocumentLoadError(f"{path} cannot be represented as JSON: {exc}") from exc
    logger.debug("Loaded %s (%d bytes)", path, len(raw))
    return raw, document


__all__ = ["DocumentLoadError", "load_document", "read_raw"]

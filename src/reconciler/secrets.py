from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from src.common.paths import KeyNotFoundError, PathError, TypeMismatchError, get_list, get_string

from .normalize import normalize

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_PREFIX = "default-token-"


@dataclass
class Reconciliation:
    incluster: Dict[str, Any]
    backup: Dict[str, Any]
    secrets: List[Any]
    equal: bool
    desired: Optional[Dict[str, Any]] = None

    @property
    def needs_patch(self) -> bool:
        return self.desired is not None


def _secret_name(secret: Any, *, strict: bool) -> str:
    try:
        if not isinstance(secret, dict):
            raise TypeMismatchError(f"secret entry is not a mapping: {secret!r}")
        return get_string(secret, "name")
    except PathError as exc:
        if strict:
            raise
        logger.warning("Treating secret %r as unnamed: %s", secret, exc)
        return ""


def filter_default_tokens(
    secrets: Sequence[Any],
    *,
    prefix: str = DEFAULT_TOKEN_PREFIX,
    strict: bool = True,
) -> List[Any]:
    """Return ``secrets`` without the auto-provisioned token entries.

    Order of the retained entries is preserved. Entries that are not mappings
    with a string ``name`` raise in strict mode and are kept otherwise.
    """

    kept: List[Any] = []
    for secret in secrets:
        logger.debug("Secret is: %s", secret)
        name = _secret_name(secret, strict=strict)
        if name.startswith(prefix):
            logger.info("Dropping auto-generated secret %s", name)
            continue
        kept.append(secret)
    return kept


def _secrets_list(doc: Dict[str, Any], *, strict: bool) -> List[Any]:
    try:
        return get_list(doc, "secrets")
    except KeyNotFoundError:
        return []
    except TypeMismatchError as exc:
        if strict:
            raise
        logger.warning("Treating secrets as empty: %s", exc)
        return []


def filter_backup_secrets(
    backup: Dict[str, Any],
    *,
    prefix: str = DEFAULT_TOKEN_PREFIX,
    strict: bool = True,
) -> List[Any]:
    if not isinstance(backup.get("secrets"), list):
        return _secrets_list(backup, strict=strict)
    filtered = filter_default_tokens(get_list(backup, "secrets"), prefix=prefix, strict=strict)
    backup["secrets"] = filtered
    return filtered


def documents_equal(left: Any, right: Any) -> bool:
    """Deep JSON equality: booleans, integers and floats never compare equal to each other."""

    if type(left) is not type(right):
        return False
    if isinstance(left, dict):
        if left.keys() != right.keys():
            return False
        return all(documents_equal(value, right[key]) for key, value in left.items())
    if isinstance(left, list):
        if len(left) != len(right):
            return False
        return all(documents_equal(a, b) for a, b in zip(left, right))
    return left == right


def build_desired(
    incluster: Dict[str, Any],
    backup: Dict[str, Any],
    secrets: Sequence[Any],
    *,
    strict: bool = True,
) -> Optional[Dict[str, Any]]:
    if documents_equal(incluster, backup):
        return None

    desired = copy.deepcopy(incluster)
    if "imagePullSecrets" in backup:
        desired["imagePullSecrets"] = copy.deepcopy(backup["imagePullSecrets"])
    else:
        desired.pop("imagePullSecrets", None)

    if secrets:
        cluster_secrets = list(_secrets_list(desired, strict=strict))
        cluster_secrets.extend(copy.deepcopy(list(secrets)))
        desired["secrets"] = cluster_secrets
    return desired


def reconcile(
    incluster: Dict[str, Any],
    backup: Dict[str, Any],
    *,
    prefix: str = DEFAULT_TOKEN_PREFIX,
    strict: bool = True,
) -> Reconciliation:
    """Normalise both documents and work out the desired cluster state."""

    normalize(incluster, strict=strict)
    normalize(backup, strict=strict)
    secrets = filter_backup_secrets(backup, prefix=prefix, strict=strict)

    equal = documents_equal(incluster, backup)
    desired = None if equal else build_desired(incluster, backup, secrets, strict=strict)
    return Reconciliation(
        incluster=incluster,
        backup=backup,
        secrets=secrets,
        equal=equal,
        desired=desired,
    )


__all__ = [
    "DEFAULT_TOKEN_PREFIX",
    "Reconciliation",
    "build_desired",
    "documents_equal",
    "filter_backup_secrets",
    "filter_default_tokens",
    "reconcile",
]

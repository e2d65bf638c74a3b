"""ServiceAccount backup reconciliation and merge patch preview."""

from .normalize import normalize
from .preview import PatchComputationError, preview_patch
from .secrets import Reconciliation, filter_default_tokens, reconcile

__all__ = [
    "PatchComputationError",
    "Reconciliation",
    "filter_default_tokens",
    "normalize",
    "preview_patch",
    "reconcile",
]

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .secrets import DEFAULT_TOKEN_PREFIX

OUTPUT_FORMATS = ("json", "yaml")

_FALSE_VALUES = {"0", "false", "no", "off", "lenient"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in _FALSE_VALUES


@dataclass
class ReconcileOptions:
    incluster_path: Path
    backup_path: Path
    prefix: str = DEFAULT_TOKEN_PREFIX
    strict: bool = True
    output_format: str = "json"

    def __post_init__(self) -> None:
        if not self.prefix:
            raise ValueError("Secret name prefix must not be empty")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Unsupported output format {self.output_format!r}; expected one of {', '.join(OUTPUT_FORMATS)}"
            )

    @classmethod
    def from_env(
        cls,
        incluster_path: Optional[Path] = None,
        backup_path: Optional[Path] = None,
        prefix: Optional[str] = None,
        strict: Optional[bool] = None,
        output_format: Optional[str] = None,
    ) -> "ReconcileOptions":
        return cls(
            incluster_path=incluster_path or Path(os.getenv("SA_RECONCILE_INCLUSTER", "./incluster.json")),
            backup_path=backup_path or Path(os.getenv("SA_RECONCILE_BACKUP", "./backup.json")),
            prefix=prefix if prefix is not None else os.getenv("SA_RECONCILE_PREFIX", DEFAULT_TOKEN_PREFIX),
            strict=strict if strict is not None else _env_flag("SA_RECONCILE_STRICT", True),
            output_format=(output_format or os.getenv("SA_RECONCILE_FORMAT", "json")).lower(),
        )


__all__ = ["OUTPUT_FORMATS", "ReconcileOptions"]

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
import yaml

from src.common.paths import PathError

from .config import ReconcileOptions
from .loader import DocumentLoadError, load_document
from .preview import PatchComputationError, preview_operations, preview_patch
from .secrets import reconcile

app = typer.Typer(help="Compare an in-cluster ServiceAccount with its backup and preview the merge patch.")


def _render(value: Any, output_format: str) -> str:
    if output_format == "yaml":
        return yaml.safe_dump(value, sort_keys=False).rstrip()
    return json.dumps(value, indent=2)


def _print_section(title: str, body: str) -> None:
    typer.echo("")
    typer.echo(f"{title}:")
    typer.echo(body)


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


@app.command("reconcile")
def run(
    incluster: Optional[Path] = typer.Option(
        None,
        "--incluster",
        "-c",
        help="In-cluster ServiceAccount JSON (defaults to ./incluster.json).",
    ),
    backup: Optional[Path] = typer.Option(
        None,
        "--backup",
        "-b",
        help="Backed up ServiceAccount JSON (defaults to ./backup.json).",
    ),
    prefix: Optional[str] = typer.Option(
        None,
        "--prefix",
        help="Name prefix of auto-generated token secrets to ignore.",
    ),
    strict: Optional[bool] = typer.Option(
        None,
        "--strict/--lenient",
        help="Abort on malformed metadata or secret entries instead of skipping them.",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Rendering of documents: json or yaml.",
    ),
    show_ops: bool = typer.Option(
        False,
        "--ops/--no-ops",
        help="Also print the change as RFC6902 JSON Patch operations.",
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Write the merge patch to this file.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(levelname)s: %(message)s")

    try:
        options = ReconcileOptions.from_env(
            incluster_path=incluster,
            backup_path=backup,
            prefix=prefix,
            strict=strict,
            output_format=output_format,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        incluster_raw, incluster_doc = load_document(options.incluster_path)
        _, backup_doc = load_document(options.backup_path)
        result = reconcile(incluster_doc, backup_doc, prefix=options.prefix, strict=options.strict)
    except (DocumentLoadError, PathError) as exc:
        _fail(str(exc))

    desired_raw = json.dumps(result.desired).encode("utf-8") if result.needs_patch else None
    try:
        patch = preview_patch(incluster_raw, desired_raw)
    except PatchComputationError as exc:
        _fail(str(exc))

    _print_section("incluster", _render(result.incluster, options.output_format))
    _print_section("backup", _render(result.backup, options.output_format))
    typer.echo("")
    typer.echo(f"In-cluster and backup are equal: {json.dumps(result.equal)}")
    if result.desired is not None:
        _print_section("desired", _render(result.desired, options.output_format))
    _print_section("merge patch", patch.decode("utf-8"))
    if show_ops:
        original = json.loads(incluster_raw)
        _print_section("json patch", json.dumps(preview_operations(original, result.desired), indent=2))

    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(patch)
        typer.echo(f"Merge patch written to {out.resolve()}")


if __name__ == "__main__":  # pragma: no cover
    app()

"""Command-line interface for typedbundle."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from typedbundle.api import GenerationResult, build_unit_spec, check_unit, generate_unit
from typedbundle.config import GenerationUnit, find_declaration, load_units
from typedbundle.errors import CatalogValidationError, ErrorCode, TypedBundleError

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="typedbundle",
    help="Generate typed accessor classes from localized message catalogs",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only log errors"),
    ] = False,
) -> None:
    """Typed message catalog accessors."""
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("typedbundle").setLevel(level)


# =============================================================================
# Shared Options
# =============================================================================

ConfigOpt = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Declaration file (YAML, JSON, TOML or pyproject.toml)"),
]
BundleOpt = Annotated[
    Optional[str],
    typer.Option("--bundle", "-b", help="Bundle base name (e.g. 'messages')"),
]
SourceDirOpt = Annotated[
    Optional[Path],
    typer.Option("--source-dir", "-s", help="Directory holding the catalog files"),
]
OutputOpt = Annotated[
    Optional[Path],
    typer.Option("--output", "-o", help="Generated module path"),
]
ModeOpt = Annotated[
    str,
    typer.Option("--mode", "-m", help="Placeholder mode (auto, positional, named)"),
]
ClassNameOpt = Annotated[
    str,
    typer.Option("--class-name", help="Accessor class name"),
]
DelimiterOpt = Annotated[
    str,
    typer.Option("--delimiter", help="Key segment delimiter"),
]
NamingOpt = Annotated[
    str,
    typer.Option("--naming", help="Method naming style (camel, snake)"),
]
CatalogDirOpt = Annotated[
    Optional[str],
    typer.Option("--catalog-dir", help="Runtime catalog directory (relative to the output)"),
]


def _fail(error: TypedBundleError) -> typer.Exit:
    """Print an error and build the matching exit."""
    if isinstance(error, CatalogValidationError):
        typer.echo(f"Error: bundle '{error.bundle}' failed validation:", err=True)
        for item in error.errors:
            typer.echo(f"  - {item.message}", err=True)
    else:
        typer.echo(f"Error: {error}", err=True)
    return typer.Exit(error.code.value)


def _resolve_units(
    config: Path | None,
    bundle: str | None,
    source_dir: Path | None,
    output: Path | None,
    mode: str,
    class_name: str,
    delimiter: str,
    naming: str,
    catalog_dir: str | None,
) -> list[GenerationUnit]:
    if bundle or source_dir or output:
        if not (bundle and source_dir and output):
            typer.echo(
                "Error: --bundle, --source-dir and --output must be given together",
                err=True,
            )
            raise typer.Exit(ErrorCode.USAGE_ERROR.value)
        unit = GenerationUnit(
            bundle=bundle,
            source_dir=source_dir,
            output=output,
            mode=mode,
            class_name=class_name,
            key_delimiter=delimiter,
            naming=naming,
            catalog_dir=catalog_dir,
        )
        unit.validate()
        return [unit]

    path = config or find_declaration()
    if path is None:
        typer.echo(
            "Error: no declaration found; pass --config or --bundle/--source-dir/--output",
            err=True,
        )
        raise typer.Exit(ErrorCode.USAGE_ERROR.value)
    return load_units(path)


@app.command(name="generate")
def generate_cmd(
    config: ConfigOpt = None,
    bundle: BundleOpt = None,
    source_dir: SourceDirOpt = None,
    output: OutputOpt = None,
    mode: ModeOpt = "auto",
    class_name: ClassNameOpt = "",
    delimiter: DelimiterOpt = ".",
    naming: NamingOpt = "camel",
    catalog_dir: CatalogDirOpt = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Rewrite outputs even when unchanged"),
    ] = False,
) -> None:
    """Generate accessor modules from message catalogs."""
    try:
        units = _resolve_units(
            config, bundle, source_dir, output, mode, class_name, delimiter, naming, catalog_dir
        )
        results = [generate_unit(unit, force=force) for unit in units]
    except TypedBundleError as e:
        raise _fail(e)

    for result in results:
        status = "generated" if result.written else "unchanged"
        typer.echo(f"{result.output}: {status} ({len(result.spec)} methods)")


@app.command(name="check")
def check_cmd(
    config: ConfigOpt = None,
    bundle: BundleOpt = None,
    source_dir: SourceDirOpt = None,
    output: OutputOpt = None,
    mode: ModeOpt = "auto",
    class_name: ClassNameOpt = "",
    delimiter: DelimiterOpt = ".",
    naming: NamingOpt = "camel",
    catalog_dir: CatalogDirOpt = None,
) -> None:
    """Validate catalogs and fail if generated modules are out of date."""
    try:
        units = _resolve_units(
            config, bundle, source_dir, output, mode, class_name, delimiter, naming, catalog_dir
        )
        results: list[GenerationResult] = [check_unit(unit) for unit in units]
    except TypedBundleError as e:
        raise _fail(e)

    stale = [r for r in results if r.is_stale]
    for result in results:
        status = "stale" if result.is_stale else "ok"
        typer.echo(f"{result.output}: {status}")
    if stale:
        typer.echo(f"{len(stale)} generated module(s) out of date; run 'typedbundle generate'", err=True)
        raise typer.Exit(1)


@app.command(name="inspect")
def inspect_cmd(
    config: ConfigOpt = None,
    bundle: BundleOpt = None,
    source_dir: SourceDirOpt = None,
    output: OutputOpt = None,
    mode: ModeOpt = "auto",
    class_name: ClassNameOpt = "",
    delimiter: DelimiterOpt = ".",
    naming: NamingOpt = "camel",
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print descriptors as JSON"),
    ] = False,
) -> None:
    """Print the accessor methods a bundle would generate."""
    try:
        units = _resolve_units(
            config, bundle, source_dir, output, mode, class_name, delimiter, naming, None
        )
        specs = [build_unit_spec(unit) for unit in units]
    except TypedBundleError as e:
        raise _fail(e)

    if as_json:
        payload = [
            {
                "bundle": spec.bundle,
                "class_name": spec.class_name,
                "mode": spec.mode.value,
                "locales": list(spec.locales),
                "methods": [
                    {
                        "key": d.key,
                        "method": d.method_name,
                        "mode": d.mode.value,
                        "parameters": list(d.parameter_names),
                    }
                    for d in spec.descriptors
                ],
            }
            for spec in specs
        ]
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for spec in specs:
        locales = ", ".join(spec.locales) or "none"
        typer.echo(f"{spec.class_name} (bundle '{spec.bundle}', {spec.mode.value}, locales: {locales})")
        for d in spec.descriptors:
            params = ", ".join(("locale",) + d.parameter_names)
            typer.echo(f"  {d.method_name}({params})  <- {d.key}")


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()

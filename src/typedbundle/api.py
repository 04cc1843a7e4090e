"""Generation pipeline: Loader -> Extractor -> Key Model Builder -> Generator.

``generate_source`` is the pure core: catalogs in, module source out.
``generate_unit`` and ``check_unit`` wrap it for a declared generation unit,
reading catalogs from disk and comparing against (or writing) the output.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from typedbundle.catalog import CatalogLoader, CatalogSet
from typedbundle.config import GenerationUnit
from typedbundle.generator import CodeGenerator
from typedbundle.model import GeneratedAccessorSpec, NamingStyle, build_spec

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of generating one unit.

    Attributes:
        spec: The validated accessor spec.
        source: Rendered module source.
        output: Target path.
        changed: Whether the source differs from what is on disk.
        written: Whether the file was (re)written.
    """

    spec: GeneratedAccessorSpec
    source: str
    output: Path
    changed: bool
    written: bool = False

    @property
    def is_stale(self) -> bool:
        return self.changed


def generate_source(
    catalogs: CatalogSet,
    *,
    mode: str = "auto",
    delimiter: str = ".",
    naming: NamingStyle | str = NamingStyle.CAMEL,
    class_name: str = "",
    catalog_dir: str = ".",
    catalog_dir_relative: bool = True,
    generator: CodeGenerator | None = None,
) -> str:
    """Generate accessor module source from a catalog set.

    Raises:
        CatalogValidationError: If any key or locale fails validation.
    """
    spec = build_spec(
        catalogs,
        mode=mode,
        delimiter=delimiter,
        naming=naming,
        class_name=class_name,
    )
    spec = replace(spec, catalog_dir=catalog_dir, catalog_dir_relative=catalog_dir_relative)
    return (generator or CodeGenerator()).render(spec)


def runtime_catalog_dir(unit: GenerationUnit) -> tuple[str, bool]:
    """Catalog location baked into the generated module.

    Returns:
        ``(path, relative)``; relative paths are relative to the module.
    """
    if unit.catalog_dir:
        path = Path(unit.catalog_dir)
        if path.is_absolute():
            return str(path), False
        return path.as_posix(), True
    rel = os.path.relpath(unit.source_dir.resolve(), unit.output.parent.resolve())
    return Path(rel).as_posix(), True


def build_unit_spec(unit: GenerationUnit) -> GeneratedAccessorSpec:
    """Load a unit's catalogs and build its accessor spec.

    Raises:
        CatalogNotFoundError: If the default catalog is missing.
        CatalogValidationError: If validation fails.
    """
    catalogs = CatalogLoader(unit.source_dir).load_set(unit.bundle)
    spec = build_spec(
        catalogs,
        mode=unit.mode,
        delimiter=unit.key_delimiter,
        naming=unit.naming,
        class_name=unit.class_name,
    )
    catalog_dir, relative = runtime_catalog_dir(unit)
    return replace(spec, catalog_dir=catalog_dir, catalog_dir_relative=relative)


def _render_unit(unit: GenerationUnit, generator: CodeGenerator | None) -> GenerationResult:
    spec = build_unit_spec(unit)
    source = (generator or CodeGenerator()).render(spec)
    current = None
    if unit.output.is_file():
        current = unit.output.read_text(encoding="utf-8")
    return GenerationResult(
        spec=spec,
        source=source,
        output=unit.output,
        changed=current != source,
    )


def generate_unit(
    unit: GenerationUnit,
    *,
    force: bool = False,
    generator: CodeGenerator | None = None,
) -> GenerationResult:
    """Generate and write a unit's accessor module.

    The file is only rewritten when its content changes (or ``force``), so
    unchanged catalogs leave timestamps untouched.
    """
    result = _render_unit(unit, generator)
    if result.changed or force:
        unit.output.parent.mkdir(parents=True, exist_ok=True)
        unit.output.write_text(result.source, encoding="utf-8", newline="\n")
        result.written = True
        logger.info("Wrote %s (%d methods)", unit.output, len(result.spec))
    else:
        logger.info("%s is up to date", unit.output)
    return result


def check_unit(
    unit: GenerationUnit,
    *,
    generator: CodeGenerator | None = None,
) -> GenerationResult:
    """Validate a unit and report whether its output is stale, writing nothing."""
    result = _render_unit(unit, generator)
    if result.changed:
        logger.warning("%s is out of date with bundle '%s'", unit.output, unit.bundle)
    return result

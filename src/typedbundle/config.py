"""Generation declarations.

A generation unit names one bundle, where its catalogs live, where the
accessor module goes and how placeholders are interpreted. Units come from
CLI options or from a declaration file:

    # typedbundle.yaml
    mode: positional            # defaults shared by every unit
    bundles:
      - bundle: messages
        source_dir: resources/i18n
        output: src/app/messages.py
      - bundle: errors
        source_dir: resources/i18n
        output: src/app/errors.py
        mode: named
        naming: snake

The same structure is read from JSON, TOML, or the ``[tool.typedbundle]``
table of ``pyproject.toml``. Relative paths are resolved against the
declaration file's directory.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

try:
    import tomllib
except ImportError:  # Python < 3.11
    import tomli as tomllib  # type: ignore[no-redef]

from typedbundle.errors import DeclarationError

logger = logging.getLogger(__name__)

MODES = ("auto", "positional", "named")
NAMING_STYLES = ("camel", "snake")

CONFIG_FILENAMES = (
    "typedbundle.yaml",
    "typedbundle.yml",
    "typedbundle.json",
    "typedbundle.toml",
)

_BUNDLE_NAME = re.compile(r"[A-Za-z0-9_.\-]+\Z")
_CLASS_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


@dataclass
class GenerationUnit:
    """One bundle to generate.

    Attributes:
        bundle: Base name of the catalog files.
        source_dir: Directory holding ``<bundle>.properties`` and variants.
        output: Path of the generated module.
        mode: ``auto``, ``positional`` or ``named``.
        class_name: Accessor class name; derived from the bundle when empty.
        key_delimiter: Separator between key segments.
        naming: ``camel`` or ``snake`` method names.
        catalog_dir: Where the generated module loads catalogs at runtime.
            Relative values are relative to the output module; defaults to
            ``source_dir``.
    """

    bundle: str
    source_dir: Path
    output: Path
    mode: str = "auto"
    class_name: str = ""
    key_delimiter: str = "."
    naming: str = "camel"
    catalog_dir: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.source_dir = Path(self.source_dir)
        self.output = Path(self.output)
        self.mode = str(self.mode).lower()
        self.naming = str(self.naming).lower()

    def validate(self, config_path: Path | str | None = None) -> None:
        """Check field values.

        Raises:
            DeclarationError: On the first invalid field.
        """
        if not self.bundle or not _BUNDLE_NAME.match(self.bundle):
            raise DeclarationError(f"Invalid bundle name: {self.bundle!r}", config_path)
        if self.mode not in MODES:
            raise DeclarationError(
                f"Invalid mode {self.mode!r} for bundle '{self.bundle}'; "
                f"expected one of {', '.join(MODES)}",
                config_path,
            )
        if self.naming not in NAMING_STYLES:
            raise DeclarationError(
                f"Invalid naming {self.naming!r} for bundle '{self.bundle}'; "
                f"expected one of {', '.join(NAMING_STYLES)}",
                config_path,
            )
        if self.class_name and not _CLASS_NAME.match(self.class_name):
            raise DeclarationError(
                f"Invalid class name {self.class_name!r} for bundle '{self.bundle}'",
                config_path,
            )
        if not self.key_delimiter:
            raise DeclarationError(
                f"Empty key delimiter for bundle '{self.bundle}'", config_path
            )
        if self.output.suffix != ".py":
            raise DeclarationError(
                f"Output for bundle '{self.bundle}' must be a .py file: {self.output}",
                config_path,
            )

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        base_dir: Path | None = None,
        config_path: Path | str | None = None,
    ) -> "GenerationUnit":
        """Create a unit from a declaration mapping.

        Unknown keys are kept in ``extra`` and logged.
        """
        known = {f.name for f in fields(cls)} - {"extra"}
        missing = [name for name in ("bundle", "source_dir", "output") if name not in data]
        if missing:
            raise DeclarationError(
                f"Bundle declaration is missing {', '.join(missing)}: {dict(data)}",
                config_path,
            )

        kwargs = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        if extra:
            logger.warning("Ignoring unknown declaration keys: %s", sorted(extra))

        if base_dir is not None:
            for name in ("source_dir", "output"):
                path = Path(kwargs[name])
                if not path.is_absolute():
                    kwargs[name] = base_dir / path

        unit = cls(**kwargs, extra=extra)
        unit.validate(config_path)
        return unit

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["source_dir"] = str(self.source_dir)
        data["output"] = str(self.output)
        return data


def _read_declaration(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DeclarationError(f"Cannot read declaration file: {e}", path) from e

    suffix = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif suffix == ".json":
            data = json.loads(content)
        elif suffix == ".toml":
            data = tomllib.loads(content)
            if path.name == "pyproject.toml":
                data = data.get("tool", {}).get("typedbundle", {})
        else:
            raise DeclarationError(f"Unsupported declaration format: {suffix}", path)
    except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise DeclarationError(f"Cannot parse declaration file: {e}", path) from e

    if not isinstance(data, dict):
        raise DeclarationError("Declaration must be a mapping", path)
    return data


def load_units(path: Path | str) -> list[GenerationUnit]:
    """Load every generation unit from a declaration file.

    Top-level keys other than ``bundles`` are defaults for each unit.

    Raises:
        DeclarationError: If the file is missing, unreadable or invalid.
    """
    path = Path(path)
    if not path.is_file():
        raise DeclarationError(f"Declaration file not found: {path}", path)

    data = _read_declaration(path)
    bundles = data.get("bundles")
    if not isinstance(bundles, list) or not bundles:
        raise DeclarationError(
            "Declaration must contain a non-empty 'bundles' list",
            path,
            hint="Add a 'bundles:' list with bundle, source_dir and output entries.",
        )

    defaults = {k: v for k, v in data.items() if k != "bundles"}
    units = []
    for entry in bundles:
        if not isinstance(entry, dict):
            raise DeclarationError(f"Bundle entry must be a mapping: {entry!r}", path)
        units.append(
            GenerationUnit.from_dict({**defaults, **entry}, path.parent.resolve(), path)
        )

    seen: set[Path] = set()
    for unit in units:
        if unit.output in seen:
            raise DeclarationError(f"Two bundles write to {unit.output}", path)
        seen.add(unit.output)

    logger.debug("Loaded %d generation unit(s) from %s", len(units), path)
    return units


def find_declaration(start: Path | str | None = None) -> Path | None:
    """Find a declaration file in ``start`` (default: cwd).

    Checks the dedicated file names first, then ``pyproject.toml`` with a
    ``[tool.typedbundle]`` table.
    """
    directory = Path(start) if start else Path.cwd()
    for name in CONFIG_FILENAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate

    pyproject = directory / "pyproject.toml"
    if pyproject.is_file():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            logger.warning("Cannot read %s while looking for declarations", pyproject)
            return None
        if "typedbundle" in data.get("tool", {}):
            return pyproject
    return None

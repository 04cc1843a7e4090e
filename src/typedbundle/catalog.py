"""Catalog loading.

A bundle is a set of per-locale catalog files sharing one base name:

    messages.properties         (default locale, authoritative)
    messages_fr.properties
    messages_pt_BR.properties

JSON and YAML catalogs are accepted as well (``messages_fr.json``,
``messages_fr.yaml``); nested objects are flattened with dots.

Example:
    loader = CatalogLoader("resources/i18n")
    default = loader.load("messages")
    french = loader.find("messages", "fr")   # None when absent
    catalogs = loader.load_set("messages")
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Protocol, runtime_checkable

import yaml

from typedbundle.errors import CatalogFormatError, CatalogNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = ""

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".properties", ".json", ".yaml", ".yml")

_LANGUAGE = re.compile(r"[A-Za-z]{2,3}\Z")
# Script (Hant), region (CA, 419) or variant (valencia, 1996) subtags.
_SUBTAG = re.compile(r"([A-Za-z]{2}|[0-9]{3}|[A-Za-z]{4}|[A-Za-z0-9]{5,8})\Z")


def normalize_locale(tag: str | None) -> str:
    """Normalize a locale tag to ``language[_REGION[_variant]]``.

    ``None`` and ``""`` mean the default locale.

    Example:
        >>> normalize_locale("pt-br")
        'pt_BR'
    """
    if not tag:
        return DEFAULT_LOCALE
    parts = [p for p in tag.replace("-", "_").split("_") if p]
    if not parts:
        return DEFAULT_LOCALE

    normalized = [parts[0].lower()]
    for part in parts[1:]:
        if len(part) == 2 and part.isalpha():
            normalized.append(part.upper())
        elif len(part) == 4 and part.isalpha():
            normalized.append(part.capitalize())
        else:
            normalized.append(part)
    return "_".join(normalized)


def is_locale_tag(tag: str) -> bool:
    """Whether a file-name suffix is shaped like a locale tag.

    The first part must be a 2-3 letter language code, so a sibling bundle
    such as ``messages_admin`` is not mistaken for a locale of ``messages``.
    """
    parts = tag.replace("-", "_").split("_")
    if not _LANGUAGE.match(parts[0]):
        return False
    return all(_SUBTAG.match(p) for p in parts[1:])


def fallback_chain(tag: str | None) -> list[str]:
    """Locales to consult for a requested tag, most specific first.

    The default locale is always last: ``fr_CA`` -> ``fr_CA, fr, ""``.
    """
    locale = normalize_locale(tag)
    chain: list[str] = []
    parts = locale.split("_") if locale else []
    while parts:
        chain.append("_".join(parts))
        parts.pop()
    chain.append(DEFAULT_LOCALE)
    return chain


# =============================================================================
# Catalog
# =============================================================================


@dataclass(frozen=True)
class Catalog:
    """The key -> template mapping for one locale of one bundle.

    Attributes:
        bundle: Bundle name.
        locale: Normalized locale tag, ``""`` for the default catalog.
        messages: Read-only ordered mapping of key to raw template.
        source: File the catalog was read from, if any.
    """

    bundle: str
    locale: str = DEFAULT_LOCALE
    messages: Mapping[str, str] = field(default_factory=dict)
    source: Path | None = None

    def __post_init__(self) -> None:
        for key in self.messages:
            if not key:
                raise CatalogFormatError(
                    self.source or "<memory>",
                    "empty message key",
                    bundle=self.bundle,
                )
        if not isinstance(self.messages, MappingProxyType):
            object.__setattr__(self, "messages", MappingProxyType(dict(self.messages)))

    @property
    def is_default(self) -> bool:
        return self.locale == DEFAULT_LOCALE

    @property
    def label(self) -> str:
        """Human-readable locale label for messages and logs."""
        return self.locale or "default"

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.messages.get(key, default)

    def keys(self) -> list[str]:
        return list(self.messages)

    def overlay(self, other: "Catalog") -> "Catalog":
        """Return a catalog with ``other``'s templates over this one's.

        Keys keep this catalog's order; keys only present in ``other`` are
        appended.
        """
        merged = dict(self.messages)
        merged.update(other.messages)
        return Catalog(
            bundle=self.bundle,
            locale=other.locale,
            messages=merged,
            source=other.source,
        )

    def __contains__(self, key: object) -> bool:
        return key in self.messages

    def __iter__(self) -> Iterator[str]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)


@dataclass(frozen=True)
class CatalogSet:
    """Default catalog plus every locale variant of a bundle."""

    bundle: str
    default: Catalog
    variants: tuple[Catalog, ...] = ()

    @property
    def locales(self) -> list[str]:
        return [c.locale for c in self.variants]

    def variant(self, locale: str) -> Catalog | None:
        locale = normalize_locale(locale)
        for catalog in self.variants:
            if catalog.locale == locale:
                return catalog
        return None

    @classmethod
    def from_dict(
        cls,
        bundle: str,
        catalogs: Mapping[str, Mapping[str, Any]],
    ) -> "CatalogSet":
        """Build a set from ``{locale: {key: template}}``.

        The default catalog is stored under ``""`` (or ``"default"``).
        """
        return DictCatalogLoader({bundle: catalogs}).load_set(bundle)


# =============================================================================
# File Readers
# =============================================================================


_PROPERTY_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _logical_lines(text: str) -> Iterator[str]:
    """Join backslash-continued physical lines of a properties file."""
    buffer: list[str] = []
    for raw in text.splitlines():
        line = raw.lstrip() if buffer else raw
        if not buffer:
            stripped = line.lstrip()
            if not stripped or stripped[0] in "#!":
                continue
            line = stripped

        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            buffer.append(line[:-1])
            continue
        buffer.append(line)
        yield "".join(buffer)
        buffer = []
    if buffer:
        yield "".join(buffer)


def _unescape(value: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(value):
        char = value[i]
        if char != "\\" or i + 1 >= len(value):
            out.append(char)
            i += 1
            continue
        nxt = value[i + 1]
        if nxt == "u" and re.match(r"[0-9a-fA-F]{4}", value[i + 2 : i + 6]):
            out.append(chr(int(value[i + 2 : i + 6], 16)))
            i += 6
            continue
        out.append(_PROPERTY_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def parse_properties(text: str) -> dict[str, str]:
    """Parse Java ``.properties`` text into an ordered dict.

    Supports ``#``/``!`` comments, ``=``, ``:`` or whitespace separators,
    backslash continuation lines and ``\\t \\n \\uXXXX`` style escapes.
    A duplicated key keeps its first position and its last value.
    """
    result: dict[str, str] = {}
    for line in _logical_lines(text):
        i = 0
        while i < len(line):
            char = line[i]
            if char == "\\":
                i += 2
                continue
            if char in "=: \t\f":
                break
            i += 1
        key = line[:i]
        rest = line[i:].lstrip(" \t\f")
        if rest[:1] in ("=", ":"):
            rest = rest[1:].lstrip(" \t\f")
        result[_unescape(key)] = _unescape(rest)
    return result


def _flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    flat: dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(_flatten(value, full_key))
        elif value is None:
            flat[full_key] = ""
        else:
            flat[full_key] = str(value)
    return flat


def read_catalog_file(path: Path, bundle: str | None = None) -> dict[str, str]:
    """Read one catalog file into an ordered ``key -> template`` dict.

    Raises:
        CatalogFormatError: If the file cannot be decoded or parsed.
    """
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogFormatError(path, str(e), bundle=bundle) from e

    if suffix == ".properties":
        return parse_properties(text)

    try:
        if suffix == ".json":
            data = json.loads(text) if text.strip() else {}
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            raise CatalogFormatError(path, f"unsupported format {suffix}", bundle=bundle)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise CatalogFormatError(path, str(e), bundle=bundle) from e

    if not isinstance(data, Mapping):
        raise CatalogFormatError(path, "top level must be a mapping", bundle=bundle)
    return _flatten(data)


# =============================================================================
# Loaders
# =============================================================================


@runtime_checkable
class CatalogSource(Protocol):
    """Anything that can produce catalogs for a bundle."""

    def find(self, bundle: str, locale: str = DEFAULT_LOCALE) -> Catalog | None:
        """Load a catalog, or return None when no resource backs it."""
        ...

    def load(self, bundle: str, locale: str = DEFAULT_LOCALE) -> Catalog:
        """Load a catalog, raising CatalogNotFoundError when absent."""
        ...

    def available_locales(self, bundle: str) -> list[str]:
        """Locales with a variant catalog, sorted."""
        ...


class _LoaderMixin:
    """``load`` and ``load_set`` on top of ``find``/``available_locales``."""

    def find(self, bundle: str, locale: str = DEFAULT_LOCALE) -> Catalog | None:
        raise NotImplementedError

    def available_locales(self, bundle: str) -> list[str]:
        raise NotImplementedError

    def _searched(self, bundle: str, locale: str) -> list[Path | str]:
        return []

    def load(self, bundle: str, locale: str = DEFAULT_LOCALE) -> Catalog:
        """Load a catalog.

        Raises:
            CatalogNotFoundError: If no resource backs the catalog.
        """
        catalog = self.find(bundle, locale)
        if catalog is None:
            locale = normalize_locale(locale)
            raise CatalogNotFoundError(bundle, locale, self._searched(bundle, locale))
        return catalog

    def load_set(self, bundle: str) -> CatalogSet:
        """Load the default catalog and every variant of a bundle."""
        default = self.load(bundle)
        variants = []
        for locale in self.available_locales(bundle):
            catalog = self.find(bundle, locale)
            if catalog is not None:
                variants.append(catalog)
        logger.debug(
            "Loaded bundle '%s': %d keys, locales=%s",
            bundle,
            len(default),
            [c.locale for c in variants],
        )
        return CatalogSet(bundle=bundle, default=default, variants=tuple(variants))


class CatalogLoader(_LoaderMixin):
    """Loads catalogs from files in one directory.

    File naming convention:
    - ``{bundle}.{ext}`` for the default locale
    - ``{bundle}_{locale}.{ext}`` for variants (e.g. ``messages_fr_CA.properties``)
    """

    def __init__(
        self,
        directory: str | Path,
        extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS,
    ) -> None:
        self.directory = Path(directory)
        self.extensions = extensions

    def _candidates(self, bundle: str, locale: str) -> list[Path]:
        stem = f"{bundle}_{locale}" if locale else bundle
        return [self.directory / f"{stem}{ext}" for ext in self.extensions]

    def _searched(self, bundle: str, locale: str) -> list[Path | str]:
        return list(self._candidates(bundle, locale))

    def path_for(self, bundle: str, locale: str = DEFAULT_LOCALE) -> Path | None:
        """Return the first existing file backing a catalog.

        Tags that are not locale-shaped never match, so a sibling bundle file
        is not picked up as a variant.
        """
        locale = normalize_locale(locale)
        if locale and not is_locale_tag(locale):
            return None
        for path in self._candidates(bundle, locale):
            if path.is_file():
                return path
        return None

    def find(self, bundle: str, locale: str = DEFAULT_LOCALE) -> Catalog | None:
        locale = normalize_locale(locale)
        path = self.path_for(bundle, locale)
        if path is None:
            return None
        messages = read_catalog_file(path, bundle)
        logger.debug("Read %d keys from %s", len(messages), path)
        return Catalog(bundle=bundle, locale=locale, messages=messages, source=path)

    def available_locales(self, bundle: str) -> list[str]:
        if not self.directory.is_dir():
            return []
        prefix = f"{bundle}_"
        locales = set()
        for path in self.directory.iterdir():
            if not path.is_file() or path.suffix.lower() not in self.extensions:
                continue
            stem = path.stem
            if not stem.startswith(prefix):
                continue
            tag = stem[len(prefix) :]
            if is_locale_tag(tag):
                locales.add(normalize_locale(tag))
            else:
                logger.debug("Ignoring %s: '%s' is not a locale tag", path.name, tag)
        return sorted(locales)


class DictCatalogLoader(_LoaderMixin):
    """Loads catalogs from in-memory dictionaries.

    Args:
        bundles: ``{bundle: {locale: {key: template}}}``. The default locale
            is ``""`` or ``"default"``.
    """

    def __init__(self, bundles: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> None:
        self._bundles: dict[str, dict[str, dict[str, str]]] = {}
        for bundle, catalogs in bundles.items():
            normalized: dict[str, dict[str, str]] = {}
            for locale, messages in catalogs.items():
                tag = DEFAULT_LOCALE if locale == "default" else normalize_locale(locale)
                normalized[tag] = _flatten(messages)
            self._bundles[bundle] = normalized

    def find(self, bundle: str, locale: str = DEFAULT_LOCALE) -> Catalog | None:
        locale = normalize_locale(locale)
        messages = self._bundles.get(bundle, {}).get(locale)
        if messages is None:
            return None
        return Catalog(bundle=bundle, locale=locale, messages=messages)

    def available_locales(self, bundle: str) -> list[str]:
        return sorted(tag for tag in self._bundles.get(bundle, {}) if tag)

"""Runtime support for generated accessor modules.

Generated accessors call into a LocaleResolver, which maps a requested locale
to a resolved catalog (the default catalog overlaid with any matching
variants) and caches the result per requested locale for the lifetime of the
process. Catalogs are static, so entries are never evicted.

Resolution for ``fr_CA``::

    default catalog  <-  messages_fr  <-  messages_fr_CA

Variants that do not exist are skipped silently, so an unsupported locale
resolves to the default catalog. A key missing everywhere renders as
``[key]`` instead of raising.

Example:
    resolver = get_resolver("messages", Path("resources/i18n"))
    template = resolver.get_string("fr", "welcome.message")
    text = format_positional(template, "John", "Doe")
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Mapping

from typedbundle.catalog import (
    DEFAULT_LOCALE,
    Catalog,
    CatalogLoader,
    CatalogSource,
    fallback_chain,
    normalize_locale,
)
from typedbundle.errors import CatalogFormatError, TypedBundleError

logger = logging.getLogger(__name__)


def missing_key_marker(key: str) -> str:
    """Deterministic text rendered for a key no catalog defines."""
    return f"[{key}]"


class LocaleResolver:
    """Resolves and caches the catalog for each requested locale.

    Thread-safe: cached lookups take no lock, and populating a locale that is
    not cached yet happens under a lock, at most once per locale.

    Args:
        bundle: Bundle name.
        source: Catalog source (usually a CatalogLoader over a directory).
        default_locale: Locale used when ``None`` or ``""`` is requested.
    """

    def __init__(
        self,
        bundle: str,
        source: CatalogSource,
        default_locale: str = DEFAULT_LOCALE,
    ) -> None:
        self.bundle = bundle
        self.source = source
        self.default_locale = normalize_locale(default_locale)
        self._cache: dict[str, Catalog] = {}
        self._variants: dict[str, Catalog | None] = {}
        self._default: Catalog | None = None
        self._lock = threading.RLock()

    def resolve(self, locale: str | None = None) -> Catalog:
        """Return the resolved catalog for a locale.

        Raises:
            CatalogNotFoundError: If the default catalog itself is missing.
        """
        tag = normalize_locale(locale) or self.default_locale
        catalog = self._cache.get(tag)
        if catalog is not None:
            return catalog

        with self._lock:
            catalog = self._cache.get(tag)
            if catalog is None:
                catalog = self._populate(tag)
                self._cache[tag] = catalog
        return catalog

    def get_string(self, locale: str | None, key: str) -> str:
        """Return the template for ``key`` in ``locale``.

        Never raises: a missing key, or a missing default catalog, yields
        ``[key]``.
        """
        try:
            catalog = self.resolve(locale)
        except TypedBundleError:
            logger.exception(
                "Cannot resolve bundle '%s' for locale '%s'", self.bundle, locale
            )
            return missing_key_marker(key)

        template = catalog.get(key)
        if template is None:
            logger.debug(
                "Key '%s' missing from bundle '%s' (locale '%s')",
                key,
                self.bundle,
                catalog.label,
            )
            return missing_key_marker(key)
        return template

    def cached_locales(self) -> list[str]:
        """Locales resolved so far, in resolution order."""
        return list(self._cache)

    def clear(self) -> None:
        """Drop every cached catalog."""
        with self._lock:
            self._cache.clear()
            self._variants.clear()
            self._default = None

    def _load_default(self) -> Catalog:
        if self._default is None:
            self._default = self.source.load(self.bundle)
        return self._default

    def _load_variant(self, tag: str) -> Catalog | None:
        if tag not in self._variants:
            try:
                self._variants[tag] = self.source.find(self.bundle, tag)
            except CatalogFormatError:
                logger.warning(
                    "Skipping unreadable catalog for bundle '%s' locale '%s'",
                    self.bundle,
                    tag,
                    exc_info=True,
                )
                self._variants[tag] = None
        return self._variants[tag]

    def _populate(self, tag: str) -> Catalog:
        resolved = self._load_default()
        applied = []
        for candidate in reversed(fallback_chain(tag)[:-1]):
            variant = self._load_variant(candidate)
            if variant is not None:
                resolved = resolved.overlay(variant)
                applied.append(candidate)

        if resolved.locale != tag:
            resolved = Catalog(
                bundle=resolved.bundle,
                locale=tag,
                messages=resolved.messages,
                source=resolved.source,
            )
        logger.debug(
            "Resolved bundle '%s' locale '%s' from %s",
            self.bundle,
            tag or "default",
            ["default", *applied],
        )
        return resolved

    def __repr__(self) -> str:
        return f"LocaleResolver(bundle={self.bundle!r}, cached={self.cached_locales()!r})"


# =============================================================================
# Process-wide Registry
# =============================================================================


_resolvers: dict[tuple[str, str], LocaleResolver] = {}
_resolvers_lock = threading.Lock()


def get_resolver(
    bundle: str,
    directory: str | Path,
    default_locale: str = DEFAULT_LOCALE,
) -> LocaleResolver:
    """Return the shared resolver for a bundle stored in ``directory``.

    All accessors for the same bundle and directory share one cache.
    """
    key = (bundle, str(Path(directory).resolve()))
    resolver = _resolvers.get(key)
    if resolver is not None:
        return resolver
    with _resolvers_lock:
        resolver = _resolvers.get(key)
        if resolver is None:
            resolver = LocaleResolver(bundle, CatalogLoader(directory), default_locale)
            _resolvers[key] = resolver
    return resolver


def reset_resolvers() -> None:
    """Forget every shared resolver (for testing)."""
    with _resolvers_lock:
        _resolvers.clear()


def resolve(bundle: str, locale: str | None, directory: str | Path) -> Catalog:
    """Resolve a bundle's catalog for a locale via the shared registry."""
    return get_resolver(bundle, directory).resolve(locale)


def get_string(bundle: str, locale: str | None, key: str, directory: str | Path) -> str:
    """Look up a template via the shared registry; never raises."""
    return get_resolver(bundle, directory).get_string(locale, key)


# =============================================================================
# Substitution
# =============================================================================


def format_positional(template: str, *args: Any) -> str:
    """Substitute ``{0}``, ``{1}``, ... with ``args``.

    Unused indices are simply not rendered. If the template no longer matches
    the arguments (a catalog edited after generation), the raw template is
    returned and a warning logged.
    """
    try:
        return template.format(*args)
    except (IndexError, KeyError, ValueError, AttributeError, TypeError) as e:
        logger.warning("Cannot format template %r: %s", template, e)
        return template


def format_named(template: str, values: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` fields from ``values``."""
    try:
        return template.format_map(values)
    except (IndexError, KeyError, ValueError, AttributeError, TypeError) as e:
        logger.warning("Cannot format template %r: %s", template, e)
        return template

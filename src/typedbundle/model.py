"""Message descriptors and cross-locale validation.

The default-locale catalog is authoritative: its keys define the generated
method set and its templates define each method's parameters. Locale variants
may use fewer placeholders than the default, never more or different ones.

Validation runs as one pass that collects every problem before failing, so a
single build reports all broken keys at once.

Example:
    catalogs = CatalogSet.from_dict("messages", {
        "": {"welcome.message": "Hello {0} {1}"},
        "fr": {"welcome.message": "Bonjour {1} {0}"},
    })
    spec = KeyModelBuilder(catalogs).build()
    spec.descriptors[0].method_name   # "welcomeMessage"
"""

from __future__ import annotations

import keyword
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from typedbundle.catalog import Catalog, CatalogSet
from typedbundle.errors import (
    CatalogValidationError,
    GenerationError,
    InconsistentPlaceholderModeError,
    LocaleInconsistencyError,
    MalformedPlaceholderError,
    MethodNameCollisionError,
)
from typedbundle.placeholders import (
    Named,
    Placeholder,
    PlaceholderMode,
    PlaceholderSet,
    Positional,
    extract_placeholders,
)

logger = logging.getLogger(__name__)

# Attribute names owned by the generated accessor class.
RESERVED_NAMES = frozenset({"resolver", "keys", "bundle_name"})

# Names a generated method body reads: its own locals plus the module globals
# it calls. A parameter with one of these names would shadow it.
_RESERVED_PARAMS = frozenset(
    {
        "self",
        "locale",
        "template",
        "format_named",
        "format_positional",
        "get_resolver",
        "LocaleResolver",
        "BUNDLE_NAME",
        "CATALOG_DIR",
        "LOCALES",
        "Path",
    }
)

_WORD_SPLIT = re.compile(r"[\W_]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class NamingStyle(str, Enum):
    """Method naming style for generated accessors."""

    CAMEL = "camel"
    SNAKE = "snake"


# =============================================================================
# Naming
# =============================================================================


def _words(key: str, delimiter: str) -> list[str]:
    words: list[str] = []
    segments = key.split(delimiter) if delimiter else [key]
    for segment in segments:
        words.extend(w for w in _WORD_SPLIT.split(segment) if w)
    return words


def _make_identifier(name: str) -> str:
    if not name:
        name = "message"
    if name[0].isdigit():
        name = f"msg_{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name


def method_name_for(
    key: str,
    delimiter: str = ".",
    naming: NamingStyle | str = NamingStyle.CAMEL,
) -> str:
    """Derive an accessor method name from a message key.

    The key is split on ``delimiter`` and on any non-identifier character,
    then joined as camelCase (``welcome.message`` -> ``welcomeMessage``) or
    snake_case (``welcome_message``). The result is always a valid Python
    identifier.
    """
    words = _words(key, delimiter)
    if NamingStyle(naming) is NamingStyle.SNAKE:
        name = "_".join(_CAMEL_BOUNDARY.sub("_", w).lower() for w in words)
    else:
        name = "".join(
            (w[0].lower() if i == 0 else w[0].upper()) + w[1:]
            for i, w in enumerate(words)
        )
    return _make_identifier(name)


def snake_to_pascal(name: str) -> str:
    """Convert ``app_messages`` (or ``app-messages``) to ``AppMessages``."""
    return "".join(w[0].upper() + w[1:] for w in _WORD_SPLIT.split(name) if w)


def class_name_for(bundle: str) -> str:
    """Default accessor class name for a bundle."""
    base = snake_to_pascal(bundle) or "Bundle"
    if base[0].isdigit():
        base = f"Bundle{base}"
    if base.endswith("Messages"):
        return base
    return f"{base}Messages"


# =============================================================================
# Descriptors
# =============================================================================


@dataclass(frozen=True)
class Parameter:
    """One generated method parameter.

    Attributes:
        name: Python parameter name.
        placeholder: The template field it feeds.
    """

    name: str
    placeholder: Placeholder

    @property
    def field_name(self) -> str:
        """Field name as written in the template (``"0"`` or ``"firstName"``)."""
        if isinstance(self.placeholder, Positional):
            return str(self.placeholder.index)
        return self.placeholder.name


@dataclass(frozen=True)
class MessageDescriptor:
    """Shape of the accessor generated for one key.

    Attributes:
        key: Message key in the catalog.
        method_name: Generated method name.
        mode: POSITIONAL, NAMED or NO_ARGS.
        parameters: Parameters in signature order.
        template: Default-locale template.
        translations: Locales whose catalog defines this key.
    """

    key: str
    method_name: str
    mode: PlaceholderMode
    parameters: tuple[Parameter, ...] = ()
    template: str = ""
    translations: tuple[str, ...] = ()

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.parameters)


@dataclass(frozen=True)
class GeneratedAccessorSpec:
    """Everything the code generator needs for one bundle.

    Attributes:
        bundle: Bundle name.
        class_name: Accessor class name.
        mode: Catalog-wide placeholder mode.
        descriptors: One descriptor per default key, in catalog order.
        locales: Variant locales validated against the default.
        catalog_dir: Where the generated module finds catalogs at runtime.
        catalog_dir_relative: Whether ``catalog_dir`` is relative to the
            generated module.
    """

    bundle: str
    class_name: str
    mode: PlaceholderMode
    descriptors: tuple[MessageDescriptor, ...] = ()
    locales: tuple[str, ...] = ()
    catalog_dir: str = "."
    catalog_dir_relative: bool = True

    @property
    def keys(self) -> list[str]:
        return [d.key for d in self.descriptors]

    def descriptor(self, key: str) -> MessageDescriptor | None:
        for d in self.descriptors:
            if d.key == key:
                return d
        return None

    def __iter__(self) -> Iterator[MessageDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)


def build_parameters(placeholders: PlaceholderSet) -> tuple[Parameter, ...]:
    """Build signature parameters from a default template's placeholders.

    Positional templates take ``arg0 .. argN-1`` where N is the arity, so gap
    indices still get a parameter. Named templates take one parameter per
    name in first-occurrence order.
    """
    if placeholders.mode is PlaceholderMode.POSITIONAL:
        return tuple(Parameter(f"arg{i}", Positional(i)) for i in range(placeholders.arity))

    params: list[Parameter] = []
    used: set[str] = set()
    for name in placeholders.names:
        py_name = name
        if keyword.iskeyword(py_name) or py_name in _RESERVED_PARAMS:
            py_name = f"{py_name}_"
        while py_name in used or py_name in _RESERVED_PARAMS:
            py_name = f"{py_name}_"
        used.add(py_name)
        params.append(Parameter(py_name, Named(name)))
    return tuple(params)


def check_compatible(default: PlaceholderSet, variant: PlaceholderSet) -> str | None:
    """Describe why a variant template is incompatible, or return None.

    A variant is compatible when it uses no placeholders, or uses the same
    mode as the default with positional indices below the default arity and
    named fields drawn from the default's names.
    """
    if variant.is_empty:
        return None
    if default.is_empty:
        tokens = ", ".join(p.token for p in variant)
        return f"uses {tokens} but the default template takes no arguments"
    if variant.mode is not default.mode:
        return (
            f"uses {variant.mode.value} placeholders but the default template "
            f"uses {default.mode.value} placeholders"
        )
    if default.mode is PlaceholderMode.POSITIONAL:
        extra = sorted(i for i in variant.indices if i >= default.arity)
        if extra:
            tokens = ", ".join(f"{{{i}}}" for i in extra)
            return f"references {tokens} beyond the default arity of {default.arity}"
        return None

    unknown = [n for n in variant.names if n not in default.names]
    if unknown:
        tokens = ", ".join(f"{{{n}}}" for n in unknown)
        return f"references {tokens} not declared by the default template"
    return None


# =============================================================================
# Builder
# =============================================================================


@dataclass
class KeyModelBuilder:
    """Builds a GeneratedAccessorSpec from a CatalogSet.

    Attributes:
        catalogs: Default catalog plus variants.
        mode: Declared catalog mode, or None to infer it from the templates.
        delimiter: Key segment delimiter used for method names.
        naming: Method naming style.
        class_name: Accessor class name (derived from the bundle if empty).
    """

    catalogs: CatalogSet
    mode: PlaceholderMode | None = None
    delimiter: str = "."
    naming: NamingStyle = NamingStyle.CAMEL
    class_name: str = ""
    errors: list[GenerationError] = field(default_factory=list, init=False)

    @property
    def bundle(self) -> str:
        return self.catalogs.bundle

    def build(self) -> GeneratedAccessorSpec:
        """Validate the catalogs and build the accessor spec.

        Raises:
            CatalogValidationError: With every error found, if any.
        """
        self.errors = []
        default = self.catalogs.default

        shapes = self._extract_all(default)
        mode = self._resolve_mode(shapes)
        descriptors = self._describe(default, shapes)
        self._check_collisions(descriptors)
        for variant in self.catalogs.variants:
            self._check_variant(variant, shapes)

        if self.errors:
            logger.error(
                "Bundle '%s' failed validation with %d error(s)",
                self.bundle,
                len(self.errors),
            )
            raise CatalogValidationError(self.bundle, self.errors)

        logger.info(
            "Built %d descriptors for bundle '%s' (%s mode, %d locale(s))",
            len(descriptors),
            self.bundle,
            mode.value,
            len(self.catalogs.variants),
        )
        return GeneratedAccessorSpec(
            bundle=self.bundle,
            class_name=self.class_name or class_name_for(self.bundle),
            mode=mode,
            descriptors=tuple(descriptors),
            locales=tuple(self.catalogs.locales),
        )

    def _extract(self, catalog: Catalog, key: str) -> PlaceholderSet | None:
        try:
            return extract_placeholders(
                catalog.messages[key],
                key,
                bundle=self.bundle,
                locale=catalog.label,
            )
        except (MalformedPlaceholderError, InconsistentPlaceholderModeError) as e:
            self.errors.append(e)
            return None

    def _extract_all(self, catalog: Catalog) -> dict[str, PlaceholderSet]:
        shapes: dict[str, PlaceholderSet] = {}
        for key in catalog:
            shape = self._extract(catalog, key)
            if shape is not None:
                shapes[key] = shape
        return shapes

    def _resolve_mode(self, shapes: dict[str, PlaceholderSet]) -> PlaceholderMode:
        mode = self.mode
        inferred_from: str | None = None
        for key, shape in shapes.items():
            if shape.is_empty:
                continue
            if mode is None:
                mode, inferred_from = shape.mode, key
                continue
            if shape.mode is not mode:
                source = f"key '{inferred_from}'" if inferred_from else "the declaration"
                self.errors.append(
                    InconsistentPlaceholderModeError(
                        key,
                        f"uses {shape.mode.value} placeholders but the catalog is "
                        f"{mode.value} (from {source})",
                        bundle=self.bundle,
                        locale=self.catalogs.default.label,
                    )
                )
        return mode or PlaceholderMode.NO_ARGS

    def _describe(
        self,
        default: Catalog,
        shapes: dict[str, PlaceholderSet],
    ) -> list[MessageDescriptor]:
        descriptors = []
        for key, template in default.messages.items():
            shape = shapes.get(key)
            if shape is None:
                continue
            translations = tuple(c.locale for c in self.catalogs.variants if key in c)
            descriptors.append(
                MessageDescriptor(
                    key=key,
                    method_name=method_name_for(key, self.delimiter, self.naming),
                    mode=shape.mode,
                    parameters=build_parameters(shape),
                    template=template,
                    translations=translations,
                )
            )
        return descriptors

    def _check_collisions(self, descriptors: list[MessageDescriptor]) -> None:
        by_name: dict[str, list[MessageDescriptor]] = {}
        for descriptor in descriptors:
            by_name.setdefault(descriptor.method_name.lower(), []).append(descriptor)

        for folded, group in by_name.items():
            if folded in RESERVED_NAMES:
                self.errors.append(
                    MethodNameCollisionError(
                        self.bundle,
                        group[0].method_name,
                        [d.key for d in group] + [f"<reserved:{folded}>"],
                    )
                )
            elif len(group) > 1:
                self.errors.append(
                    MethodNameCollisionError(
                        self.bundle,
                        group[0].method_name,
                        [d.key for d in group],
                    )
                )

    def _check_variant(self, variant: Catalog, shapes: dict[str, PlaceholderSet]) -> None:
        for key in variant:
            if key not in self.catalogs.default:
                logger.warning(
                    "Bundle '%s' locale '%s' defines key '%s' missing from the "
                    "default catalog; ignoring it",
                    self.bundle,
                    variant.locale,
                    key,
                )
                continue
            default_shape = shapes.get(key)
            if default_shape is None:
                continue
            shape = self._extract(variant, key)
            if shape is None:
                continue
            mismatch = check_compatible(default_shape, shape)
            if mismatch:
                self.errors.append(
                    LocaleInconsistencyError(self.bundle, variant.locale, key, mismatch)
                )


def build_spec(
    catalogs: CatalogSet,
    *,
    mode: PlaceholderMode | str | None = None,
    delimiter: str = ".",
    naming: NamingStyle | str = NamingStyle.CAMEL,
    class_name: str = "",
) -> GeneratedAccessorSpec:
    """Convenience wrapper around KeyModelBuilder.

    ``mode`` may be ``"auto"`` (or None) to infer the catalog mode.
    """
    declared = None if mode in (None, "auto") else PlaceholderMode(mode)
    builder = KeyModelBuilder(
        catalogs,
        mode=declared,
        delimiter=delimiter,
        naming=NamingStyle(naming),
        class_name=class_name,
    )
    return builder.build()

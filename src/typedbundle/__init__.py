"""typedbundle - Typed accessor generation for localized message catalogs.

Turns a message bundle (a default catalog plus locale variants) into a Python
module with one method per key, taking exactly the arguments each template
requires.

Example:
    from typedbundle import CatalogSet, generate_source

    catalogs = CatalogSet.from_dict("messages", {
        "": {"welcome.message": "Hello {0} {1}"},
        "fr": {"welcome.message": "Bonjour {0} {1}"},
    })
    source = generate_source(catalogs)
"""

from typedbundle.api import (
    GenerationResult,
    build_unit_spec,
    check_unit,
    generate_source,
    generate_unit,
)
from typedbundle.catalog import (
    DEFAULT_LOCALE,
    Catalog,
    CatalogLoader,
    CatalogSet,
    DictCatalogLoader,
    normalize_locale,
    parse_properties,
)
from typedbundle.config import GenerationUnit, load_units
from typedbundle.errors import (
    CatalogFormatError,
    CatalogNotFoundError,
    CatalogValidationError,
    DeclarationError,
    GenerationError,
    InconsistentPlaceholderModeError,
    LocaleInconsistencyError,
    MalformedPlaceholderError,
    MethodNameCollisionError,
    TypedBundleError,
)
from typedbundle.generator import CodeGenerator, render_accessor
from typedbundle.model import (
    GeneratedAccessorSpec,
    KeyModelBuilder,
    MessageDescriptor,
    NamingStyle,
    Parameter,
    build_spec,
    method_name_for,
)
from typedbundle.placeholders import (
    Named,
    PlaceholderMode,
    PlaceholderSet,
    Positional,
    extract_placeholders,
)
from typedbundle.runtime import (
    LocaleResolver,
    format_named,
    format_positional,
    get_resolver,
    get_string,
    resolve,
)

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "generate_source",
    "generate_unit",
    "check_unit",
    "build_unit_spec",
    "GenerationResult",
    # Catalogs
    "DEFAULT_LOCALE",
    "Catalog",
    "CatalogSet",
    "CatalogLoader",
    "DictCatalogLoader",
    "normalize_locale",
    "parse_properties",
    # Placeholders
    "PlaceholderMode",
    "PlaceholderSet",
    "Positional",
    "Named",
    "extract_placeholders",
    # Model
    "GeneratedAccessorSpec",
    "KeyModelBuilder",
    "MessageDescriptor",
    "NamingStyle",
    "Parameter",
    "build_spec",
    "method_name_for",
    # Generator
    "CodeGenerator",
    "render_accessor",
    # Runtime
    "LocaleResolver",
    "get_resolver",
    "resolve",
    "get_string",
    "format_positional",
    "format_named",
    # Config
    "GenerationUnit",
    "load_units",
    # Errors
    "TypedBundleError",
    "DeclarationError",
    "GenerationError",
    "CatalogNotFoundError",
    "CatalogFormatError",
    "MalformedPlaceholderError",
    "InconsistentPlaceholderModeError",
    "LocaleInconsistencyError",
    "MethodNameCollisionError",
    "CatalogValidationError",
]

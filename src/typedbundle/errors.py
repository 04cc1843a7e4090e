"""Error taxonomy for catalog loading and accessor generation.

Every generation-time failure identifies the offending bundle, locale and key
so that a build can report it without re-running anything. None of these are
recoverable within a generation run.

Hierarchy:
    TypedBundleError
    ├── DeclarationError
    └── GenerationError
        ├── CatalogNotFoundError
        ├── CatalogFormatError
        ├── MalformedPlaceholderError
        ├── InconsistentPlaceholderModeError
        ├── LocaleInconsistencyError
        ├── MethodNameCollisionError
        └── CatalogValidationError (aggregate)
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Sequence, TypeVar


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode(Enum):
    """Error codes, also used as CLI exit codes."""

    GENERAL_ERROR = 1
    USAGE_ERROR = 2

    # Catalog errors (10-19)
    CATALOG_NOT_FOUND = 10
    CATALOG_FORMAT = 11

    # Placeholder errors (20-29)
    MALFORMED_PLACEHOLDER = 20
    INCONSISTENT_MODE = 21

    # Model errors (30-39)
    LOCALE_INCONSISTENCY = 30
    METHOD_NAME_COLLISION = 31
    VALIDATION_FAILED = 32

    # Configuration errors (40-49)
    DECLARATION_INVALID = 40


# =============================================================================
# Base Classes
# =============================================================================


class TypedBundleError(Exception):
    """Base exception for typedbundle.

    Attributes:
        message: Error message
        code: Error code
        details: Additional error details
        hint: Helpful hint for resolution
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.GENERAL_ERROR,
        details: dict[str, Any] | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.hint = hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return "\n".join(parts)


class DeclarationError(TypedBundleError):
    """Invalid generation declaration (CLI options or config file)."""

    def __init__(
        self,
        message: str,
        config_path: Path | str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.DECLARATION_INVALID,
            details={"config_path": str(config_path) if config_path else None},
            hint=hint or "Check the declaration file format and values.",
        )
        self.config_path = config_path


class GenerationError(TypedBundleError):
    """Base class for errors that abort a generation run."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.GENERAL_ERROR,
        *,
        bundle: str | None = None,
        locale: str | None = None,
        key: str | None = None,
        hint: str | None = None,
        **details: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details={"bundle": bundle, "locale": locale, "key": key, **details},
            hint=hint,
        )
        self.bundle = bundle
        self.locale = locale
        self.key = key


# =============================================================================
# Catalog Errors
# =============================================================================


class CatalogNotFoundError(GenerationError):
    """No backing resource exists for a requested catalog."""

    def __init__(
        self,
        bundle: str,
        locale: str = "",
        searched: Sequence[Path | str] = (),
    ) -> None:
        where = f" for locale '{locale}'" if locale else ""
        super().__init__(
            f"Catalog not found: bundle '{bundle}'{where}",
            ErrorCode.CATALOG_NOT_FOUND,
            bundle=bundle,
            locale=locale or None,
            searched=[str(p) for p in searched],
            hint="Check the source directory and the bundle name.",
        )
        self.searched = [str(p) for p in searched]


class CatalogFormatError(GenerationError):
    """A catalog file exists but cannot be read as a key/value mapping."""

    def __init__(self, path: Path | str, reason: str, bundle: str | None = None) -> None:
        super().__init__(
            f"Cannot read catalog {path}: {reason}",
            ErrorCode.CATALOG_FORMAT,
            bundle=bundle,
            path=str(path),
        )
        self.path = Path(path)
        self.reason = reason


# =============================================================================
# Placeholder Errors
# =============================================================================


class MalformedPlaceholderError(GenerationError):
    """A brace-delimited fragment is neither an index nor an identifier."""

    def __init__(
        self,
        key: str,
        fragment: str,
        *,
        bundle: str | None = None,
        locale: str | None = None,
        position: int | None = None,
    ) -> None:
        super().__init__(
            f"Malformed placeholder {fragment!r} in key '{key}'"
            + _context(bundle, locale),
            ErrorCode.MALFORMED_PLACEHOLDER,
            bundle=bundle,
            locale=locale,
            key=key,
            fragment=fragment,
            position=position,
            hint="Use {0}, {1}, ... or {name}; write literal braces as {{ and }}.",
        )
        self.fragment = fragment
        self.position = position


class InconsistentPlaceholderModeError(GenerationError):
    """Positional and named placeholders are mixed."""

    def __init__(
        self,
        key: str,
        detail: str,
        *,
        bundle: str | None = None,
        locale: str | None = None,
    ) -> None:
        super().__init__(
            f"Inconsistent placeholder mode in key '{key}'"
            + _context(bundle, locale)
            + f": {detail}",
            ErrorCode.INCONSISTENT_MODE,
            bundle=bundle,
            locale=locale,
            key=key,
        )
        self.detail = detail


# =============================================================================
# Model Errors
# =============================================================================


class LocaleInconsistencyError(GenerationError):
    """A locale variant disagrees with the default catalog's placeholders."""

    def __init__(self, bundle: str, locale: str, key: str, mismatch: str) -> None:
        super().__init__(
            f"Locale '{locale}' of bundle '{bundle}' is inconsistent for key "
            f"'{key}': {mismatch}",
            ErrorCode.LOCALE_INCONSISTENCY,
            bundle=bundle,
            locale=locale,
            key=key,
            mismatch=mismatch,
            hint="The default catalog is authoritative; fix the variant template.",
        )
        self.mismatch = mismatch


class MethodNameCollisionError(GenerationError):
    """Two keys map to the same generated method name."""

    def __init__(
        self,
        bundle: str,
        method_name: str,
        keys: Sequence[str],
    ) -> None:
        super().__init__(
            f"Keys {', '.join(repr(k) for k in keys)} of bundle '{bundle}' "
            f"all map to method '{method_name}'",
            ErrorCode.METHOD_NAME_COLLISION,
            bundle=bundle,
            key=keys[0] if keys else None,
            method_name=method_name,
            keys=list(keys),
            hint="Rename one of the keys.",
        )
        self.method_name = method_name
        self.keys = list(keys)


E = TypeVar("E", bound=GenerationError)


class CatalogValidationError(GenerationError):
    """Aggregate of every validation error found in one generation run."""

    def __init__(self, bundle: str, errors: Sequence[GenerationError]) -> None:
        count = len(errors)
        lines = [f"Bundle '{bundle}' failed validation with {count} error(s):"]
        lines.extend(f"  - {e.message}" for e in errors)
        super().__init__(
            "\n".join(lines),
            ErrorCode.VALIDATION_FAILED,
            bundle=bundle,
            error_count=count,
        )
        self.errors: list[GenerationError] = list(errors)

    def __iter__(self) -> Iterator[GenerationError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def errors_of(self, error_type: type[E]) -> list[E]:
        """Return the collected errors of one type."""
        return [e for e in self.errors if isinstance(e, error_type)]


def _context(bundle: str | None, locale: str | None) -> str:
    parts = []
    if bundle:
        parts.append(f"bundle '{bundle}'")
    if locale:
        parts.append(f"locale '{locale}'")
    return f" ({', '.join(parts)})" if parts else ""

"""Placeholder extraction for message templates.

Templates use the ``str.format`` field syntax restricted to two shapes:

- Positional: ``{0}``, ``{1}``, ... (non-negative integers)
- Named: ``{firstName}``, ``{count}`` (identifiers)

``{{`` and ``}}`` are literal braces. Anything else between braces, such as
format specs, attribute access or an empty ``{}``, is rejected so that the
generated method arity can never silently disagree with the template.

Example:
    >>> extract_placeholders("Hello {0} {1}").arity
    2
    >>> extract_placeholders("Bonjour {lastName} {firstName}").names
    ('lastName', 'firstName')
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Union

from typedbundle.errors import (
    InconsistentPlaceholderModeError,
    MalformedPlaceholderError,
)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_INDEX = re.compile(r"[0-9]+\Z")


class PlaceholderMode(str, Enum):
    """Substitution mode of a template or a whole catalog."""

    POSITIONAL = "positional"
    NAMED = "named"
    NO_ARGS = "no_args"


@dataclass(frozen=True, order=True)
class Positional:
    """An indexed placeholder such as ``{0}``."""

    index: int

    @property
    def mode(self) -> PlaceholderMode:
        return PlaceholderMode.POSITIONAL

    @property
    def token(self) -> str:
        return f"{{{self.index}}}"


@dataclass(frozen=True, order=True)
class Named:
    """A named placeholder such as ``{firstName}``."""

    name: str

    @property
    def mode(self) -> PlaceholderMode:
        return PlaceholderMode.NAMED

    @property
    def token(self) -> str:
        return f"{{{self.name}}}"


Placeholder = Union[Positional, Named]


@dataclass(frozen=True)
class PlaceholderSet:
    """Ordered, deduplicated placeholders of a single template.

    Attributes:
        mode: POSITIONAL, NAMED, or NO_ARGS when the template has none.
        placeholders: Distinct placeholders in first-occurrence order.
    """

    mode: PlaceholderMode
    placeholders: tuple[Placeholder, ...] = ()

    @property
    def arity(self) -> int:
        """Number of parameters a caller must supply.

        Positional arity is ``max(index) + 1``: unused gap indices still
        count, matching ``str.format`` which requires every lower index.
        """
        if self.mode is PlaceholderMode.POSITIONAL:
            return max(p.index for p in self.placeholders) + 1  # type: ignore[union-attr]
        return len(self.placeholders)

    @property
    def indices(self) -> tuple[int, ...]:
        """Positional indices in first-occurrence order."""
        return tuple(p.index for p in self.placeholders if isinstance(p, Positional))

    @property
    def names(self) -> tuple[str, ...]:
        """Named identifiers in first-occurrence order."""
        return tuple(p.name for p in self.placeholders if isinstance(p, Named))

    @property
    def is_empty(self) -> bool:
        return self.mode is PlaceholderMode.NO_ARGS

    def __iter__(self) -> Iterator[Placeholder]:
        return iter(self.placeholders)

    def __len__(self) -> int:
        return len(self.placeholders)


NO_ARGS = PlaceholderSet(PlaceholderMode.NO_ARGS)


def iter_fields(template: str, key: str = "", **context: str | None) -> Iterator[tuple[int, str]]:
    """Yield ``(offset, token)`` for every brace-delimited field.

    Args:
        template: Raw template text.
        key: Message key, used only for error reporting.
        **context: ``bundle``/``locale`` for error reporting.

    Raises:
        MalformedPlaceholderError: On an unterminated ``{`` or a lone ``}``.
    """
    i = 0
    length = len(template)
    while i < length:
        char = template[i]
        if char == "{":
            if template.startswith("{{", i):
                i += 2
                continue
            end = template.find("}", i + 1)
            if end == -1:
                raise MalformedPlaceholderError(key, template[i:], position=i, **context)
            token = template[i + 1 : end]
            if "{" in token:
                raise MalformedPlaceholderError(
                    key, template[i : end + 1], position=i, **context
                )
            yield i, token
            i = end + 1
        elif char == "}":
            if template.startswith("}}", i):
                i += 2
                continue
            raise MalformedPlaceholderError(key, "}", position=i, **context)
        else:
            i += 1


def classify(
    token: str,
    key: str = "",
    position: int | None = None,
    **context: str | None,
) -> Placeholder:
    """Classify a field token as positional or named."""
    if _INDEX.match(token):
        return Positional(int(token))
    if _IDENTIFIER.match(token):
        return Named(token)
    raise MalformedPlaceholderError(key, f"{{{token}}}", position=position, **context)


def extract_placeholders(
    template: str,
    key: str = "",
    *,
    bundle: str | None = None,
    locale: str | None = None,
) -> PlaceholderSet:
    """Extract the placeholder set of one template.

    Args:
        template: Raw template text.
        key: Message key, used only for error reporting.
        bundle: Bundle name, used only for error reporting.
        locale: Locale label, used only for error reporting.

    Returns:
        PlaceholderSet, ``NO_ARGS`` when the template has no fields.

    Raises:
        MalformedPlaceholderError: If a field is neither an index nor an
            identifier, or braces are unbalanced.
        InconsistentPlaceholderModeError: If positional and named fields are
            mixed.
    """
    context = {"bundle": bundle, "locale": locale}
    seen: dict[Placeholder, None] = {}
    for position, token in iter_fields(template, key, **context):
        seen.setdefault(classify(token, key, position, **context), None)

    if not seen:
        return NO_ARGS

    placeholders = tuple(seen)
    modes = {p.mode for p in placeholders}
    if len(modes) > 1:
        first_positional = next(p for p in placeholders if isinstance(p, Positional))
        first_named = next(p for p in placeholders if isinstance(p, Named))
        raise InconsistentPlaceholderModeError(
            key,
            f"mixes {first_positional.token} with {first_named.token}",
            **context,
        )
    return PlaceholderSet(modes.pop(), placeholders)

"""Accessor module code generation.

Renders a GeneratedAccessorSpec into the source of one Python module holding
an accessor class with one method per message key. Rendering is a pure
function of the accessor spec: the same input always yields byte-identical source.

Example:
    source = CodeGenerator().render(spec)
    Path("messages.py").write_text(source, encoding="utf-8")
"""

from __future__ import annotations

import ast
import logging
from pathlib import PurePosixPath
from typing import Any

from jinja2 import Environment, StrictUndefined

from typedbundle.errors import ErrorCode, GenerationError
from typedbundle.model import GeneratedAccessorSpec, MessageDescriptor
from typedbundle.placeholders import PlaceholderMode

logger = logging.getLogger(__name__)


ACCESSOR_TEMPLATE = '''\
"""Typed message accessors for the ``{{ spec.bundle }}`` bundle.

Generated by typedbundle from the default catalog
{%- if spec.locales %} and {{ spec.locales | length }} locale variant(s){% endif %}.
Do not edit; regenerate with ``typedbundle generate``.
"""

from __future__ import annotations

from pathlib import Path

from typedbundle.runtime import (
    LocaleResolver,
{% if uses_named %}
    format_named,
{% endif %}
    format_positional,
    get_resolver,
)

BUNDLE_NAME = {{ spec.bundle | pyrepr }}
{% if spec.catalog_dir_relative %}
CATALOG_DIR = Path(__file__).resolve().parent{% for part in catalog_parts %} / {{ part | pyrepr }}{% endfor %}

{% else %}
CATALOG_DIR = Path({{ spec.catalog_dir | pyrepr }})
{% endif %}
LOCALES: tuple[str, ...] = {{ spec.locales | pyrepr }}


class {{ spec.class_name }}:
    """Typed accessors for the ``{{ spec.bundle }}`` bundle.

    Each method takes the locale first, then exactly the arguments the
    default template requires, in declaration order.
    """

    bundle_name = BUNDLE_NAME
    KEYS: tuple[str, ...] = (
{% for d in spec.descriptors %}
        {{ d.key | pyrepr }},
{% endfor %}
    )

    def __init__(self, resolver: LocaleResolver | None = None) -> None:
        self._resolver = resolver or get_resolver(BUNDLE_NAME, CATALOG_DIR)

    @property
    def resolver(self) -> LocaleResolver:
        return self._resolver
{% for d in spec.descriptors %}

    def {{ d.method_name }}(self, locale: str | None{% for p in d.parameters %}, {{ p.name }}: object{% endfor %}) -> str:
        """{{ d.key | pyrepr | docstring }}: {{ d.template | pyrepr | docstring }}."""
        template = self._resolver.get_string(locale, {{ d.key | pyrepr }})
{% if d.mode.value == "named" %}
        return format_named(
            template,
            {
{% for p in d.parameters %}
                {{ p.field_name | pyrepr }}: {{ p.name }},
{% endfor %}
            },
        )
{% else %}
        return format_positional(template{% for p in d.parameters %}, {{ p.name }}{% endfor %})
{% endif %}
{% endfor %}
'''


def _docstring(text: str) -> str:
    return text.replace('"', '\\"')


def catalog_path_parts(catalog_dir: str) -> list[str]:
    """Split a relative catalog directory into path segments."""
    return [p for p in PurePosixPath(catalog_dir.replace("\\", "/")).parts if p != "."]


class CodeGenerator:
    """Renders accessor modules with Jinja2.

    Args:
        template: Jinja2 template source; defaults to ACCESSOR_TEMPLATE.
    """

    def __init__(self, template: str | None = None) -> None:
        self._env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self._env.filters["pyrepr"] = repr
        self._env.filters["docstring"] = _docstring
        self._template = self._env.from_string(template or ACCESSOR_TEMPLATE)

    def context(self, spec: GeneratedAccessorSpec) -> dict[str, Any]:
        """Template context for a spec."""
        return {
            "spec": spec,
            "uses_named": any(_is_named(d) for d in spec.descriptors),
            "catalog_parts": catalog_path_parts(spec.catalog_dir)
            if spec.catalog_dir_relative
            else [],
        }

    def render(self, spec: GeneratedAccessorSpec) -> str:
        """Render the accessor module source.

        Raises:
            GenerationError: If the rendered source is not valid Python.
        """
        source = self._template.render(**self.context(spec))
        try:
            ast.parse(source, filename=f"<{spec.bundle}>")
        except SyntaxError as e:
            raise GenerationError(
                f"Generated accessor for bundle '{spec.bundle}' is not valid "
                f"Python: {e.msg} (line {e.lineno})",
                ErrorCode.GENERAL_ERROR,
                bundle=spec.bundle,
            ) from e
        logger.debug(
            "Rendered %s with %d methods (%d bytes)",
            spec.class_name,
            len(spec.descriptors),
            len(source),
        )
        return source


def _is_named(descriptor: MessageDescriptor) -> bool:
    return descriptor.mode is PlaceholderMode.NAMED


def render_accessor(spec: GeneratedAccessorSpec) -> str:
    """Render an accessor module with the default template."""
    return CodeGenerator().render(spec)

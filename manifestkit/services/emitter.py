"""Render fetched services and schemas as a Python source module.

One serializer per shape. String-keyed maps are emitted in sorted key order so
equal input always yields byte-identical output.
"""
from __future__ import annotations

import ast
from typing import Any, List, Mapping

from manifestkit.core.errors import GenerationError
from manifestkit.models.schemas import APIEntry, ServiceReference

HEADER = (
    "# Code generated by manifestkit generate; DO NOT EDIT\n"
    "from manifestkit.models.schemas import APIEntry, ServiceReference\n"
)

_ENTRY_STR_FIELDS = ("name", "route", "type", "method", "title", "description", "stability", "input", "output")
_REFERENCE_STR_FIELDS = ("base_url", "version", "title", "description")


def _indent(level: int) -> str:
    return "    " * level


def _str_list(values: List[str]) -> str:
    return "[" + ", ".join(repr(v) for v in values) + "]"


def _scopes_literal(value: Any) -> str:
    """Literal for decoded scope JSON; object keys sorted."""
    if isinstance(value, dict):
        return "{" + ", ".join(f"{k!r}: {_scopes_literal(value[k])}" for k in sorted(value)) + "}"
    if isinstance(value, list):
        return "[" + ", ".join(_scopes_literal(v) for v in value) + "]"
    return repr(value)


def render_entry(entry: APIEntry, level: int) -> str:
    pad = _indent(level + 1)
    lines = ["APIEntry("]
    for field in _ENTRY_STR_FIELDS:
        lines.append(f"{pad}{field}={getattr(entry, field)!r},")
    lines.append(f"{pad}args={_str_list(entry.args)},")
    lines.append(f"{pad}query={_str_list(entry.query)},")
    lines.append(f"{pad}scopes={_scopes_literal(entry.scopes)},")
    lines.append(f"{_indent(level)})")
    return "\n".join(lines)


def render_reference(reference: ServiceReference, level: int) -> str:
    pad = _indent(level + 1)
    lines = ["ServiceReference("]
    for field in _REFERENCE_STR_FIELDS:
        lines.append(f"{pad}{field}={getattr(reference, field)!r},")
    if reference.entries:
        lines.append(f"{pad}entries=[")
        for entry in reference.entries:
            lines.append(f"{_indent(level + 2)}{render_entry(entry, level + 2)},")
        lines.append(f"{pad}],")
    else:
        lines.append(f"{pad}entries=[],")
    lines.append(f"{_indent(level)})")
    return "\n".join(lines)


def render_services(services: Mapping[str, ServiceReference]) -> str:
    """Render the services map as a dict literal."""
    if not services:
        return "{}"
    lines = ["{"]
    for name in sorted(services):
        lines.append(f"{_indent(1)}{name!r}: {render_reference(services[name], 1)},")
    lines.append("}")
    return "\n".join(lines)


def render_schemas(schemas: Mapping[str, str]) -> str:
    """Render the schema URL -> raw text map as a dict literal."""
    if not schemas:
        return "{}"
    lines = ["{"]
    for url in sorted(schemas):
        lines.append(f"{_indent(1)}{url!r}: {schemas[url]!r},")
    lines.append("}")
    return "\n".join(lines)


def render_module(
    services: Mapping[str, ServiceReference],
    schemas: Mapping[str, str],
    services_var: str = "SERVICES",
    schemas_var: str = "SCHEMAS",
) -> str:
    """Render the complete module and check that it parses."""
    for var in (services_var, schemas_var):
        if not var.isidentifier():
            raise GenerationError(f"not a valid identifier: {var!r}")
    source = (
        f"{HEADER}\n"
        f"{services_var}: dict[str, ServiceReference] = {render_services(services)}\n\n"
        f"{schemas_var}: dict[str, str] = {render_schemas(schemas)}\n"
    )
    try:
        ast.parse(source)
    except SyntaxError as e:
        raise GenerationError(f"generated source does not parse: {e}") from e
    return source

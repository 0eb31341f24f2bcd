"""OData path and filter-expression builders for the Administration Service.

Filters are built from ``(field, operator, literal)`` triples instead of
string concatenation so quoting happens in one place::

    >>> str(Filter("Name", "eq", "O'Brien's PCs") & Filter("CollectionType", "eq", 2))
    "(Name eq 'O''Brien''s PCs') and (CollectionType eq 2)"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from cmadmin.client.errors import ValidationError

WMI_ROOT = "wmi"
METHOD_NAMESPACE = "AdminService"

_COMPARISON_OPS = frozenset({"eq", "ne", "gt", "ge", "lt", "le"})
_FUNCTION_OPS = frozenset({"startswith", "contains", "endswith"})


def literal(value: Any) -> str:
    """Render a Python value as an OData literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("'", "''")
    return f"'{text}'"


class Expression:
    """Base for filter expressions; supports ``&`` and ``|``."""

    def render(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()

    def __and__(self, other: Expression) -> Expression:
        return _Group("and", (self, other))

    def __or__(self, other: Expression) -> Expression:
        return _Group("or", (self, other))


@dataclass(frozen=True)
class Filter(Expression):
    """A single ``field op literal`` comparison or string function call."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _COMPARISON_OPS | _FUNCTION_OPS:
            raise ValidationError(f"Unsupported filter operator '{self.op}'")
        if not self.field or not self.field.replace("_", "").isalnum():
            raise ValidationError(f"Invalid filter field '{self.field}'")

    def render(self) -> str:
        if self.op in _FUNCTION_OPS:
            return f"{self.op}({self.field},{literal(self.value)})"
        return f"{self.field} {self.op} {literal(self.value)}"


@dataclass(frozen=True)
class _Group(Expression):
    joiner: str
    parts: tuple[Expression, ...]

    def render(self) -> str:
        return f" {self.joiner} ".join(f"({part.render()})" for part in self.parts)


@dataclass(frozen=True)
class ResourcePath:
    """Relative path to a WMI class, one instance of it, or a server-side method."""

    resource_class: str
    key: str | int | None = None
    method: str | None = None

    def render(self) -> str:
        path = f"{WMI_ROOT}/{self.resource_class}"
        if self.key is not None:
            path += f"({literal(self.key)})"
        if self.method:
            path += f"/{METHOD_NAMESPACE}.{self.method}"
        return path

    def __str__(self) -> str:
        return self.render()


def query_params(
    path: ResourcePath | None = None,
    *,
    filter: Expression | None = None,
    select: list[str] | None = None,
) -> dict[str, str]:
    """Build the ``$filter``/``$select`` query parameters for a request."""
    if filter is not None and path is not None and path.key is not None:
        raise ValidationError("A keyed resource path cannot also be filtered")
    params: dict[str, str] = {}
    if filter is not None:
        params["$filter"] = filter.render()
    if select:
        params["$select"] = ",".join(select)
    return params

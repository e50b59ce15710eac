"""Tool descriptors and the read-only registry that resolves and validates them.

Lookup and validation are pure: no I/O, no side effects, and validation never
raises. Unknown tools and invalid arguments are distinct error kinds.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from .errors import ErrorKind, FieldIssue, StructuredError

if TYPE_CHECKING:
    from .github_client import GitHubClient

ToolOutcome = dict[str, Any] | StructuredError
ToolHandler = Callable[["GitHubClient", Any], Awaitable[ToolOutcome]]


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """One tool: its argument model, description, and handler."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler

    def input_schema(self) -> dict[str, Any]:
        """JSON Schema advertised to MCP clients."""
        schema = self.input_model.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return schema


def _field_path(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def field_issues(exc: ValidationError) -> tuple[FieldIssue, ...]:
    """Flatten a pydantic ValidationError into FieldIssues."""
    return tuple(
        FieldIssue(
            field=_field_path(tuple(err.get("loc", ()))),
            reason=err.get("msg", "invalid"),
            error_type=err.get("type", "value_error"),
        )
        for err in exc.errors(include_url=False)
    )


class ToolRegistry(Mapping[str, ToolDescriptor]):
    """Immutable name -> ToolDescriptor mapping."""

    def __init__(self, descriptors: Iterable[ToolDescriptor]) -> None:
        table: dict[str, ToolDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in table:
                raise ValueError(f"Duplicate tool name: {descriptor.name}")
            table[descriptor.name] = descriptor
        self._table = MappingProxyType(table)

    def __getitem__(self, name: str) -> ToolDescriptor:
        return self._table[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def names(self) -> list[str]:
        return sorted(self._table)

    def input_schema(self, name: str) -> dict[str, Any]:
        """JSON Schema for a registered tool's arguments.

        Raises:
            KeyError: If no tool is registered under `name`.
        """
        return self._table[name].input_schema()

    def lookup(self, name: str) -> ToolDescriptor | StructuredError:
        """Resolve a tool by name."""
        descriptor = self._table.get(name)
        if descriptor is None:
            return StructuredError(
                kind=ErrorKind.UNKNOWN_TOOL,
                message=f"Unknown tool: {name}. Available tools: {', '.join(self.names())}",
                context=f"resolving tool {name!r}",
            )
        return descriptor

    def validate(self, descriptor: ToolDescriptor, raw_args: Any) -> BaseModel | StructuredError:
        """Validate raw arguments against the tool's input model."""
        if raw_args is None:
            raw_args = {}
        context = f"validating arguments for {descriptor.name}"

        if not isinstance(raw_args, Mapping):
            return StructuredError(
                kind=ErrorKind.VALIDATION_ERROR,
                message=f"Invalid arguments for {descriptor.name}: arguments must be an object",
                context=context,
                fields=(FieldIssue(field="<root>", reason="Input should be an object", error_type="model_type"),),
            )

        try:
            return descriptor.input_model.model_validate(dict(raw_args))
        except ValidationError as exc:
            issues = field_issues(exc)
            summary = "; ".join(f"{i.field}: {i.reason}" for i in issues)
            return StructuredError(
                kind=ErrorKind.VALIDATION_ERROR,
                message=f"Invalid arguments for {descriptor.name}: {summary}",
                context=context,
                fields=issues,
            )

"""
Tool Registry - lookup from tool name to its descriptor.

A registry is populated once at startup and is read-only afterwards, so a
single instance can be shared by any number of conversations.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Iterator, Optional, Union

from ..errors import DuplicateToolError, NotFoundError

ToolHandler = Callable[[dict], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class ToolDescriptor:
    """Metadata and handler for a tool - defined once, used everywhere."""

    name: str
    description: str
    handler: ToolHandler = field(compare=False)
    input_schema: dict = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class ToolRegistry:
    """Insertion-ordered registry of tool descriptors."""

    def __init__(self, tools: Iterable[ToolDescriptor] = ()):
        self._tools: dict[str, ToolDescriptor] = {}
        for tool in tools:
            self.register(tool)

    def register(self, descriptor: ToolDescriptor) -> None:
        """Register a tool. Names are unique and cannot be replaced."""
        if descriptor.name in self._tools:
            raise DuplicateToolError(descriptor.name)
        self._tools[descriptor.name] = descriptor

    def resolve(self, name: str) -> ToolDescriptor:
        """Get a tool by name, raising NotFoundError if absent."""
        try:
            return self._tools[name]
        except KeyError:
            raise NotFoundError(name) from None

    def get(self, name: str) -> Optional[ToolDescriptor]:
        """Get a tool by name, or None."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def get_tools_summary(self) -> str:
        """Get formatted summary of all tools for prompts."""
        lines = []
        for name, tool in self._tools.items():
            lines.append(f"- {name}: {tool.description}")
        return "\n".join(lines)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(list(self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)

    # Defined last: the method name shadows the builtin inside the class body.
    def list(self) -> list[ToolDescriptor]:
        """All descriptors in registration order."""
        return [tool for tool in self._tools.values()]

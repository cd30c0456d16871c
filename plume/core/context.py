"""
Injected Context - the capabilities shared with loaders and commands.

Well-known capabilities live in named fields; anything else a library
module exports is kept in ``exports``. Reads through the mapping interface
see both.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from plume.config import BotConfig
from plume.core.command import CommandDescriptor


class ContextError(Exception):
    """Base exception for context errors."""

    pass


_NAMED = ("config", "utility", "commands", "privates", "feathers")


@dataclass
class InjectedContext:
    """
    Capabilities injected into every loader and command.

    Attributes:
        config: Validated bot configuration
        utility: Utility collaborator (exported by a library module)
        commands: Keyword -> CommandDescriptor
        privates: Internal commands, never dispatched from chat
        feathers: Objects returned by the feather loader
        exports: Every other key merged in by library modules
        client: Transport handle for loaders; not a capability
        complete: Set once all three plugin loads have been merged
    """

    config: BotConfig
    utility: Any = None
    commands: dict[str, CommandDescriptor] = field(default_factory=dict)
    privates: dict[str, CommandDescriptor] = field(default_factory=dict)
    feathers: list[Any] = field(default_factory=list)
    exports: dict[str, Any] = field(default_factory=dict)
    client: Any = field(default=None, repr=False)
    complete: bool = False

    def merge(self, partial: Mapping[str, Any]) -> "InjectedContext":
        """
        Copy every key of *partial* into the context.

        Last writer wins and conflicts are not detected. Callers must not
        merge concurrently.

        Returns:
            The context, for chaining
        """
        for key, value in partial.items():
            if key in _NAMED:
                setattr(self, key, value)
            else:
                self.exports[key] = value
        return self

    def mark_complete(self) -> None:
        if self.complete:
            raise ContextError("Context is already load-complete")
        self.complete = True

    def __getitem__(self, key: str) -> Any:
        if key in _NAMED:
            return getattr(self, key)
        try:
            return self.exports[key]
        except KeyError:
            raise KeyError(key) from None

    def __contains__(self, key: object) -> bool:
        return key in _NAMED or key in self.exports

    def __iter__(self) -> Iterator[str]:
        yield from _NAMED
        yield from self.exports

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def keys(self) -> list[str]:
        return list(self)

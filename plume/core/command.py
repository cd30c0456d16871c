"""
Command descriptors and per-message dispatch details.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CommandError(Exception):
    """Raised when a command descriptor is invalid."""

    pass


class Permission(Enum):
    """Permission level of a command."""

    PUBLIC = "public"
    PRIVATE = "private"


@dataclass
class CommandDescriptor:
    """
    A registered command.

    Attributes:
        keyword: Unique keyword, stored lower-cased
        action: Callable taking DispatchDetails; may be a coroutine function
        aliases: Alternate keywords; may collide with other commands' aliases
        permission: PUBLIC or PRIVATE
        disabled: Reply with a "disabled" notice instead of running
        description: Short help text
    """

    keyword: str
    action: Callable[["DispatchDetails"], Any]
    aliases: Iterable[str] = field(default_factory=tuple)
    permission: Permission = Permission.PUBLIC
    disabled: bool = False
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.keyword, str) or not self.keyword.strip():
            raise CommandError(f"Invalid command keyword: {self.keyword!r}")
        if any(ch.isspace() for ch in self.keyword.strip()):
            raise CommandError(f"Command keyword must be one word: {self.keyword!r}")
        if not callable(self.action):
            raise CommandError(f"Action for command '{self.keyword}' is not callable")

        if isinstance(self.aliases, str):
            self.aliases = (self.aliases,)
        self.aliases = tuple(alias.strip().lower() for alias in self.aliases)

        if isinstance(self.permission, str):
            try:
                self.permission = Permission(self.permission.lower())
            except ValueError as e:
                raise CommandError(
                    f"Invalid permission for command '{self.keyword}': {self.permission!r}"
                ) from e

        self.keyword = self.keyword.strip().lower()

    @property
    def is_public(self) -> bool:
        return self.permission is Permission.PUBLIC

    def answers_to(self, keyword: str) -> bool:
        """True if *keyword* is one of this command's aliases."""
        return keyword in self.aliases


def command(
    keyword: str,
    *,
    aliases: Iterable[str] = (),
    permission: Permission | str = Permission.PUBLIC,
    disabled: bool = False,
    description: str = "",
) -> Callable[[Callable], CommandDescriptor]:
    """
    Decorator turning an action into a CommandDescriptor.

    Example:
        @command("ping", aliases=["p"])
        async def ping(details):
            ...
    """

    def decorator(func: Callable) -> CommandDescriptor:
        return CommandDescriptor(
            keyword=keyword,
            action=func,
            aliases=aliases,
            permission=permission,
            disabled=disabled,
            description=description or (func.__doc__ or "").strip(),
        )

    return decorator


@dataclass
class DispatchDetails:
    """
    Everything a command action learns about the message that invoked it.

    ``args`` holds every whitespace-separated token after the prefix,
    keyword included, while ``input`` is the text after the keyword.
    ``keyword`` is the lower-cased first token used to resolve the command.
    """

    user: str
    user_id: str
    channel_id: str
    message: str
    is_direct_message: bool
    is_command_form: bool
    is_administrator: bool
    server_id: str | None = None
    input: str = ""
    args: list[str] = field(default_factory=list)
    keyword: str = ""

"""
Transport contract.

plume does not speak any chat wire protocol itself. A transport adapter
implements the Transport protocol below and is named in the configuration
as ``module:attribute``; the attribute is called with the BotConfig and
must return the transport instance.

Events a transport emits through ``on``:
- ready()
- message(InboundMessage)
- disconnect(reason, code)
- guild_create(server)
- guild_delete(server)
"""

import importlib
from collections.abc import Callable, Container
from dataclasses import dataclass
from typing import Any, Protocol


class TransportError(Exception):
    """Base exception for transport-related errors."""

    pass


@dataclass(frozen=True)
class InboundMessage:
    """A chat message as delivered by the transport."""

    author_username: str
    author_id: str
    channel_id: str
    content: str


class Transport(Protocol):
    username: str
    id: str
    direct_messages: Container[str]

    def on(self, event: str, callback: Callable) -> Any: ...

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def set_presence(self, name: str) -> None: ...

    async def send_message(
        self,
        channel_id: str,
        *,
        content: str | None = None,
        embed: dict[str, Any] | None = None,
    ) -> None: ...


def load_transport_factory(target: str) -> Callable[[Any], Transport]:
    """
    Resolve a ``module:attribute`` string to a transport factory.

    Raises:
        TransportError: If the factory string is malformed or cannot be imported
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise TransportError(
            f"Invalid transport '{target}'. Expected 'module:attribute'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise TransportError(f"Failed to import transport module {module_name}: {e}") from e

    factory = module
    for part in attr.split("."):
        try:
            factory = getattr(factory, part)
        except AttributeError as e:
            raise TransportError(f"Transport factory not found: {target}") from e

    if not callable(factory):
        raise TransportError(f"Transport factory is not callable: {target}")

    return factory

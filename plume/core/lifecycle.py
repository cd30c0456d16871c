"""
Lifecycle Controller - connection state machine.

States:
    IDLE -> LISTENING          once plugin loading has completed
    LISTENING -> RECONNECTING  on disconnect without a kill
    RECONNECTING -> LISTENING  on the next transport ready
    * -> KILLED                on disconnect after kill(); terminal

Reconnects are unconditional: no backoff and no retry ceiling.
"""

import asyncio
import sys
from collections.abc import Callable
from enum import Enum

from plume.core.context import InjectedContext
from plume.core.dispatcher import MessageDispatcher
from plume.core.events import EventEmitter
from plume.system.transport import InboundMessage, Transport


class LifecycleError(Exception):
    """Base exception for lifecycle errors."""

    pass


class LifecycleState(Enum):
    """Connection lifecycle state."""

    IDLE = "idle"
    LISTENING = "listening"
    RECONNECTING = "reconnecting"
    KILLED = "killed"


class LifecycleController:
    """
    Wires transport events to the dispatcher and governs shutdown.

    Args:
        context: Injected context, complete before listen() is called
        transport: Transport client
        dispatcher: Dispatcher for inbound messages
        events: Bot-level emitter; receives "new_server"/"left_server"
        exit_process: Called with the exit status after a kill
    """

    def __init__(
        self,
        context: InjectedContext,
        transport: Transport,
        dispatcher: MessageDispatcher,
        events: EventEmitter | None = None,
        exit_process: Callable[[int], object] = sys.exit,
    ):
        self.context = context
        self.transport = transport
        self.dispatcher = dispatcher
        self.events = events or EventEmitter()
        self.exit_process = exit_process
        self.state = LifecycleState.IDLE
        self._manual_kill = False

    @property
    def manual_kill(self) -> bool:
        return self._manual_kill

    @property
    def accepting_messages(self) -> bool:
        return self.state in (LifecycleState.LISTENING, LifecycleState.RECONNECTING)

    def listen(self, ready: asyncio.Event) -> None:
        """
        Subscribe to transport events and enter LISTENING.

        Args:
            ready: Readiness signal fired by the plugin load coordinator

        Raises:
            LifecycleError: If loading has not completed or already listening
        """
        if not ready.is_set() or not self.context.complete:
            raise LifecycleError("Cannot listen before plugin loading completes")
        if self.state is not LifecycleState.IDLE:
            raise LifecycleError(f"Cannot listen from state {self.state.value}")
        if self.context.utility is None:
            raise LifecycleError("No utility was provided by the library modules")

        self.transport.on("ready", self.on_ready)
        self.transport.on("message", self.on_message)
        self.transport.on("disconnect", self.on_disconnect)
        self.transport.on("guild_create", self.on_guild_create)
        self.transport.on("guild_delete", self.on_guild_delete)

        self.state = LifecycleState.LISTENING

    async def on_ready(self) -> None:
        transport = self.transport
        print(f"{transport.username} - ({transport.id})")

        if self.state is LifecycleState.RECONNECTING:
            self.state = LifecycleState.LISTENING

        status = self.context.utility.filter(self.context.config.playing)
        await transport.set_presence(status)

    async def on_message(self, message: InboundMessage) -> None:
        if not self.accepting_messages:
            return
        await self.dispatcher.dispatch(message)

    async def on_disconnect(self, reason: str, code: int | str) -> None:
        if self.state is LifecycleState.KILLED:
            return

        print(f"ERROR {code}: {reason}", file=sys.stderr)

        if not self._manual_kill:
            self.state = LifecycleState.RECONNECTING
            await self.transport.connect()
            return

        self.state = LifecycleState.KILLED
        print("Kill command used.")
        self.exit_process(0)

    async def on_guild_create(self, server) -> None:
        print("Joined new server")
        await self.events.emit("new_server", server)

    async def on_guild_delete(self, server) -> None:
        print(f"Left {server}")
        await self.events.emit("left_server", server)

    async def kill(self) -> None:
        """
        Request a clean shutdown.

        The disconnect event that follows exits the process. Repeated calls
        do nothing.
        """
        if self._manual_kill:
            return
        self._manual_kill = True
        await self.transport.disconnect()

"""
Bot - the orchestrator instance.

A Bot owns its context, event emitter, plugin load coordinator, message
dispatcher and lifecycle controller. Nothing is shared between instances.

Example:
    bot = Bot(load_config(), transport)
    await bot.boot()
"""

import sys
import warnings
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from plume.config import BotConfig
from plume.core.context import InjectedContext
from plume.core.dispatcher import MessageDispatcher
from plume.core.events import EventEmitter
from plume.core.lifecycle import LifecycleController, LifecycleError, LifecycleState
from plume.plugin.coordinator import LoadFailure, PluginLoadCoordinator, PluginLoaders
from plume.plugin.loader import CommandLoader, FeatherLoader, ModuleLoader
from plume.system.transport import Transport


def default_loaders(config: BotConfig, base: Path | None = None) -> PluginLoaders:
    """Directory loaders for the command, library and feather paths in *config*."""
    return PluginLoaders(
        commands=CommandLoader(config.resolve_dir("commands_dir", base)),
        modules=ModuleLoader(config.resolve_dir("lib_dir", base)),
        feathers=FeatherLoader(config.resolve_dir("feathers_dir", base)),
    )


class Bot:
    """
    Chat bot orchestrator.

    Args:
        config: Validated bot configuration
        transport: Transport client
        loaders: Plugin loaders (default: directory loaders from config)
        debug: Report load failures (default: config.debug)
        exit_process: Called with status 0 after a kill completes
    """

    def __init__(
        self,
        config: BotConfig,
        transport: Transport,
        *,
        loaders: PluginLoaders | None = None,
        debug: bool | None = None,
        exit_process: Callable[[int], object] = sys.exit,
    ):
        self.config = config
        self.transport = transport
        self.debug = config.debug if debug is None else debug
        self.start_time = datetime.now()

        self.events = EventEmitter()
        self.context = InjectedContext(config=config, client=transport)
        self.coordinator = PluginLoadCoordinator(
            loaders or default_loaders(config), self.events, debug=self.debug
        )
        self.dispatcher = MessageDispatcher(self.context, transport)
        self.lifecycle = LifecycleController(
            self.context,
            transport,
            self.dispatcher,
            events=self.events,
            exit_process=exit_process,
        )

    @property
    def state(self) -> LifecycleState:
        return self.lifecycle.state

    @property
    def manual_kill(self) -> bool:
        return self.lifecycle.manual_kill

    @property
    def uptime(self) -> float:
        """Seconds since the bot was created."""
        return (datetime.now() - self.start_time).total_seconds()

    async def boot(self) -> bool:
        """
        Load plugins, start listening and connect the transport.

        Returns:
            False if plugin loading failed or no library provided a
            utility; the bot stays inert and the transport is not connected
        """
        try:
            await self.coordinator.load(self.context)
        except LoadFailure:
            return False

        try:
            self.lifecycle.listen(self.coordinator.ready)
        except LifecycleError as e:
            if self.debug:
                warnings.warn(f"Cannot start listening: {e}", RuntimeWarning, stacklevel=2)
            return False

        await self.transport.connect()
        return True

    async def kill(self) -> None:
        """Disconnect on purpose; the following disconnect event exits."""
        await self.lifecycle.kill()

"""
Plugin Load Coordinator.

Runs the command, library and feather loaders concurrently against the
context and merges their results exactly once. Loading is all-or-nothing:
if any loader fails nothing is merged and readiness never fires.
"""

import asyncio
import warnings
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from plume.core.context import InjectedContext
from plume.core.events import EventEmitter


class LoadFailure(Exception):
    """
    Raised when plugin loading fails.

    Attributes:
        errors: Loader name -> exception, for every loader that failed
    """

    def __init__(self, message: str, errors: dict[str, BaseException] | None = None):
        super().__init__(message)
        self.errors = errors or {}


class Loader(Protocol):
    async def load(self, context: InjectedContext) -> Any: ...


@dataclass
class PluginLoaders:
    """The three loaders run by the coordinator."""

    commands: Loader
    modules: Loader
    feathers: Loader


class PluginLoadCoordinator:
    """
    Fans in the three plugin loads and signals readiness.

    Args:
        loaders: Command, library and feather loaders
        events: Emitter receiving the "ready" event after a successful merge
        debug: Report load failures as warnings
    """

    def __init__(
        self,
        loaders: PluginLoaders,
        events: EventEmitter | None = None,
        debug: bool = False,
    ):
        self.loaders = loaders
        self.events = events or EventEmitter()
        self.debug = debug
        self.ready = asyncio.Event()

    async def load(self, context: InjectedContext) -> InjectedContext:
        """
        Load all plugins into *context*.

        No load is cancelled when a sibling fails, and there is no timeout.

        Returns:
            The merged, load-complete context

        Raises:
            LoadFailure: If any loader fails or the context is already loaded
        """
        if context.complete or self.ready.is_set():
            raise LoadFailure("Plugins are already loaded")

        names = ("commands", "modules", "feathers")
        results = await asyncio.gather(
            self.loaders.commands.load(context),
            self.loaders.modules.load(context),
            self.loaders.feathers.load(context),
            return_exceptions=True,
        )

        errors = {
            name: result
            for name, result in zip(names, results)
            if isinstance(result, BaseException)
        }
        if errors:
            failure = LoadFailure(
                "Plugin loading failed: "
                + "; ".join(f"{name}: {error}" for name, error in errors.items()),
                errors,
            )
            if self.debug:
                warnings.warn(str(failure), RuntimeWarning, stacklevel=2)
            raise failure from next(iter(errors.values()))

        command_result, module_result, feather_result = results
        try:
            self._merge(context, command_result, module_result, feather_result)
        except LoadFailure as failure:
            if self.debug:
                warnings.warn(str(failure), RuntimeWarning, stacklevel=2)
            raise
        context.mark_complete()

        print("Bot Backend Ready")
        self.ready.set()
        await self.events.emit("ready", context)

        return context

    @staticmethod
    def _merge(
        context: InjectedContext,
        command_result: Any,
        module_result: Any,
        feather_result: Any,
    ) -> None:
        """
        Check every loader result, then apply them.

        Nothing touches the context until all three results are well formed.

        Raises:
            LoadFailure: If any loader resolved to the wrong shape
        """
        try:
            commands = dict(command_result["commands"])
            privates = dict(command_result["privates"])
        except (KeyError, TypeError, ValueError) as e:
            raise LoadFailure(
                "Command loader must resolve to {'commands': ..., 'privates': ...}"
            ) from e

        if module_result is None:
            module_result = {}
        if not isinstance(module_result, Mapping):
            raise LoadFailure(
                f"Module loader must resolve to a mapping, got {type(module_result).__name__}"
            )

        if feather_result is None:
            feather_result = []
        if isinstance(feather_result, (str, bytes, Mapping)) or not isinstance(
            feather_result, Iterable
        ):
            raise LoadFailure(
                f"Feather loader must resolve to a list, got {type(feather_result).__name__}"
            )
        feathers = list(feather_result)

        context.commands = commands
        context.privates = privates
        context.merge(module_result)
        context.feathers = feathers

"""
Directory Plugin Loaders.

Each loader scans one directory for ``*.py`` files, imports them with
importlib and collects what their ``setup(context)`` hook returns.

Key features:
- importlib integration for loading files outside sys.path
- Per-loader module cache with reload support
- Async ``load(context)`` contract shared by all three plugin kinds
"""

import importlib.util
import inspect
import re
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

from plume.core.command import CommandDescriptor


class LoaderError(Exception):
    """Base exception for loader-related errors."""

    pass


def _sanitize(name: str) -> str:
    return re.sub(r"\W", "_", name)


class DirectoryLoader:
    """
    Base loader: imports every plugin file in a directory.

    Subclasses turn the loaded modules into their own result type by
    overriding ``collect``.

    Args:
        directory: Directory to scan
    """

    kind = "plugin"

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)
        self._module_cache: dict[Path, ModuleType] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.directory)!r})"

    def discover(self, directory: Path | None = None) -> list[Path]:
        """
        List plugin files in *directory* (default: the loader's directory).

        Files whose names start with an underscore are skipped.

        Raises:
            LoaderError: If the directory does not exist
        """
        directory = directory or self.directory
        if not directory.is_dir():
            raise LoaderError(f"Plugin directory not found: {directory}")
        return sorted(
            path
            for path in directory.iterdir()
            if path.is_file() and path.suffix == ".py" and not path.name.startswith("_")
        )

    def module_name(self, path: Path) -> str:
        relative = path.relative_to(self.directory).with_suffix("")
        return f"plume_{self.kind}_{id(self):x}_{_sanitize(str(relative))}"

    def import_file(self, path: Path) -> ModuleType:
        """
        Import a plugin file, caching the module.

        Raises:
            LoaderError: If the file cannot be imported
        """
        if path in self._module_cache:
            return self._module_cache[path]

        module_name = self.module_name(path)
        try:
            spec = importlib.util.spec_from_file_location(module_name, path)
            if spec is None or spec.loader is None:
                raise LoaderError(f"Failed to create module spec for {path}")

            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            if isinstance(e, LoaderError):
                raise
            raise LoaderError(f"Failed to load {self.kind} {path.name}: {e}") from e

        self._module_cache[path] = module
        return module

    async def run_setup(self, module: ModuleType, context: Any, fallback: str) -> Any:
        """
        Call the module's ``setup(context)`` hook, awaiting it if needed.

        Modules without a hook may expose a module-level *fallback*
        attribute instead. Returns None when neither exists.

        Raises:
            LoaderError: If the hook raises
        """
        setup = getattr(module, "setup", None)
        if setup is None:
            return getattr(module, fallback, None)

        try:
            result = setup(context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise LoaderError(
                f"setup() failed for {self.kind} {module.__name__}: {e}"
            ) from e
        return result

    async def load(self, context: Any) -> Any:
        """Load every plugin in the directory and return the collected result."""
        modules = [self.import_file(path) for path in self.discover()]
        return await self.collect(modules, context)

    async def collect(self, modules: list[ModuleType], context: Any) -> Any:
        raise NotImplementedError


class CommandLoader(DirectoryLoader):
    """
    Loads command files.

    Resolves to ``{"commands": {...}, "privates": {...}}``. Files in the
    ``private/`` subdirectory are registered as privates.
    """

    kind = "command"
    private_dirname = "private"

    async def load(self, context: Any) -> dict[str, dict[str, CommandDescriptor]]:
        public_modules = [self.import_file(path) for path in self.discover()]

        private_dir = self.directory / self.private_dirname
        private_modules = []
        if private_dir.is_dir():
            private_modules = [self.import_file(path) for path in self.discover(private_dir)]

        return {
            "commands": await self.collect(public_modules, context),
            "privates": await self.collect(private_modules, context),
        }

    async def collect(
        self, modules: list[ModuleType], context: Any
    ) -> dict[str, CommandDescriptor]:
        registry: dict[str, CommandDescriptor] = {}

        for module in modules:
            result = await self.run_setup(module, context, "COMMAND")
            if result is None:
                result = getattr(module, "COMMANDS", None)
            for descriptor in self._descriptors(module, result):
                if descriptor.keyword in registry:
                    raise LoaderError(
                        f"Duplicate command keyword '{descriptor.keyword}' in {module.__name__}"
                    )
                registry[descriptor.keyword] = descriptor

        return registry

    def _descriptors(self, module: ModuleType, result: Any) -> list[CommandDescriptor]:
        if result is None:
            raise LoaderError(f"Command module {module.__name__} defines no command")
        if isinstance(result, CommandDescriptor):
            return [result]
        if isinstance(result, Iterable) and not isinstance(result, (str, Mapping)):
            descriptors = list(result)
            for item in descriptors:
                if not isinstance(item, CommandDescriptor):
                    raise LoaderError(
                        f"Command module {module.__name__} returned {type(item).__name__}, "
                        "expected CommandDescriptor"
                    )
            return descriptors
        raise LoaderError(
            f"Command module {module.__name__} returned {type(result).__name__}, "
            "expected CommandDescriptor"
        )


class ModuleLoader(DirectoryLoader):
    """Loads library modules; resolves to one mapping merged from all of them."""

    kind = "lib"

    async def collect(self, modules: list[ModuleType], context: Any) -> dict[str, Any]:
        exports: dict[str, Any] = {}

        for module in modules:
            result = await self.run_setup(module, context, "EXPORTS")
            if result is None:
                continue
            if not isinstance(result, Mapping):
                raise LoaderError(
                    f"Library module {module.__name__} returned {type(result).__name__}, "
                    "expected a mapping"
                )
            exports.update(result)

        return exports


class FeatherLoader(DirectoryLoader):
    """Loads feathers; resolves to the list of objects their setup hooks return."""

    kind = "feather"

    async def collect(self, modules: list[ModuleType], context: Any) -> list[Any]:
        feathers = []

        for module in modules:
            feather = await self.run_setup(module, context, "FEATHER")
            feathers.append(module if feather is None else feather)

        return feathers

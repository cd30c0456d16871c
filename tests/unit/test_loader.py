"""
Tests for the directory plugin loaders.

This test suite covers:
1. Discovery (sorting, underscore files, missing directories)
2. Command loading (setup hooks, module constants, private commands)
3. Library module loading and wholesale exports
4. Feather loading
5. Error wrapping
"""

import textwrap

import pytest

from plume.core.command import Permission
from plume.plugin.loader import CommandLoader, FeatherLoader, LoaderError, ModuleLoader


def _write(path, source):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source), encoding="utf-8")
    return path


class TestDiscovery:
    """Test plugin file discovery."""

    def test_discover_sorted_and_filtered(self, tmp_path):
        _write(tmp_path / "b.py", "")
        _write(tmp_path / "a.py", "")
        _write(tmp_path / "_private_helper.py", "")
        _write(tmp_path / "notes.txt", "")

        loader = ModuleLoader(tmp_path)

        assert [p.name for p in loader.discover()] == ["a.py", "b.py"]

    @pytest.mark.asyncio
    async def test_missing_directory(self, tmp_path):
        loader = CommandLoader(tmp_path / "nope")
        with pytest.raises(LoaderError, match="not found"):
            await loader.load(None)


class TestCommandLoader:
    """Test loading of command files."""

    @pytest.mark.asyncio
    async def test_setup_hook_and_private_commands(self, tmp_path, context):
        _write(
            tmp_path / "ping.py",
            """
            from plume.core.command import command

            def setup(context):
                @command("Ping", aliases=["P"])
                async def ping(details):
                    await context.client.send_message(details.channel_id, content="pong")

                return ping
            """,
        )
        _write(
            tmp_path / "private" / "reload.py",
            """
            from plume.core.command import CommandDescriptor

            COMMAND = CommandDescriptor("reload", lambda details: None, permission="private")
            """,
        )

        result = await CommandLoader(tmp_path).load(context)

        assert set(result) == {"commands", "privates"}
        assert list(result["commands"]) == ["ping"]
        assert result["commands"]["ping"].aliases == ("p",)
        assert list(result["privates"]) == ["reload"]
        assert result["privates"]["reload"].permission is Permission.PRIVATE

    @pytest.mark.asyncio
    async def test_module_level_commands_list(self, tmp_path):
        _write(
            tmp_path / "many.py",
            """
            from plume.core.command import CommandDescriptor

            COMMANDS = [
                CommandDescriptor("one", print),
                CommandDescriptor("two", print),
            ]
            """,
        )

        result = await CommandLoader(tmp_path).load(None)

        assert sorted(result["commands"]) == ["one", "two"]
        assert result["privates"] == {}

    @pytest.mark.asyncio
    async def test_duplicate_keyword(self, tmp_path):
        for name in ("a.py", "b.py"):
            _write(
                tmp_path / name,
                """
                from plume.core.command import CommandDescriptor

                COMMAND = CommandDescriptor("same", print)
                """,
            )

        with pytest.raises(LoaderError, match="Duplicate command keyword 'same'"):
            await CommandLoader(tmp_path).load(None)

    @pytest.mark.asyncio
    async def test_module_without_command(self, tmp_path):
        _write(tmp_path / "empty.py", "VALUE = 1\n")

        with pytest.raises(LoaderError, match="defines no command"):
            await CommandLoader(tmp_path).load(None)

    @pytest.mark.asyncio
    async def test_wrong_return_type(self, tmp_path):
        _write(tmp_path / "bad.py", "def setup(context):\n    return 'ping'\n")

        with pytest.raises(LoaderError, match="expected CommandDescriptor"):
            await CommandLoader(tmp_path).load(None)


class TestModuleLoader:
    """Test loading of library modules."""

    @pytest.mark.asyncio
    async def test_exports_are_combined(self, tmp_path, context):
        _write(
            tmp_path / "utility.py",
            """
            from plume.core.utility import Utility

            async def setup(context):
                return {"utility": Utility.from_context(context)}
            """,
        )
        _write(tmp_path / "db.py", "EXPORTS = {'db': {'users': []}}\n")
        _write(tmp_path / "helpers.py", "def shout(text):\n    return text.upper()\n")

        exports = await ModuleLoader(tmp_path).load(context)

        assert set(exports) == {"utility", "db"}
        assert exports["utility"].prefix == "!"

    @pytest.mark.asyncio
    async def test_non_mapping_export(self, tmp_path):
        _write(tmp_path / "bad.py", "def setup(context):\n    return [1, 2]\n")

        with pytest.raises(LoaderError, match="expected a mapping"):
            await ModuleLoader(tmp_path).load(None)

    @pytest.mark.asyncio
    async def test_import_error_is_wrapped(self, tmp_path):
        _write(tmp_path / "broken.py", "raise ImportError('missing dependency')\n")

        with pytest.raises(LoaderError, match="missing dependency"):
            await ModuleLoader(tmp_path).load(None)

    @pytest.mark.asyncio
    async def test_setup_error_is_wrapped(self, tmp_path):
        _write(tmp_path / "broken.py", "def setup(context):\n    raise KeyError('token')\n")

        with pytest.raises(LoaderError, match="setup\\(\\) failed"):
            await ModuleLoader(tmp_path).load(None)

    @pytest.mark.asyncio
    async def test_modules_are_cached(self, tmp_path):
        _write(
            tmp_path / "counter.py",
            """
            import itertools

            COUNTER = itertools.count()
            EXPORTS = {"loaded": next(COUNTER)}
            """,
        )
        loader = ModuleLoader(tmp_path)

        first = loader.import_file(tmp_path / "counter.py")
        second = loader.import_file(tmp_path / "counter.py")

        assert first is second
        assert first.EXPORTS == {"loaded": 0}


class TestFeatherLoader:
    """Test loading of feathers."""

    @pytest.mark.asyncio
    async def test_feathers_in_file_order(self, tmp_path):
        _write(tmp_path / "a_greeter.py", "def setup(context):\n    return 'greeter'\n")
        _write(tmp_path / "b_plain.py", "VALUE = 1\n")

        feathers = await FeatherLoader(tmp_path).load(None)

        assert feathers[0] == "greeter"
        assert feathers[1].VALUE == 1

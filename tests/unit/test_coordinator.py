"""
Tests for the Plugin Load Coordinator.

This test suite covers:
1. Successful fan-in and merge
2. All-or-nothing failure (no partial merge, no readiness)
3. Concurrency of the three loads
4. Debug reporting
"""

import asyncio

import pytest

from plume.core.command import CommandDescriptor
from plume.core.context import InjectedContext
from plume.core.events import EventEmitter
from plume.plugin.coordinator import LoadFailure, PluginLoadCoordinator


@pytest.fixture
def fresh_context(config, transport):
    return InjectedContext(config=config, client=transport)


def _ping():
    return CommandDescriptor("ping", lambda details: None, aliases=["p"])


class TestSuccessfulLoad:
    """Test merging of loader results."""

    @pytest.mark.asyncio
    async def test_results_are_merged(self, fresh_context, make_loaders):
        ping = _ping()
        utility = object()
        loaders = make_loaders(
            commands={"ping": ping},
            modules={"utility": utility, "db": "database"},
            feathers=["feather-a", "feather-b"],
        )
        coordinator = PluginLoadCoordinator(loaders)

        context = await coordinator.load(fresh_context)

        assert context is fresh_context
        assert context.commands == {"ping": ping}
        assert context.privates == {}
        assert context.utility is utility
        assert context["db"] == "database"
        assert context.feathers == ["feather-a", "feather-b"]
        assert "feather-a" not in context
        assert context.complete is True
        assert coordinator.ready.is_set()

    @pytest.mark.asyncio
    async def test_each_loader_sees_the_context(self, fresh_context, make_loaders):
        loaders = make_loaders()
        seen = []

        class SpyLoader:
            async def load(self, context):
                seen.append(context)
                return {}

        loaders.modules = SpyLoader()
        await PluginLoadCoordinator(loaders).load(fresh_context)

        assert seen == [fresh_context]
        assert seen[0].config.playing == "chess"

    @pytest.mark.asyncio
    async def test_ready_event_fires_once(self, fresh_context, make_loaders):
        events = EventEmitter()
        fired = []
        events.on("ready", fired.append)
        coordinator = PluginLoadCoordinator(make_loaders(), events)

        await coordinator.load(fresh_context)
        with pytest.raises(LoadFailure, match="already loaded"):
            await coordinator.load(fresh_context)

        assert fired == [fresh_context]

    @pytest.mark.asyncio
    async def test_loads_run_concurrently(self, fresh_context, make_loaders, gate):
        loaders = make_loaders(gate=gate)
        coordinator = PluginLoadCoordinator(loaders)

        task = asyncio.create_task(coordinator.load(fresh_context))
        for _ in range(3):
            await asyncio.sleep(0)

        assert loaders.commands.calls == 1
        assert loaders.modules.calls == 1
        assert loaders.feathers.calls == 1
        assert not coordinator.ready.is_set()

        gate.set()
        await task
        assert coordinator.ready.is_set()


class TestFailedLoad:
    """Any loader failure fails the whole boot."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failing", ["commands", "modules", "feathers"])
    async def test_any_failure_blocks_readiness(self, fresh_context, make_loaders, failing):
        events = EventEmitter()
        fired = []
        events.on("ready", fired.append)
        loaders = make_loaders(
            commands={"ping": _ping()},
            modules={"utility": object()},
            feathers=["feather"],
            errors={failing: RuntimeError("disk on fire")},
        )
        coordinator = PluginLoadCoordinator(loaders, events)

        with pytest.raises(LoadFailure, match="disk on fire") as excinfo:
            await coordinator.load(fresh_context)

        assert list(excinfo.value.errors) == [failing]
        assert not coordinator.ready.is_set()
        assert fired == []
        assert fresh_context.complete is False
        assert fresh_context.commands == {}
        assert fresh_context.utility is None
        assert fresh_context.feathers == []

    @pytest.mark.asyncio
    async def test_siblings_are_not_cancelled(self, fresh_context, make_loaders):
        loaders = make_loaders(errors={"commands": RuntimeError("bad command")})

        with pytest.raises(LoadFailure):
            await PluginLoadCoordinator(loaders).load(fresh_context)

        assert loaders.modules.finished
        assert loaders.feathers.finished

    @pytest.mark.asyncio
    async def test_every_error_is_collected(self, fresh_context, make_loaders):
        loaders = make_loaders(
            errors={"commands": RuntimeError("one"), "feathers": ValueError("two")}
        )

        with pytest.raises(LoadFailure) as excinfo:
            await PluginLoadCoordinator(loaders).load(fresh_context)

        assert set(excinfo.value.errors) == {"commands", "feathers"}

    @pytest.mark.asyncio
    async def test_debug_reports_failure(self, fresh_context, make_loaders):
        loaders = make_loaders(errors={"modules": RuntimeError("bad lib")})
        coordinator = PluginLoadCoordinator(loaders, debug=True)

        with pytest.warns(RuntimeWarning, match="bad lib"):
            with pytest.raises(LoadFailure):
                await coordinator.load(fresh_context)

    @pytest.mark.asyncio
    async def test_malformed_command_result(self, fresh_context, make_loaders):
        loaders = make_loaders()
        loaders.commands.result = {"commands": {}}

        with pytest.raises(LoadFailure, match="privates"):
            await PluginLoadCoordinator(loaders).load(fresh_context)

        assert not fresh_context.complete

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "modules, feathers, match",
        [
            (["not", "a", "mapping"], [], "Module loader must resolve to a mapping"),
            ({}, 42, "Feather loader must resolve to a list"),
            ({}, "feather", "Feather loader must resolve to a list"),
        ],
    )
    async def test_malformed_result_merges_nothing(
        self, fresh_context, make_loaders, modules, feathers, match
    ):
        loaders = make_loaders(
            commands={"ping": _ping()}, modules=modules, feathers=feathers
        )
        coordinator = PluginLoadCoordinator(loaders, debug=True)

        with pytest.warns(RuntimeWarning, match=match):
            with pytest.raises(LoadFailure, match=match):
                await coordinator.load(fresh_context)

        assert fresh_context.commands == {}
        assert fresh_context.privates == {}
        assert fresh_context.exports == {}
        assert fresh_context.feathers == []
        assert not fresh_context.complete
        assert not coordinator.ready.is_set()

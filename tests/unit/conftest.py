"""Shared fakes for plume unit tests."""

import asyncio

import pytest

from plume.config import BotConfig
from plume.core.context import InjectedContext
from plume.core.events import EventEmitter
from plume.core.utility import Utility
from plume.plugin.coordinator import PluginLoaders
from plume.system.transport import InboundMessage


class FakeTransport:
    """In-memory transport recording every call the bot makes."""

    def __init__(self, username="plume", id="42"):
        self.username = username
        self.id = id
        self.direct_messages = {"dm-1"}
        self.servers = {"chan-1": "server-1", "chan-2": "server-2"}
        self.events = EventEmitter()
        self.connects = 0
        self.disconnects = 0
        self.presence = []
        self.sent = []

    def on(self, event, callback):
        return self.events.on(event, callback)

    def get_server_id(self, channel_id):
        return self.servers.get(channel_id)

    async def connect(self):
        self.connects += 1

    async def disconnect(self):
        self.disconnects += 1

    async def set_presence(self, name):
        self.presence.append(name)

    async def send_message(self, channel_id, *, content=None, embed=None):
        self.sent.append((channel_id, content, embed))

    async def deliver(self, content, author_id="user-1", channel_id="chan-1", username="alice"):
        message = InboundMessage(
            author_username=username,
            author_id=author_id,
            channel_id=channel_id,
            content=content,
        )
        await self.events.emit("message", message)
        return message


class StubLoader:
    """Loader resolving to a fixed result, or raising a fixed error."""

    def __init__(self, result=None, error=None, gate=None):
        self.result = result
        self.error = error
        self.gate = gate
        self.calls = 0
        self.finished = False

    async def load(self, context):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        self.finished = True
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def config():
    return BotConfig(token="secret", playing="chess", prefix="!", admins=("admin-1",))


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def context(config, transport):
    """A load-complete context with a utility and no commands."""
    ctx = InjectedContext(config=config, client=transport)
    ctx.utility = Utility.from_context(ctx)
    ctx.complete = True
    return ctx


@pytest.fixture
def make_loaders():
    def _factory(commands=None, modules=None, feathers=None, errors=None, gate=None):
        errors = errors or {}
        command_result = {"commands": commands or {}, "privates": {}}
        return PluginLoaders(
            commands=StubLoader(command_result, errors.get("commands"), gate),
            modules=StubLoader(modules if modules is not None else {}, errors.get("modules"), gate),
            feathers=StubLoader(feathers if feathers is not None else [], errors.get("feathers"), gate),
        )

    return _factory


@pytest.fixture
def gate():
    return asyncio.Event()

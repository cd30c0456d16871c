"""
Default utility collaborator.

A library module normally exports one of these under the ``utility`` key:

    from plume.core.utility import Utility

    def setup(context):
        return {"utility": Utility.from_context(context)}
"""

import re
from collections.abc import Callable, Iterable
from typing import Any

# Mentions such as @everyone would ping a whole server from a status line
_MENTION_RE = re.compile(r"@(everyone|here)", re.IGNORECASE)


class Utility:
    """
    Prefix handling, administrator checks and text filtering.

    Args:
        prefix: Leading string marking a message as a command
        admins: User ids classified as administrators
        server_lookup: Maps a channel id to its server id
    """

    def __init__(
        self,
        prefix: str,
        admins: Iterable[str] = (),
        server_lookup: Callable[[str], Any] | None = None,
    ):
        self.prefix = prefix
        self.admins = frozenset(str(a) for a in admins)
        self._server_lookup = server_lookup

    @classmethod
    def from_context(cls, context: Any) -> "Utility":
        """Build a Utility from the bot configuration and transport in *context*."""
        config = context.config
        client = context.client
        lookup = getattr(client, "get_server_id", None) if client is not None else None
        return cls(config.prefix, config.admins, lookup)

    def is_command_form(self, text: str | None) -> bool:
        """True if *text* starts with the prefix and has something after it."""
        if not text or not text.startswith(self.prefix):
            return False
        return bool(text[len(self.prefix):].strip())

    def strip_prefix(self, text: str) -> str:
        if text.startswith(self.prefix):
            return text[len(self.prefix):].strip()
        return text.strip()

    def get_server_id(self, channel_id: str) -> Any:
        if self._server_lookup is None:
            return None
        return self._server_lookup(channel_id)

    def is_administrator(self, user_id: str) -> bool:
        return str(user_id) in self.admins

    def filter(self, text: str | None) -> str:
        """Neutralise mass mentions and collapse whitespace."""
        if not text:
            return ""
        text = _MENTION_RE.sub(lambda m: "@\u200b" + m.group(1), text)
        return " ".join(text.split())

"""
Message Dispatcher - routes chat messages to commands.

For each inbound message:
1. Classify: non-command text is ignored without side effects
2. Parse: keyword, input and args are extracted after the prefix
3. Resolve: exact keyword first, otherwise every alias match (fan-out)
4. Gate: public commands run for everyone, private ones for administrators
5. Invoke: action failures are warned and contained per command

Unresolved keywords and permission denials are silent.
"""

import inspect
import warnings

from plume.core.command import CommandDescriptor, DispatchDetails
from plume.core.context import InjectedContext
from plume.system.transport import InboundMessage, Transport


class DispatchError(Exception):
    """Base exception for dispatcher errors."""

    pass


DISABLED_EMBED = {
    "title": "Disabled",
    "description": "Looks like that command was disabled",
}


def parse_command(text: str) -> tuple[str, str, list[str]]:
    """
    Split prefix-stripped text into keyword, input and args.

    Returns:
        (keyword lower-cased, text after the keyword, all tokens)
    """
    args = text.split()
    if not args:
        return "", "", []
    parts = text.strip().split(maxsplit=1)
    command_input = parts[1].strip() if len(parts) > 1 else ""
    return args[0].lower(), command_input, args


class MessageDispatcher:
    """
    Dispatches messages against the commands held by a context.

    Args:
        context: Load-complete injected context
        transport: Transport used for direct-message checks and replies
    """

    def __init__(self, context: InjectedContext, transport: Transport):
        self.context = context
        self.transport = transport

    def resolve(self, keyword: str) -> list[CommandDescriptor]:
        """
        Resolve *keyword* to the commands it should run.

        An exact keyword match wins. Otherwise every command declaring the
        keyword as an alias is returned, in registration order.
        """
        commands = self.context.commands
        exact = commands.get(keyword)
        if exact is not None:
            return [exact]
        return [cmd for cmd in commands.values() if cmd.answers_to(keyword)]

    def build_details(self, message: InboundMessage) -> DispatchDetails | None:
        """Build DispatchDetails, or None when the message is not a command."""
        utility = self.context.utility

        if not utility.is_command_form(message.content):
            return None

        is_direct = message.channel_id in self.transport.direct_messages
        keyword_text = utility.strip_prefix(message.content)
        keyword, command_input, args = parse_command(keyword_text)

        return DispatchDetails(
            user=message.author_username,
            user_id=message.author_id,
            channel_id=message.channel_id,
            message=message.content,
            is_direct_message=is_direct,
            is_command_form=True,
            is_administrator=bool(utility.is_administrator(message.author_id)),
            server_id=None if is_direct else utility.get_server_id(message.channel_id),
            input=command_input,
            args=args,
            keyword=keyword,
        )

    async def dispatch(self, message: InboundMessage) -> list[CommandDescriptor]:
        """
        Handle one inbound message.

        Returns:
            The commands whose actions were invoked

        Raises:
            DispatchError: If the context has not finished loading
        """
        if not self.context.complete:
            raise DispatchError("Cannot dispatch before plugin loading completes")

        details = self.build_details(message)
        if details is None or not details.keyword:
            return []

        invoked = []

        for cmd in self.resolve(details.keyword):
            if not self.permits(cmd, details):
                continue
            if cmd.disabled:
                await self.handle_disabled(cmd, details)
                continue
            await self._invoke(cmd, details)
            invoked.append(cmd)

        return invoked

    @staticmethod
    def permits(cmd: CommandDescriptor, details: DispatchDetails) -> bool:
        if cmd.is_public:
            return True
        return details.is_administrator

    async def handle_disabled(self, cmd: CommandDescriptor, details: DispatchDetails) -> None:
        try:
            await self.transport.send_message(details.channel_id, embed=dict(DISABLED_EMBED))
        except Exception as e:
            warnings.warn(
                f"Disabled reply for '{cmd.keyword}' failed: {e}",
                RuntimeWarning,
                stacklevel=2,
            )

    async def _invoke(self, cmd: CommandDescriptor, details: DispatchDetails) -> None:
        try:
            result = cmd.action(details)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            warnings.warn(
                f"Command '{cmd.keyword}' failed: {e}",
                RuntimeWarning,
                stacklevel=2,
            )

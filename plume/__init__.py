"""
plume - chat bot orchestrator.

Boots a transport, loads commands, library modules and feathers from the
filesystem into a shared context, then dispatches chat messages to commands
under a permission gate.
"""

__version__ = "0.1.0"

from plume.bot import Bot
from plume.config import BotConfig, load_config
from plume.core.command import CommandDescriptor, DispatchDetails, Permission, command
from plume.core.context import InjectedContext
from plume.core.utility import Utility
from plume.system.transport import InboundMessage

__all__ = [
    "__version__",
    "Bot",
    "BotConfig",
    "CommandDescriptor",
    "DispatchDetails",
    "InboundMessage",
    "InjectedContext",
    "Permission",
    "Utility",
    "command",
    "load_config",
]

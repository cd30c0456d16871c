"""
plume Core - runtime components of a bot instance.

This module contains:
- Context: capabilities injected into loaders and commands
- Events: per-instance event emitter
- Dispatcher: prefix/alias resolution and permission gating
- Lifecycle: connection state machine and shutdown
"""

__all__ = []

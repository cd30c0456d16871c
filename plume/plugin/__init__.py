"""
plume Plugin System - loading commands, library modules and feathers.

This module handles:
- Directory scanning and dynamic import
- Concurrent all-or-nothing loading into the context
"""

__all__ = []

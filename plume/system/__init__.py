"""
plume System - contracts with external collaborators.
"""

__all__ = []

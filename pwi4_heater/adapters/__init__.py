"""Adapter modules for external integrations."""

from .pwi4 import Pwi4Client

__all__ = ["Pwi4Client"]

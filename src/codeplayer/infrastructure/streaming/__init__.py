"""
Session event streaming for the playground UI.
"""

from .event_bus import BusEvent, SessionEventBus

__all__ = ["BusEvent", "SessionEventBus"]

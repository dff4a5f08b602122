"""
Event Services - publishing order lifecycle transitions to print agents.
"""

from .print_events import LifecycleEmitter, get_lifecycle_emitter

__all__ = [
    "LifecycleEmitter",
    "get_lifecycle_emitter",
]

"""
POS event stream: per-theater fan-out of print events to connected agents.

ARCHITECTURE:
- frames.py: PrintEvent wire frames and SSE encoding
- event_bus.py: in-process EventBus (theater id -> subscribers)
- subscription.py: StreamSubscriber handle bound to one HTTP stream
- endpoint.py: PosStreamEndpoint (auth, connected frame, keep-alive, cleanup)
- router.py: FastAPI routes mounted by rest_api.main
"""

from pos_stream.event_bus import EventBus, SubscriptionTicket, get_event_bus
from pos_stream.frames import PrintEvent
from pos_stream.subscription import StreamSubscriber

__all__ = [
    "EventBus",
    "SubscriptionTicket",
    "get_event_bus",
    "PrintEvent",
    "StreamSubscriber",
]

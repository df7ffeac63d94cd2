from .dispatcher import NotificationDispatcher
from .evaluator import evaluate_labels
from .session_registry import Connection, ConnectionState, SessionRegistry
from .store import VideoStore

__all__ = [
    "VideoStore",
    "evaluate_labels",
    "Connection",
    "ConnectionState",
    "SessionRegistry",
    "NotificationDispatcher",
]

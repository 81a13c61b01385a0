# Overview: Terminal-side package: session providers, effective identity, change streams and notifiers.

from .api import ApiClient, ApiError
from .storage import JsonFileStorage, MemoryStorage
from .admin_session import AdminSessionProvider, STATE_ANONYMOUS, STATE_AUTHENTICATED, STATE_LOADING
from .staff_session import StaffSessionProvider, STAFF_SESSION_KEY, STAFF_SESSION_TTL
from .terminal import TerminalSession
from .realtime import SseChangeStream, parse_sse
from .notifier import OrderNotifier, TransferNotifier, Toast

__all__ = [
    "ApiClient",
    "ApiError",
    "JsonFileStorage",
    "MemoryStorage",
    "AdminSessionProvider",
    "STATE_ANONYMOUS",
    "STATE_AUTHENTICATED",
    "STATE_LOADING",
    "StaffSessionProvider",
    "STAFF_SESSION_KEY",
    "STAFF_SESSION_TTL",
    "TerminalSession",
    "SseChangeStream",
    "parse_sse",
    "OrderNotifier",
    "TransferNotifier",
    "Toast",
]

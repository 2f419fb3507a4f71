"""
tqs Python Client

HTTP client for a tqs message queue service. Messages are leased with
``get`` and acknowledged with ``Message.delete``; a lease that is never
deleted runs out and the message becomes visible again.

Example:
    from tqs import GetOptions, new_queue

    queue = new_queue("http://localhost:8080", "emails", token="secret")
    if not queue.exists():
        queue.create()

    queue.put('{"to": "user@example.com"}', "application/json")

    msg = queue.get(GetOptions(wait=10))
    print(f"Processing {msg.lease_uuid}")
    # ... do work ...
    msg.delete()
"""

__version__ = "0.1.0"

from .client import Queue, new_queue
from .exceptions import (
    LeaseNotFoundError,
    MessageDecodeError,
    ProtocolError,
    QueueAlreadyExistsError,
    QueueEmptyError,
    QueueError,
    QueueHTTPError,
    QueueNotFoundError,
    RequestFailedError,
    TQSError,
)
from .message import GetOptions, Message, QueueStatistics

__all__ = [
    "GetOptions",
    "LeaseNotFoundError",
    "Message",
    "MessageDecodeError",
    "ProtocolError",
    "Queue",
    "QueueAlreadyExistsError",
    "QueueEmptyError",
    "QueueError",
    "QueueHTTPError",
    "QueueNotFoundError",
    "QueueStatistics",
    "RequestFailedError",
    "TQSError",
    "new_queue",
]

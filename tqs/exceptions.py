class TQSError(Exception):
    """Base exception for tqs client errors."""
    pass


class QueueError(TQSError):
    """An error reported for a specific queue."""

    def __init__(self, queue, detail: str):
        super().__init__(f"Queue <{queue.name}> {detail}")
        self.queue = queue


class QueueNotFoundError(QueueError):
    def __init__(self, queue):
        super().__init__(queue, "does not exist")


class QueueAlreadyExistsError(QueueError):
    def __init__(self, queue):
        super().__init__(queue, "already exists")


class QueueEmptyError(QueueError):
    """Retrieval succeeded but no message was available."""

    def __init__(self, queue):
        super().__init__(queue, "has no messages available")


class QueueHTTPError(QueueError):
    """The service answered with a status the operation does not expect."""

    def __init__(self, queue, status_code: int):
        super().__init__(queue, f"returned HTTP status <{status_code}>")
        self.status_code = status_code


class LeaseNotFoundError(TQSError):
    """The lease was already deleted, or expired and was recycled."""

    def __init__(self, message):
        super().__init__(f"Lease <{message.lease_uuid}> does not exist or expired")
        self.message = message


class ProtocolError(TQSError):
    """The service answered with a body this client cannot interpret."""
    pass


class MessageDecodeError(TQSError):
    """A leased message body could not be decoded.

    The message is kept on the exception so the caller can still delete
    or let go of the lease.
    """

    def __init__(self, message, cause: Exception):
        super().__init__(f"Cannot decode body of lease <{message.lease_uuid}>: {cause}")
        self.message = message
        self.cause = cause


class RequestFailedError(TQSError):
    """The request never produced an HTTP response."""
    pass

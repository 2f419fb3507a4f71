import json
import re
import warnings
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Union

from .exceptions import LeaseNotFoundError, MessageDecodeError, ProtocolError

# Go's zero time; the service sends it for dates that were never set.
_ZERO_TIME = "0001-01-01T00:00:00Z"
_FRACTION = re.compile(r"\.(\d+)")


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp as sent by the service.

    Fractions are padded or truncated to microseconds. Missing values and
    the zero time map to ``None``.
    """
    if not value or value == _ZERO_TIME:
        return None
    text = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], value)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ProtocolError(f"Invalid timestamp {value!r}") from e


@dataclass(frozen=True)
class QueueStatistics:
    """Message counts of a queue at the time of the query."""

    visible: int = 0
    delayed: int = 0
    leased: int = 0

    @property
    def total(self) -> int:
        return self.visible + self.delayed + self.leased

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueueStatistics":
        if not isinstance(data, dict):
            raise ProtocolError(f"Unexpected statistics payload: {data!r}")
        try:
            return cls(
                visible=int(data.get("visible", 0)),
                delayed=int(data.get("delayed", 0)),
                leased=int(data.get("leased", 0)),
            )
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Unexpected statistics payload: {data!r}") from e


@dataclass
class GetOptions:
    """
    Options for leasing a message.

    Args:
        wait: Longest time the service may hold the request open waiting
            for a message. Sent as whole seconds, truncated.
        delete: Delete the message on read instead of leasing it.
        retry: Accepted for compatibility only. The client never retries.
    """

    wait: Union[timedelta, int, float, None] = None
    delete: bool = False
    retry: bool = False

    def __post_init__(self):
        if self.retry:
            warnings.warn(
                "GetOptions.retry has no effect; failed requests are never retried",
                DeprecationWarning,
                stacklevel=3,
            )

    @property
    def wait_seconds(self) -> int:
        if self.wait is None:
            return 0
        if isinstance(self.wait, timedelta):
            return int(self.wait.total_seconds())
        return int(self.wait)

    def to_params(self) -> Dict[str, str]:
        params = {}
        if self.delete:
            params["delete"] = "true"
        if self.wait_seconds > 0:
            params["wait_time"] = str(self.wait_seconds)
        return params


@dataclass
class Message:
    """
    A leased message.

    Messages are built from Get responses and stay bound to the queue they
    came from, so ``delete()`` needs no extra arguments. A message is no
    longer valid once deleted or once its lease runs out on the service.
    """

    body: str = ""
    type: str = ""
    create_date: Optional[datetime] = None
    visible_date: Optional[datetime] = None
    expire_date: Optional[datetime] = None
    lease_uuid: str = ""
    lease_timeout: int = 0
    lease_date: Optional[datetime] = None
    queue: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], queue=None) -> "Message":
        if not isinstance(data, dict):
            raise ProtocolError(f"Unexpected message payload: {data!r}")
        lease_uuid = data.get("lease_uuid") or ""
        if not lease_uuid:
            raise ProtocolError("Leased message has no lease_uuid")
        try:
            lease_timeout = int(data.get("lease_timeout") or 0)
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Invalid lease_timeout {data.get('lease_timeout')!r}") from e
        return cls(
            body=data.get("body") or "",
            type=data.get("type") or "",
            create_date=parse_datetime(data.get("create_date")),
            visible_date=parse_datetime(data.get("visible_date")),
            expire_date=parse_datetime(data.get("expire_date")),
            lease_uuid=lease_uuid,
            lease_timeout=lease_timeout,
            lease_date=parse_datetime(data.get("lease_date")),
            queue=queue,
        )

    @property
    def lease_expires_at(self) -> Optional[datetime]:
        """When the service will make the message visible again, if not deleted."""
        if self.lease_date is None:
            return None
        return self.lease_date + timedelta(seconds=self.lease_timeout)

    def value(self, loads: Callable[[str], Any] = json.loads) -> Any:
        """
        Decode the message body.

        Args:
            loads: Decoder applied to the body text

        Raises:
            MessageDecodeError: If the body cannot be decoded
        """
        try:
            return loads(self.body)
        except ValueError as e:
            raise MessageDecodeError(self, e) from e

    def delete(self) -> None:
        """
        Delete the message, acknowledging or releasing its lease.

        Any status other than 404 counts as success.

        Raises:
            LeaseNotFoundError: If the lease was already deleted or expired
        """
        resp = self.queue._request(
            "DELETE",
            f"{self.queue.url}/leases/{self.lease_uuid}",
            timeout=self.queue.timeout,
        )
        if resp.status_code == 404:
            raise LeaseNotFoundError(self)

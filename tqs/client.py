import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple

import requests

from .exceptions import (
    ProtocolError,
    QueueAlreadyExistsError,
    QueueEmptyError,
    QueueHTTPError,
    QueueNotFoundError,
    RequestFailedError,
)
from .message import GetOptions, Message, QueueStatistics

logger = logging.getLogger(__name__)

# Applied to create, statistics and lease deletion. Put and get are never
# bounded client-side because get long-polls for the requested wait.
DEFAULT_TIMEOUT = 2.0


class Queue:
    """Handle on one named queue of a tqs service."""

    def __init__(
        self,
        endpoint: str,
        name: str,
        token: str = "",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize a queue handle.

        Args:
            endpoint: Base URL of the service
            name: Queue name
            token: Optional authentication token
            timeout: Timeout in seconds for create, statistics and delete
            session: Optional session to reuse connections. Without one every
                request opens and closes its own connection.
        """
        if not name:
            raise ValueError("name must be a non-empty string")
        self._endpoint = endpoint.rstrip("/")
        self._name = name
        self._url = f"{self._endpoint}/queues/{name}"
        self._token = token or ""
        self._timeout = timeout
        self._session = session

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        return self._url

    @property
    def token(self) -> str:
        return self._token

    @property
    def timeout(self) -> float:
        return self._timeout

    def __repr__(self) -> str:
        return f"Queue(endpoint={self._endpoint!r}, name={self._name!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Queue):
            return NotImplemented
        return (self._endpoint, self._name, self._token) == (
            other._endpoint,
            other._name,
            other._token,
        )

    def __hash__(self) -> int:
        return hash((self._endpoint, self._name, self._token))

    def create(self) -> None:
        """
        Create the queue.

        Raises:
            QueueAlreadyExistsError: If a queue with this name exists
            QueueHTTPError: On any other non-200 status
        """
        resp = self._request(
            "POST",
            f"{self._endpoint}/queues",
            data={"name": self._name},
            timeout=self._timeout,
        )
        if resp.status_code == 409:
            raise QueueAlreadyExistsError(self)
        if resp.status_code != 200:
            raise QueueHTTPError(self, resp.status_code)

    def statistics(self) -> QueueStatistics:
        """
        Get visible, delayed and leased message counts.

        Raises:
            QueueNotFoundError: If the queue does not exist
            QueueHTTPError: On any other non-200 status
        """
        resp = self._request("GET", f"{self._url}/statistics", timeout=self._timeout)
        if resp.status_code == 404:
            raise QueueNotFoundError(self)
        if resp.status_code != 200:
            raise QueueHTTPError(self, resp.status_code)
        return QueueStatistics.from_dict(self._json(resp))

    def exists(self) -> bool:
        """Check whether the queue exists. Errors other than not-found propagate."""
        try:
            self.statistics()
        except QueueNotFoundError:
            return False
        return True

    def put(self, body: str, type: str = "") -> None:
        """
        Enqueue a message.

        Args:
            body: Message body text
            type: Caller-defined content tag

        Raises:
            QueueNotFoundError: If the queue does not exist
            QueueHTTPError: On any other non-200 status
        """
        data = {"messages": [{"body": body, "type": type}]}
        resp = self._request("POST", self._url, data=data)
        if resp.status_code == 404:
            raise QueueNotFoundError(self)
        if resp.status_code != 200:
            raise QueueHTTPError(self, resp.status_code)

    def get(self, options: Optional[GetOptions] = None) -> Message:
        """
        Lease one message.

        With ``options.wait`` set the call may block up to that long while the
        service waits for a message. With ``options.delete`` set the message
        is removed on read and must not be deleted again.

        Returns:
            The leased message, bound to this queue

        Raises:
            QueueNotFoundError: If the queue does not exist
            QueueEmptyError: If no message is available
            QueueHTTPError: On any other non-200 status
            ProtocolError: If the response holds more than one message
        """
        params = options.to_params() if options is not None else {}
        resp = self._request("GET", self._url, params=params)
        if resp.status_code == 404:
            raise QueueNotFoundError(self)
        if resp.status_code != 200:
            raise QueueHTTPError(self, resp.status_code)

        data = self._json(resp)
        if not isinstance(data, dict):
            raise ProtocolError(f"Unexpected get payload: {data!r}")
        messages = data.get("messages") or []
        if not isinstance(messages, list):
            raise ProtocolError(f"Unexpected messages payload: {messages!r}")
        if not messages:
            raise QueueEmptyError(self)
        if len(messages) > 1:
            raise ProtocolError(
                f"Queue <{self._name}> returned {len(messages)} messages, expected one"
            )
        return Message.from_dict(messages[0], queue=self)

    def get_value(
        self,
        options: Optional[GetOptions] = None,
        loads: Callable[[str], Any] = json.loads,
    ) -> Tuple[Any, Message]:
        """
        Lease one message and decode its body.

        Returns:
            Tuple of the decoded body and the message

        Raises:
            MessageDecodeError: If the body cannot be decoded. The leased
                message is available as ``exc.message``.
        """
        msg = self.get(options)
        return msg.value(loads), msg

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self._token:
            headers["Authentication"] = f"token {self._token}"
        if self._session is None:
            headers["Connection"] = "close"
        return headers

    def _request(
        self,
        method: str,
        url: str,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """Send one request to the service."""
        sender = self._session if self._session is not None else requests
        try:
            resp = sender.request(
                method,
                url,
                json=data,
                params=params or None,
                headers=self._headers(),
                timeout=timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RequestFailedError(f"Request failed: {str(e)}") from e

        logger.debug("%s %s -> %d", method, url, resp.status_code)
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ProtocolError(f"Invalid JSON in response: {str(e)}") from e


def new_queue(endpoint: str, name: str, token: str = "", **kwargs) -> Queue:
    """Build a queue handle for ``{endpoint}/queues/{name}``."""
    return Queue(endpoint, name, token, **kwargs)

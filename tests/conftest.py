"""
Shared pytest fixtures for the tqs client tests.

Provides an in-memory stand-in for the queue service that answers
``requests.request`` calls, so the client runs against real
``requests.Response`` objects without a network.
"""

import json
import uuid
from unittest.mock import patch
from urllib.parse import urlsplit

import pytest
import requests

from tqs import new_queue

ENDPOINT = "http://tqs.test"
TIMESTAMP = "2024-05-01T12:00:00.123456789Z"


def make_response(status_code, payload=None, content=None):
    """Build a requests.Response with a JSON (or raw) body."""
    resp = requests.Response()
    resp.status_code = status_code
    if content is not None:
        resp._content = content
    elif payload is not None:
        resp._content = json.dumps(payload).encode("utf-8")
    else:
        resp._content = b""
    return resp


class FakeService:
    """Minimal lease-based queue service keyed on request paths."""

    def __init__(self):
        self.queues = {}
        self.leases = {}
        self.calls = []

    def __call__(self, method, url, json=None, params=None, headers=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "json": json,
                "params": params,
                "headers": headers or {},
                "timeout": timeout,
            }
        )
        parts = urlsplit(url).path.strip("/").split("/")

        if parts == ["queues"] and method == "POST":
            name = json["name"]
            if name in self.queues:
                return make_response(409, {"error": "exists"})
            self.queues[name] = []
            return make_response(200, {})

        name = parts[1]
        if name not in self.queues:
            return make_response(404, {"error": "not found"})
        pending = self.queues[name]

        if len(parts) == 3 and parts[2] == "statistics":
            leased = sum(1 for queue_name, _ in self.leases.values() if queue_name == name)
            return make_response(200, {"visible": len(pending), "delayed": 0, "leased": leased})

        if len(parts) == 4 and parts[2] == "leases" and method == "DELETE":
            if self.leases.pop(parts[3], None) is None:
                return make_response(404, {"error": "lease not found"})
            return make_response(200, {})

        if len(parts) == 2 and method == "POST":
            pending.extend(json["messages"])
            return make_response(200, {})

        if len(parts) == 2 and method == "GET":
            if not pending:
                return make_response(200, {"messages": []})
            body = pending.pop(0)
            lease_uuid = str(uuid.uuid4())
            if not (params or {}).get("delete") == "true":
                self.leases[lease_uuid] = (name, body)
            return make_response(
                200,
                {
                    "messages": [
                        {
                            "body": body["body"],
                            "type": body["type"],
                            "create_date": TIMESTAMP,
                            "visible_date": TIMESTAMP,
                            "expire_date": "0001-01-01T00:00:00Z",
                            "lease_uuid": lease_uuid,
                            "lease_timeout": 30,
                            "lease_date": TIMESTAMP,
                        }
                    ]
                },
            )

        return make_response(405, {"error": "method not allowed"})


@pytest.fixture
def service():
    fake = FakeService()
    with patch("tqs.client.requests.request", side_effect=fake):
        yield fake


@pytest.fixture
def queue(service):
    return new_queue(ENDPOINT, "emails")


@pytest.fixture
def created_queue(queue):
    queue.create()
    return queue


@pytest.fixture
def mock_request():
    """Patch requests.request for tests that script single responses."""
    with patch("tqs.client.requests.request") as mocked:
        yield mocked

"""
Shared fixtures.

Network access is stubbed with httpx.MockTransport: FakeProxy answers each
(method, path) with queued canned responses and records every request.
"""

import json
import os
import sys

import httpx
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from generation.transport import ProxyTransport

PROXY_BASE = "http://proxy.test"


class FakeProxy:
    """Canned responses per (method, path). The last queued response repeats."""

    def __init__(self):
        self.routes: dict[tuple[str, str], list] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses):
        self.routes.setdefault((method, path), []).extend(responses)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, text=f"no route for {request.method} {request.url.path}")

        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def proxy():
    return FakeProxy()


@pytest.fixture
def transport(proxy):
    client = httpx.AsyncClient(transport=httpx.MockTransport(proxy.handler))
    return ProxyTransport(base_url=PROXY_BASE, timeout=5.0, client=client)


@pytest.fixture
def progress_log():
    """Progress callback that records every call."""
    calls = []

    def record(percent):
        calls.append(percent)

    record.calls = calls
    return record

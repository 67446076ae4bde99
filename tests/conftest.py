"""
Shared fixtures: a scripted fake of the GreenCloud API behind httpx.MockTransport.

No test talks to the network.
"""

import httpx
import pytest

from client import GreenCloudClient


class FakeApi:
    """Answers POST /gc/<resource> once and GET /gc/<job>/result from a script."""

    def __init__(self):
        self.submit_response = httpx.Response(201, json={"id": "abc"})
        self.results = []
        self.requests = []

    def queue(self, *responses):
        self.results.extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return self.submit_response
        if request.url.path.endswith("/result"):
            if not self.results:
                return httpx.Response(404, text="not ready")
            nxt = self.results.pop(0)
            if isinstance(nxt, Exception):
                raise nxt
            return nxt
        return httpx.Response(400)

    @property
    def poll_count(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET")


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def client(fake_api):
    c = GreenCloudClient(
        base_url="https://api.test",
        resource_id="res-1",
        transport=httpx.MockTransport(fake_api.handler),
    )
    yield c
    c.close()


@pytest.fixture
def contacts():
    return [
        {"name": "A", "address": "1 Main St", "phone": "555-0100", "email": "a@x.com"},
        {"name": "B", "address": "2 Side St", "phone": "555-0101", "email": "a@x.com"},
        {"name": "C", "address": None, "phone": "555-0102", "email": None},
        {"name": "D", "address": "4 High St", "phone": None, "email": ""},
        {"name": "E", "address": "5 Low St", "phone": "555-0104", "email": "e@x.com"},
    ]

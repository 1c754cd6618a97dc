"""
Integration Test Configuration
==============================
HTTP clients wired to httpx.MockTransport so request bodies and error
mapping are exercised without touching the network.
"""

import json

import httpx
import pytest


class RecordingTransport:
    """
    Routes requests to a handler and keeps every request it saw.

    Usage:
        transport = RecordingTransport(lambda request: httpx.Response(200, json={...}))
        client = transport.client()
    """

    def __init__(self, handler):
        self.handler = handler
        self.requests = []

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handle))

    def bodies(self):
        return [json.loads(r.content) for r in self.requests if r.content]


@pytest.fixture
def recording_transport():
    return RecordingTransport


@pytest.fixture
def rpc_result():
    """JSON-RPC success envelope builder."""

    def make(request, result):
        body = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    return make

"""Shared fixtures: a scripted transport and a sleep that never waits."""
import json

import pytest

from report_utils.http_retry import ReportFetcher, RetryPolicy, TransportResponse


class FakeTransport:
    """Replays queued responses; the last one repeats once the queue runs out."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, descriptor):
        self.calls.append(descriptor)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


class RoutingTransport:
    """Answers by request path, each path with its own FakeTransport."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, descriptor):
        self.calls.append(descriptor)
        path = descriptor.uri.split("?", 1)[0]
        return self.routes[path](descriptor)


def ok(payload):
    return TransportResponse(status=200, body=json.dumps(payload).encode("utf-8"))


def failure(status=500):
    return TransportResponse(status=status, body=b"")


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_fetcher(sleeps):
    def _make(transport, policy=None):
        return ReportFetcher(transport, policy=policy or RetryPolicy(), sleep=sleeps.append)
    return _make

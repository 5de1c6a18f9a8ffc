"""Tests for GraphQL readiness polling."""

import json

import httpx

from lwp_cli.bootstrap import ConnectionInfo, ReadinessProbe
from lwp_cli.bootstrap.readiness import HEALTH_QUERY

INFO = ConnectionInfo(
    url="http://127.0.0.1:4000/graphql",
    subscription_url="ws://127.0.0.1:4000/graphql",
    port=4000,
    auth_token="tok",
)


class FakeGraphQL:
    """Answers with a scripted sequence of status codes (or exceptions)."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, type) and issubclass(outcome, Exception):
            raise outcome("connection refused", request=request)
        return httpx.Response(outcome, json={"data": {"__typename": "Query"}})


def _probe(server, clock, reader=lambda: INFO, request_timeout=2.0) -> ReadinessProbe:
    return ReadinessProbe(
        reader,
        client=httpx.Client(transport=httpx.MockTransport(server)),
        request_timeout=request_timeout,
        clock=clock,
        sleep=clock.sleep,
    )


class TestCheckOnce:
    """Single health request."""

    def test_success(self, clock):
        """2xx means healthy."""
        assert _probe(FakeGraphQL(200), clock).check_once(INFO) is True

    def test_sends_authenticated_typename_query(self, clock):
        """POSTs { __typename } with the bearer token."""
        server = FakeGraphQL(200)

        _probe(server, clock).check_once(INFO)

        request = server.requests[0]
        assert request.method == "POST"
        assert str(request.url) == INFO.url
        assert request.headers["Authorization"] == "Bearer tok"
        assert json.loads(request.content) == HEALTH_QUERY

    def test_non_2xx(self, clock):
        """Auth failures and server errors are not healthy."""
        assert _probe(FakeGraphQL(401), clock).check_once(INFO) is False
        assert _probe(FakeGraphQL(503), clock).check_once(INFO) is False

    def test_connection_refused(self, clock):
        """Transport errors are not healthy and not raised."""
        assert _probe(FakeGraphQL(httpx.ConnectError), clock).check_once(INFO) is False

    def test_timeout_passed_to_request(self, clock):
        """The per-request timeout reaches the transport."""
        server = FakeGraphQL(200)

        _probe(server, clock).check_once(INFO, timeout=0.25)

        assert server.requests[0].extensions["timeout"]["read"] == 0.25


class TestWaitForReady:
    """Polling within a budget."""

    def test_no_connection_info(self, clock):
        """Without a connection file, gives up once the budget is spent."""
        server = FakeGraphQL(200)

        ready = _probe(server, clock, reader=lambda: None).wait_for_ready(timeout_ms=2000, poll_interval_ms=500)

        assert ready is False
        assert clock.now <= 2.0 + 0.5
        assert server.requests == []

    def test_ready_on_third_poll(self, clock):
        """Returns as soon as a probe succeeds."""
        server = FakeGraphQL(503, 503, 200)

        ready = _probe(server, clock).wait_for_ready(timeout_ms=30000, poll_interval_ms=500)

        assert ready is True
        assert len(server.requests) == 3
        assert clock.sleeps == [0.5, 0.5]
        assert clock.now == 1.0

    def test_connection_file_appears_later(self, clock):
        """Polling keeps re-reading the connection info."""
        answers = [None, None, INFO]

        def reader():
            return answers.pop(0) if len(answers) > 1 else answers[0]

        ready = _probe(FakeGraphQL(200), clock, reader=reader).wait_for_ready(timeout_ms=5000, poll_interval_ms=500)

        assert ready is True
        assert clock.now == 1.0

    def test_refused_until_timeout(self, clock):
        """A server that never accepts connections times out."""
        server = FakeGraphQL(httpx.ConnectError)

        ready = _probe(server, clock).wait_for_ready(timeout_ms=1000, poll_interval_ms=250)

        assert ready is False
        assert len(server.requests) == 4
        assert clock.now <= 1.0 + 0.25

    def test_request_timeout_capped_by_budget(self, clock):
        """A single request never outlives the remaining budget."""
        server = FakeGraphQL(503)

        _probe(server, clock, request_timeout=2.0).wait_for_ready(timeout_ms=1000, poll_interval_ms=400)

        read_timeouts = [r.extensions["timeout"]["read"] for r in server.requests]
        assert read_timeouts[0] == 1.0
        assert all(t <= 1.0 for t in read_timeouts)

    def test_zero_budget(self, clock):
        """A zero timeout fails without probing."""
        server = FakeGraphQL(200)

        assert _probe(server, clock).wait_for_ready(timeout_ms=0) is False
        assert server.requests == []


class TestBadConnectionInfo:
    """Connection info that parses but cannot be used."""

    BAD_URL = ConnectionInfo(
        url="http://127.0.0.1:notaport/graphql",
        subscription_url="ws://127.0.0.1:notaport/graphql",
        port=4000,
        auth_token="tok",
    )

    def test_invalid_url_is_not_ready(self, clock):
        """An unparseable URL fails the check instead of raising."""
        server = FakeGraphQL(200)

        assert _probe(server, clock).check_once(self.BAD_URL) is False
        assert server.requests == []

    def test_invalid_url_polls_until_timeout(self, clock):
        """Polling keeps going and then gives up."""
        probe = _probe(FakeGraphQL(200), clock, reader=lambda: self.BAD_URL)

        assert probe.wait_for_ready(timeout_ms=1000, poll_interval_ms=500) is False
        assert clock.sleeps == [0.5, 0.5]

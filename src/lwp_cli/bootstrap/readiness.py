"""
Readiness Probe - Wait until Local's GraphQL server answers.

The connection info file alone proves nothing (it survives a Local shutdown),
so readiness means: the file parses AND an authenticated request against the
advertised URL returns a 2xx.
"""

import time
from collections.abc import Callable

import httpx
import structlog

from .probe import ConnectionInfo

__all__ = ["ReadinessProbe", "HEALTH_QUERY"]

logger = structlog.get_logger(__name__)

HEALTH_QUERY = {"query": "{ __typename }"}

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_POLL_INTERVAL_MS = 500
DEFAULT_REQUEST_TIMEOUT = 2.0


class ReadinessProbe:
    """Polls connection info and health until ready or out of time.

    Example:
        probe = ReadinessProbe(installation_probe.read_connection_info)
        if not probe.wait_for_ready(timeout_ms=30000, poll_interval_ms=500):
            raise ReadinessTimeoutError()
    """

    def __init__(
        self,
        read_connection_info: Callable[[], ConnectionInfo | None],
        client: httpx.Client | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._read_connection_info = read_connection_info
        self._client = client
        self.request_timeout = request_timeout
        self._clock = clock
        self._sleep = sleep

    def check_once(self, info: ConnectionInfo, timeout: float | None = None) -> bool:
        """Send a single authenticated health request.

        Returns:
            True for any 2xx response, False for anything else
        """
        timeout = self.request_timeout if timeout is None else timeout
        try:
            response = self._http().post(
                info.url,
                json=HEALTH_QUERY,
                headers={"Authorization": f"Bearer {info.auth_token}"},
                timeout=timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # Connection refused, timeout, bad URL in the file, etc.
            logger.debug("health_probe_failed", url=info.url, error=str(e))
            return False

        if response.is_success:
            return True
        logger.debug("health_probe_rejected", url=info.url, status=response.status_code)
        return False

    def wait_for_ready(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> bool:
        """Poll until a health probe succeeds.

        Args:
            timeout_ms: Overall budget
            poll_interval_ms: Delay after each failed attempt

        Returns:
            True as soon as the server answers, False once the budget is spent
        """
        budget = timeout_ms / 1000
        interval = poll_interval_ms / 1000
        start = self._clock()
        attempts = 0

        while (elapsed := self._clock() - start) < budget:
            attempts += 1
            info = self._read_connection_info()
            if info is not None:
                # Never let one request outlive the overall budget
                timeout = min(self.request_timeout, max(budget - elapsed, 0.001))
                if self.check_once(info, timeout=timeout):
                    logger.info("graphql_ready", url=info.url, attempts=attempts)
                    return True
            self._sleep(interval)

        logger.warning("graphql_not_ready", timeout_ms=timeout_ms, attempts=attempts)
        return False

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client()
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

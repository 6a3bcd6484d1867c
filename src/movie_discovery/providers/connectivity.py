from __future__ import annotations

import logging
import socket
import time

logger = logging.getLogger(__name__)

DEFAULT_PROBE_PORT = 443
DEFAULT_PROBE_TIMEOUT = 1.5
DEFAULT_PROBE_TTL = 5.0


class SocketConnectivityOracle:
    """
    Reports the API host reachable when a TCP connection can be opened to it.

    The probe blocks, so its answer is reused for ``ttl`` seconds.
    """

    def __init__(
        self,
        host: str,
        *,
        port: int = DEFAULT_PROBE_PORT,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        ttl: float = DEFAULT_PROBE_TTL,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout
        self._ttl = ttl
        self._last_answer: bool | None = None
        self._checked_at = 0.0

    def is_online(self) -> bool:
        now = time.monotonic()
        if self._last_answer is not None and now - self._checked_at < self._ttl:
            return self._last_answer
        self._last_answer = self._probe()
        self._checked_at = now
        return self._last_answer

    def _probe(self) -> bool:
        try:
            with socket.create_connection((self._host, self._port), timeout=self._timeout):
                return True
        except OSError as exc:
            logger.debug(f"[CONNECTIVITY] {self._host}:{self._port} unreachable: {exc}")
            return False


class StaticConnectivity:
    """Connectivity oracle with a manually controlled answer."""

    def __init__(self, online: bool = True) -> None:
        self.online = online

    def is_online(self) -> bool:
        return self.online


__all__ = ["SocketConnectivityOracle", "StaticConnectivity"]

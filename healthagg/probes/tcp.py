"""TCP probe — UP when a connection to ``host:port`` can be opened."""

from __future__ import annotations

import logging
import socket

from healthagg.health.status import Health

logger = logging.getLogger(__name__)


def split_addr(addr: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6]:port``) into its parts."""
    host, sep, port = addr.rpartition(":")
    if not sep or not host:
        raise ValueError(f"address {addr!r} is missing a port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"address {addr!r} has an invalid port") from None


class TCPChecker:
    """Checks that ``addr`` accepts TCP connections within ``timeout`` seconds."""

    def __init__(self, addr: str, timeout: float = 5.0) -> None:
        self.addr = addr
        self.timeout = timeout

    def check(self) -> Health:
        health = Health().add_info("addr", self.addr)
        try:
            host, port = split_addr(self.addr)
            sock = socket.create_connection((host, port), timeout=self.timeout)
            sock.close()
        except (OSError, ValueError) as e:
            logger.debug("TCP check %s failed: %s", self.addr, e)
            return health.set_down().add_info("error", f"{type(e).__name__}: {e}")
        return health.set_up()

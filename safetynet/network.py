"""Network reachability port consulted once before each fetch."""
from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests


logger = logging.getLogger(__name__)


class NetworkReachability(Protocol):
    def is_online(self) -> bool:
        ...


class AlwaysOnline:
    def is_online(self) -> bool:
        return True


class StaticReachability:
    """Reachability flag flipped by the hosting environment."""

    def __init__(self, online: bool = True) -> None:
        self.online = online

    def is_online(self) -> bool:
        return self.online


class HttpReachability:
    """Treat the network as reachable when a ``HEAD`` to ``url`` gets any answer."""

    def __init__(
        self,
        url: str = "https://www.gstatic.com/generate_204",
        timeout: float = 2.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def is_online(self) -> bool:
        try:
            self.session.head(self.url, timeout=self.timeout, allow_redirects=False)
        except requests.RequestException as exc:
            logger.info("Reachability probe to %s failed: %s", self.url, exc)
            return False
        return True


__all__ = ["AlwaysOnline", "HttpReachability", "NetworkReachability", "StaticReachability"]

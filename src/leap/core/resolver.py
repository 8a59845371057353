"""Hostname resolution with a bounded timeout."""

from __future__ import annotations

import asyncio
import logging
import socket

logger = logging.getLogger(__name__)


class HostResolver:
    """Resolves hostnames through the system resolver without blocking the loop.

    A lookup that fails or outlasts ``timeout`` yields None; this never
    raises.

    Args:
        timeout: Seconds to wait for the resolver.
    """

    def __init__(self, timeout: float = 1.0) -> None:
        self.timeout = timeout

    async def resolve(self, name: str) -> str | None:
        """Return the first address ``name`` resolves to, or None."""
        loop = asyncio.get_running_loop()
        try:
            infos = await asyncio.wait_for(
                loop.getaddrinfo(name, None, type=socket.SOCK_STREAM),
                timeout=self.timeout,
            )
        except TimeoutError:
            logger.debug("Resolving %r timed out after %.2fs", name, self.timeout)
            return None
        except (OSError, UnicodeError, ValueError) as e:
            logger.debug("Resolving %r failed: %s", name, e)
            return None

        for _family, _type, _proto, _canonname, sockaddr in infos:
            return str(sockaddr[0])
        return None

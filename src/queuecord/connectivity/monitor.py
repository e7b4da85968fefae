"""Connectivity monitoring via periodic TCP probes."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from queuecord.infrastructure.broadcast import Broadcast, Subscription
from queuecord.infrastructure.config import (
    CONNECTIVITY_POLL_INTERVAL,
    CONNECTIVITY_PROBE_HOST,
    CONNECTIVITY_PROBE_PORT,
    CONNECTIVITY_PROBE_TIMEOUT,
)
from queuecord.infrastructure.logger import logger
from queuecord.infrastructure.poll_loop import PollLoop

Probe = Callable[[], Awaitable[bool]]
ConnectivitySubscription = Subscription[bool]


async def tcp_probe(
    host: str = CONNECTIVITY_PROBE_HOST,
    port: int = CONNECTIVITY_PROBE_PORT,
    timeout_s: float = CONNECTIVITY_PROBE_TIMEOUT,
) -> bool:
    """True if a TCP connection to host:port opens within timeout_s."""
    try:
        _reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout_s)
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


class ConnectivityMonitor:
    """Live "deliverable" signal shared by any number of subscribers.

    Probing runs only while at least one subscription is open.
    """

    def __init__(self, probe: Probe | None = None, interval_s: float = CONNECTIVITY_POLL_INTERVAL) -> None:
        self._probe = probe or tcp_probe
        self._signal: Broadcast[bool] = Broadcast(
            on_first_subscriber=self._start_probing,
            on_last_unsubscribed=self._stop_probing,
        )
        self._poll = PollLoop("connectivity", interval_s, self._poll_once)

    @property
    def current(self) -> bool | None:
        """Last probed state, or None before the first probe."""
        return self._signal.latest

    @property
    def probing(self) -> bool:
        return self._poll.running

    def subscribe(self) -> ConnectivitySubscription:
        return self._signal.subscribe()

    async def check_now(self) -> bool:
        """Probe once and publish the result."""
        online = bool(await self._probe())
        previous = self._signal.latest
        if self._signal.publish(online):
            logger.info("Connectivity changed", online=online, previous=previous)
        return online

    def close(self) -> None:
        self._signal.close_all()
        self._stop_probing()

    async def _poll_once(self) -> None:
        await self.check_now()

    def _start_probing(self) -> None:
        self._poll.start()

    def _stop_probing(self) -> None:
        self._poll.stop()

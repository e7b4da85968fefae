"""Orchestrator class: composes services, wires subsystems."""

from __future__ import annotations

import asyncio
from pathlib import Path

from queuecord.connectivity.monitor import ConnectivityMonitor
from queuecord.coordinator.coordinator import QueueCoordinator
from queuecord.delivery.sender import WebhookSender
from queuecord.infrastructure.config import DeliveryConfig
from queuecord.infrastructure.database import AppDatabase
from queuecord.infrastructure.logger import logger
from queuecord.presentation.controller import QueueController
from queuecord.presentation.projector import ViewState, status_text


class Orchestrator:
    """Composes all services and manages the application lifecycle."""

    def __init__(
        self,
        db: AppDatabase | None = None,
        monitor: ConnectivityMonitor | None = None,
        sender: WebhookSender | None = None,
        config: DeliveryConfig | None = None,
        db_path: Path | None = None,
    ) -> None:
        self._db = db or AppDatabase()
        self._db_path = db_path
        self._monitor = monitor or ConnectivityMonitor()
        self._sender = sender or WebhookSender()
        self._config = config or DeliveryConfig()
        self.coordinator: QueueCoordinator | None = None
        self.controller: QueueController | None = None
        self._reporter: asyncio.Task[None] | None = None

    async def start(self) -> None:
        logger.info("Starting queuecord...")

        if not self._db.is_open:
            self._db.init(self._db_path)

        self.coordinator = QueueCoordinator(
            store=self._db.queue_store,
            monitor=self._monitor,
            sender=self._sender,
            config=self._config,
        )
        self.controller = QueueController(self.coordinator)

        await self.coordinator.start()
        self.controller.start()
        self._reporter = asyncio.create_task(self._report_views(), name="app:reporter")

        logger.info("queuecord started")

    async def _report_views(self) -> None:
        """Console stand-in for a UI: logs status changes and shows each error once."""
        assert self.controller is not None
        last: ViewState | None = None
        async with self.controller.subscribe() as views:
            async for view in views:
                if last is None or view.status != last.status or len(view.messages) != len(last.messages):
                    logger.info("Status", status=status_text(view), queued=len(view.messages))
                if view.show_config_prompt and (last is None or not last.show_config_prompt):
                    logger.warning("No webhook URL configured; set one with `queuecord set-url URL`")
                if view.error_message:
                    logger.error("Delivery error", error=view.error_message)
                    self.controller.clear_error()
                last = view

    async def shutdown(self) -> None:
        """Gracefully shut down all services."""
        logger.info("Shutting down queuecord...")

        if self._reporter is not None:
            self._reporter.cancel()
            try:
                await self._reporter
            except asyncio.CancelledError:
                pass
            self._reporter = None
        if self.controller is not None:
            await self.controller.stop()
        if self.coordinator is not None:
            await self.coordinator.stop()

        self._monitor.close()
        await self._sender.aclose()
        self._db.close()

        logger.info("queuecord shut down complete")

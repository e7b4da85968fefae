"""Presentation-facing commands plus the projected view stream."""

from __future__ import annotations

import asyncio

from queuecord.coordinator.coordinator import QueueCoordinator
from queuecord.infrastructure.broadcast import Broadcast, Subscription
from queuecord.infrastructure.logger import logger
from queuecord.presentation.projector import ViewState, project
from queuecord.queue.types import QueuedMessage


class QueueController:
    """What a UI talks to: five queue commands, two dialog toggles, and ViewState snapshots."""

    def __init__(self, coordinator: QueueCoordinator) -> None:
        self._coordinator = coordinator
        self._show_edit_config = False
        self._views: Broadcast[ViewState] = Broadcast()
        self._task: asyncio.Task[None] | None = None

    @property
    def view(self) -> ViewState:
        return project(self._coordinator.state, self._show_edit_config)

    def subscribe(self) -> Subscription[ViewState]:
        return self._views.subscribe()

    def start(self) -> None:
        self._views.publish(self.view)
        self._task = asyncio.create_task(self._follow_coordinator(), name="controller:views")

    async def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._views.close_all()

    async def _follow_coordinator(self) -> None:
        try:
            async with self._coordinator.subscribe() as states:
                async for state in states:
                    self._views.publish(project(state, self._show_edit_config))
        except Exception:
            logger.exception("View projection failed")

    # --- Commands ---

    def enqueue(self, text: str) -> QueuedMessage | None:
        return self._coordinator.add_message(text)

    def cancel(self, message_id: str) -> None:
        self._coordinator.cancel_message(message_id)

    def set_endpoint(self, url: str) -> None:
        self._coordinator.set_endpoint(url)
        self.hide_edit_config()

    def clear_error(self) -> None:
        self._coordinator.clear_error()

    def show_edit_config(self) -> None:
        self._set_edit_config(True)

    def hide_edit_config(self) -> None:
        self._set_edit_config(False)

    def _set_edit_config(self, visible: bool) -> None:
        if self._show_edit_config == visible:
            return
        self._show_edit_config = visible
        self._views.publish(self.view)

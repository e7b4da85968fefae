"""Queue coordinator: combined state, delivery trigger, and the delivery loop."""

from __future__ import annotations

import asyncio

from queuecord.connectivity.monitor import ConnectivityMonitor
from queuecord.coordinator.state import CoordinatorState, combine_state, should_deliver
from queuecord.delivery.classifier import describe_failure, is_transient_failure
from queuecord.delivery.types import Delivered, Failed, FailureCategory, MessageSender, SendOutcome
from queuecord.infrastructure.broadcast import Broadcast, Subscription
from queuecord.infrastructure.config import DeliveryConfig
from queuecord.infrastructure.logger import logger
from queuecord.infrastructure.poll_loop import PollLoop
from queuecord.queue.store import MessageQueueStore
from queuecord.queue.types import EndpointConfig, QueuedMessage


class QueueCoordinator:
    """Single owner of the message queue and of the delivery loop.

    Inputs (store contents, endpoint, connectivity, sending flag, error slot)
    live here as plain attributes. Every change updates the inputs first and
    then publishes exactly one combined CoordinatorState. Delivery only ever
    starts through request_delivery(), which sets the sending flag before the
    loop task exists, so at most one loop runs at a time.
    """

    def __init__(
        self,
        store: MessageQueueStore,
        monitor: ConnectivityMonitor,
        sender: MessageSender,
        config: DeliveryConfig | None = None,
    ) -> None:
        self._store = store
        self._monitor = monitor
        self._sender = sender
        self._config = config or DeliveryConfig()

        self._messages: list[QueuedMessage] = []
        self._endpoint = EndpointConfig()
        self._store_revision: tuple[str | None, str | None] | None = None
        self._deliverable: bool | None = None
        self._sending = False
        self._stopping = False
        self._last_error: str | None = None

        self._states: Broadcast[CoordinatorState] = Broadcast()
        self._delivery_task: asyncio.Task[None] | None = None
        self._watch_task: asyncio.Task[None] | None = None
        self._retry_task: asyncio.Task[None] | None = None
        self._retry_attempt = 0
        self._refresh = PollLoop("store-refresh", self._config.store_poll_interval_s, self._refresh_from_store)

    # --- Observable state ---

    @property
    def state(self) -> CoordinatorState:
        return combine_state(self._messages, self._deliverable, self._sending, self._endpoint, self._last_error)

    def subscribe(self) -> Subscription[CoordinatorState]:
        """Stream of combined snapshots, starting with the current one."""
        return self._states.subscribe()

    def _publish(self) -> None:
        self._states.publish(self.state)

    # --- Lifecycle ---

    async def start(self) -> None:
        """Rebuild state from the durable store and begin watching connectivity."""
        self._stopping = False
        self._sync_from_store()
        self._publish()
        self._watch_task = asyncio.create_task(self._watch_connectivity(), name="coordinator:connectivity")
        if self._config.store_poll_interval_s > 0:
            self._refresh.start()
        logger.info(
            "Queue coordinator started",
            queued=len(self._messages),
            endpoint_configured=self._endpoint.is_configured,
        )

    async def stop(self) -> None:
        """Stop watching inputs and let an in-flight loop finish within the grace period."""
        self._stopping = True
        self._refresh.stop()
        await _cancel_task(self._watch_task)
        self._watch_task = None
        await _cancel_task(self._retry_task)
        self._retry_task = None

        task = self._delivery_task
        if task is not None:
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=self._config.shutdown_grace_s)
            except asyncio.TimeoutError:
                logger.warning("Delivery still running at shutdown, cancelling it")
                await _cancel_task(task)

        self._states.close_all()
        logger.info("Queue coordinator stopped", queued=len(self._messages))

    async def wait_for_delivery(self) -> None:
        """Wait until no delivery loop is running, including loops chained after this one."""
        while self._delivery_task is not None:
            await asyncio.wait([self._delivery_task])

    # --- Commands ---

    def add_message(self, content: str) -> QueuedMessage | None:
        content = content.strip()
        if not content:
            return None

        message = QueuedMessage(content=content)
        self._store.append(message)
        self._sync_from_store()
        self._publish()
        logger.info("Message queued", message_id=message.id, queued=len(self._messages))

        self.request_delivery()
        return message

    def cancel_message(self, message_id: str) -> None:
        self._store.remove(message_id)
        self._sync_from_store()
        self._publish()
        logger.info("Message cancelled", message_id=message_id, queued=len(self._messages))

    def set_endpoint(self, url: str) -> None:
        url = url.strip()
        if not url:
            return

        self._store.set_endpoint(url)
        self._sync_from_store()
        self._publish()
        logger.info("Webhook endpoint updated")

        self.request_delivery()

    def clear_error(self) -> None:
        if self._last_error is None:
            return
        self._last_error = None
        self._publish()

    def request_delivery(self) -> bool:
        """Start the delivery loop if every precondition holds. Returns True if a loop was started."""
        if self._stopping:
            return False
        state = self.state
        if not should_deliver(state):
            return False

        self._sending = True
        self._last_error = None
        self._publish()
        self._delivery_task = asyncio.create_task(self._deliver(), name="coordinator:delivery")
        return True

    # --- Input handlers ---

    def _sync_from_store(self) -> None:
        self._messages = self._store.list_messages()
        self._endpoint = self._store.get_endpoint()
        self._store_revision = self._store.revision()

    def _on_connectivity(self, online: bool) -> None:
        changed = online != self._deliverable
        self._deliverable = online
        self._publish()
        if online and changed:
            self.request_delivery()

    async def _watch_connectivity(self) -> None:
        try:
            async with self._monitor.subscribe() as updates:
                async for online in updates:
                    self._on_connectivity(online)
        except Exception:
            logger.exception("Connectivity watcher failed")

    async def _refresh_from_store(self) -> None:
        """Pick up queue or endpoint writes made by another process."""
        if self._store.revision() == self._store_revision:
            return
        self._sync_from_store()
        self._publish()
        logger.debug("Store changed externally", queued=len(self._messages))
        self.request_delivery()

    # --- Delivery loop ---

    async def _deliver(self) -> None:
        endpoint = (self._endpoint.url or "").strip()
        snapshot = self._store.list_messages()
        delivered = 0
        halted = False
        logger.info("Delivery started", queued=len(snapshot))

        try:
            for message in snapshot:
                if not self._deliverable:
                    logger.info("Connectivity lost, pausing delivery", delivered=delivered)
                    halted = True
                    break
                if not self._store.contains(message.id):
                    logger.debug("Skipping cancelled message", message_id=message.id)
                    continue

                outcome = await self._attempt(endpoint, message)

                if isinstance(outcome, Delivered):
                    self._store.remove(message.id)
                    self._sync_from_store()
                    self._retry_attempt = 0
                    delivered += 1
                    self._publish()
                    logger.info("Message delivered", message_id=message.id, queued=len(self._messages))
                    continue

                halted = True
                if is_transient_failure(outcome):
                    logger.info("Delivery paused by network failure", message_id=message.id, detail=outcome.detail)
                    self._schedule_retry()
                else:
                    self._last_error = describe_failure(outcome)
                    logger.warning(
                        "Delivery failed",
                        message_id=message.id,
                        category=outcome.category.value,
                        detail=outcome.detail,
                    )
                break
        finally:
            self._sending = False
            self._delivery_task = None
            self._publish()

        logger.info("Delivery finished", delivered=delivered, halted=halted, queued=len(self._messages))
        if not halted:
            # Messages queued while this loop ran were not in its snapshot.
            self.request_delivery()

    async def _attempt(self, endpoint: str, message: QueuedMessage) -> SendOutcome:
        try:
            return await self._sender.send(endpoint, message.content)
        except Exception as err:
            logger.exception("Sender raised unexpectedly", message_id=message.id)
            return Failed(FailureCategory.UNEXPECTED, f"Failed to send message: {err}")

    def _schedule_retry(self) -> None:
        self._retry_attempt += 1
        delay_s = self._config.retry_delay(self._retry_attempt)
        if delay_s is None:
            logger.info("Network retries exhausted, waiting for the next trigger", attempts=self._retry_attempt - 1)
            self._retry_attempt = 0
            return

        if self._retry_task is not None:
            self._retry_task.cancel()
        logger.info("Scheduling delivery retry", attempt=self._retry_attempt, delay_s=delay_s)
        self._retry_task = asyncio.create_task(self._retry_later(delay_s), name="coordinator:retry")

    async def _retry_later(self, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        self._retry_task = None
        self.request_delivery()


async def _cancel_task(task: asyncio.Task[None] | None) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass

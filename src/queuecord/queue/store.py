"""Durable FIFO message queue and endpoint setting."""

from __future__ import annotations

from pydantic import TypeAdapter, ValidationError

from queuecord.infrastructure.kv_repo import KeyValueRepository
from queuecord.infrastructure.logger import logger
from queuecord.queue.types import EndpointConfig, QueuedMessage

QUEUED_MESSAGES_KEY = "queued_messages"
WEBHOOK_URL_KEY = "webhook_url"

_message_list = TypeAdapter(list[QueuedMessage])


class MessageQueueStore:
    """Persists the pending queue as a JSON array slot and the webhook URL as a string slot.

    Every mutation is committed before it returns. Corrupt queue data reads
    as an empty queue.
    """

    def __init__(self, kv_repo: KeyValueRepository) -> None:
        self._kv = kv_repo

    # --- Queue ---

    def list_messages(self) -> list[QueuedMessage]:
        return self._decode(self._kv.get(QUEUED_MESSAGES_KEY))

    def append(self, message: QueuedMessage) -> None:
        messages = self.list_messages()
        messages.append(message)
        self._write(messages)

    def remove(self, message_id: str) -> None:
        messages = self.list_messages()
        remaining = [m for m in messages if m.id != message_id]
        if len(remaining) != len(messages):
            self._write(remaining)

    def clear(self) -> None:
        self._kv.delete(QUEUED_MESSAGES_KEY)

    def contains(self, message_id: str) -> bool:
        return any(m.id == message_id for m in self.list_messages())

    # --- Endpoint ---

    def get_endpoint(self) -> EndpointConfig:
        return EndpointConfig(url=self._kv.get(WEBHOOK_URL_KEY))

    def set_endpoint(self, url: str) -> None:
        self._kv.set(WEBHOOK_URL_KEY, url)

    def revision(self) -> tuple[str | None, str | None]:
        """Opaque token that changes whenever the queue or endpoint slot is rewritten."""
        raw = self._kv.get_many([QUEUED_MESSAGES_KEY, WEBHOOK_URL_KEY])
        return raw.get(QUEUED_MESSAGES_KEY), raw.get(WEBHOOK_URL_KEY)

    def _decode(self, raw: str | None) -> list[QueuedMessage]:
        if raw is None:
            return []
        try:
            return _message_list.validate_json(raw)
        except ValidationError as err:
            logger.warning("Corrupt queued_messages in store, treating as empty", error=str(err))
            return []

    def _write(self, messages: list[QueuedMessage]) -> None:
        self._kv.set(QUEUED_MESSAGES_KEY, _message_list.dump_json(messages).decode())

"""Coordinator state: the combined snapshot and the status derived from it."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from queuecord.queue.types import EndpointConfig, QueuedMessage


class Status(str, Enum):
    OFFLINE_WITH_QUEUE = "offline_with_queue"
    SENDING = "sending"
    EMPTY = "empty"
    ONLINE_READY = "online_ready"


@dataclass(frozen=True)
class CoordinatorState:
    messages: tuple[QueuedMessage, ...] = ()
    deliverable: bool = False
    sending: bool = False
    endpoint: EndpointConfig = field(default_factory=EndpointConfig)
    last_error: str | None = None

    @property
    def status(self) -> Status:
        return derive_status(self)


def derive_status(state: CoordinatorState) -> Status:
    if state.sending:
        return Status.SENDING
    if not state.messages:
        return Status.ONLINE_READY if state.deliverable else Status.EMPTY
    if not state.deliverable:
        return Status.OFFLINE_WITH_QUEUE
    # Queue waiting while online: a delivery loop is about to pick it up.
    return Status.ONLINE_READY


def combine_state(
    messages: list[QueuedMessage] | tuple[QueuedMessage, ...],
    deliverable: bool | None,
    sending: bool,
    endpoint: EndpointConfig,
    last_error: str | None,
) -> CoordinatorState:
    """Build one consistent snapshot from the current value of every input.

    An unknown connectivity state (None) counts as not deliverable.
    """
    return CoordinatorState(
        messages=tuple(messages),
        deliverable=bool(deliverable),
        sending=sending,
        endpoint=endpoint,
        last_error=last_error,
    )


def should_deliver(state: CoordinatorState) -> bool:
    """All preconditions for starting a delivery loop."""
    return state.endpoint.is_configured and bool(state.messages) and state.deliverable and not state.sending

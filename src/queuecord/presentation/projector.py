"""Presentation snapshot derived from coordinator state."""

from __future__ import annotations

from dataclasses import dataclass

from queuecord.coordinator.state import CoordinatorState, Status
from queuecord.queue.types import QueuedMessage


@dataclass(frozen=True)
class ViewState:
    messages: tuple[QueuedMessage, ...] = ()
    status: Status = Status.EMPTY
    is_sending: bool = False
    webhook_url: str | None = None
    error_message: str | None = None
    show_config_prompt: bool = False
    show_edit_config: bool = False


def project(state: CoordinatorState, show_edit_config: bool = False) -> ViewState:
    return ViewState(
        messages=state.messages,
        status=state.status,
        is_sending=state.sending,
        webhook_url=state.endpoint.url,
        error_message=state.last_error,
        show_config_prompt=not state.endpoint.is_configured and not show_edit_config,
        show_edit_config=show_edit_config,
    )


def status_text(view: ViewState) -> str:
    if view.status is Status.OFFLINE_WITH_QUEUE:
        count = len(view.messages)
        return f"Offline, {count} message{'s' if count != 1 else ''} queued"
    if view.status is Status.SENDING:
        return "Sending..."
    if view.status is Status.ONLINE_READY:
        return "Online, ready to send"
    return "Queue empty"

"""Tests for the view projection."""

from queuecord.coordinator.state import Status, combine_state
from queuecord.presentation.projector import project, status_text
from queuecord.queue.types import EndpointConfig, QueuedMessage

URL = "https://discord.test/hook"


def _state(messages=(), deliverable=False, sending=False, url=URL, last_error=None):
    return combine_state(list(messages), deliverable, sending, EndpointConfig(url=url), last_error)


class TestProject:
    def test_copies_coordinator_fields(self):
        messages = [QueuedMessage(id="m1", content="hi")]
        view = project(_state(messages, deliverable=True, sending=True, last_error="boom"))
        assert view.messages == tuple(messages)
        assert view.status is Status.SENDING
        assert view.is_sending is True
        assert view.webhook_url == URL
        assert view.error_message == "boom"

    def test_config_prompt_without_endpoint(self):
        view = project(_state(url=None, deliverable=True))
        assert view.show_config_prompt is True
        assert view.show_edit_config is False

    def test_no_config_prompt_while_edit_dialog_open(self):
        view = project(_state(url=None), show_edit_config=True)
        assert view.show_config_prompt is False
        assert view.show_edit_config is True

    def test_blank_endpoint_still_prompts(self):
        assert project(_state(url="   ")).show_config_prompt is True

    def test_no_prompt_when_configured(self):
        assert project(_state()).show_config_prompt is False


class TestStatusText:
    def test_offline_counts_messages(self):
        one = project(_state([QueuedMessage(content="a")]))
        two = project(_state([QueuedMessage(content="a"), QueuedMessage(content="b")]))
        assert status_text(one) == "Offline, 1 message queued"
        assert status_text(two) == "Offline, 2 messages queued"

    def test_other_statuses(self):
        assert status_text(project(_state(sending=True))) == "Sending..."
        assert status_text(project(_state(deliverable=True))) == "Online, ready to send"
        assert status_text(project(_state())) == "Queue empty"

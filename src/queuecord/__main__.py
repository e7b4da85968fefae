"""Entry point: python -m queuecord <command>"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from datetime import datetime

from queuecord.connectivity.monitor import tcp_probe
from queuecord.coordinator.state import combine_state
from queuecord.infrastructure.database import AppDatabase
from queuecord.infrastructure.logger import logger
from queuecord.presentation.projector import project, status_text
from queuecord.queue.store import MessageQueueStore
from queuecord.queue.types import QueuedMessage


async def main() -> None:
    from queuecord.app import Orchestrator

    orchestrator = Orchestrator()

    # Handle graceful shutdown
    shutdown_event = asyncio.Event()

    def signal_handler() -> None:
        logger.info("Received shutdown signal")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await orchestrator.start()
        await shutdown_event.wait()
    finally:
        await orchestrator.shutdown()


def _fail(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


def _format_message(message: QueuedMessage) -> str:
    queued_at = datetime.fromtimestamp(message.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")
    return f"{message.id}  {queued_at}  {message.content}"


def cmd_add(store: MessageQueueStore, args: argparse.Namespace) -> int:
    content = " ".join(args.text).strip()
    if not content:
        return _fail("Message text is empty")
    message = QueuedMessage(content=content)
    store.append(message)
    print(message.id)
    return 0


def cmd_cancel(store: MessageQueueStore, args: argparse.Namespace) -> int:
    if not store.contains(args.id):
        return _fail(f"No queued message with id {args.id}")
    store.remove(args.id)
    return 0


def cmd_list(store: MessageQueueStore, args: argparse.Namespace) -> int:
    for message in store.list_messages():
        print(_format_message(message))
    return 0


def cmd_clear(store: MessageQueueStore, args: argparse.Namespace) -> int:
    store.clear()
    return 0


def cmd_set_url(store: MessageQueueStore, args: argparse.Namespace) -> int:
    url = args.url.strip()
    if not url:
        return _fail("Webhook URL is empty")
    store.set_endpoint(url)
    return 0


def cmd_status(store: MessageQueueStore, args: argparse.Namespace) -> int:
    online = asyncio.run(tcp_probe())
    state = combine_state(store.list_messages(), online, False, store.get_endpoint(), None)
    view = project(state)
    print(status_text(view))
    if view.show_config_prompt:
        print("No webhook URL configured. Set one with: queuecord set-url URL")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="queuecord", description="Queue messages for a webhook and deliver them when online")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Run the delivery service until interrupted")

    add = sub.add_parser("add", help="Queue a message")
    add.add_argument("text", nargs="+", help="Message text")
    add.set_defaults(handler=cmd_add)

    cancel = sub.add_parser("cancel", help="Remove a queued message")
    cancel.add_argument("id", help="Message id (see `list`)")
    cancel.set_defaults(handler=cmd_cancel)

    sub.add_parser("list", help="Show queued messages").set_defaults(handler=cmd_list)
    sub.add_parser("clear", help="Remove every queued message").set_defaults(handler=cmd_clear)

    set_url = sub.add_parser("set-url", help="Set the webhook URL")
    set_url.add_argument("url", help="Webhook URL")
    set_url.set_defaults(handler=cmd_set_url)

    sub.add_parser("status", help="Probe connectivity and print the queue status").set_defaults(handler=cmd_status)
    return parser


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "run":
        try:
            asyncio.run(main())
        except KeyboardInterrupt:
            pass
        return 0

    db = AppDatabase()
    db.init()
    try:
        return args.handler(db.queue_store, args)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(run())

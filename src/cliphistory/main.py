#!/usr/bin/env python3

import argparse
import logging
import signal
import sys
from dataclasses import replace
from typing import List, Optional

from cliphistory.clipboard.base import ClipboardSink
from cliphistory.config import HistoryConfig, RedisConfig
from cliphistory.database import HistoryStorage, MemoryHistoryStorage, RedisHistoryStorage
from cliphistory.errors import EntryNotFoundError, PersistenceError
from cliphistory.models import Entry, Outcome
from cliphistory.services import ClipboardHistory, ClipboardWatcher

logger = logging.getLogger(__name__)


def open_storage(config: HistoryConfig, use_redis: bool, fallback: bool = False) -> HistoryStorage:
    if not use_redis:
        return MemoryHistoryStorage()
    try:
        client = RedisConfig.from_env().create_client()
        return RedisHistoryStorage(client, namespace=config.namespace)
    except PersistenceError as e:
        if not fallback:
            raise
        logger.warning(f"Redis unavailable, continuing without persistence: {e}")
        return MemoryHistoryStorage()


def build_history(
    config: HistoryConfig,
    use_redis: bool = True,
    sink: Optional[ClipboardSink] = None,
    fallback: bool = False,
) -> ClipboardHistory:
    storage = open_storage(config, use_redis, fallback=fallback)
    history = ClipboardHistory.from_config(config, storage, sink=sink)
    history.load()
    return history


def format_entry(entry: Entry) -> str:
    star = "*" if entry.starred else " "
    when = entry.captured_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    return f"{star} {entry.entry_id}  {when}  [{entry.kind.value}] {entry.preview()}"


def cmd_list(history: ClipboardHistory, args) -> int:
    entries = history.query(args.filter)
    for entry in entries:
        print(format_entry(entry))
    if not entries:
        print("No clipboard entries")
    return 0


def cmd_add(history: ClipboardHistory, args) -> int:
    result = history.capture(args.text)
    if result.outcome == Outcome.DUPLICATE:
        print("Already in history, not added")
    else:
        print(f"Added {result.entry.entry_id}")
    return 0


def cmd_delete(history: ClipboardHistory, args) -> int:
    result = history.delete(args.id)
    print("Deleted" if result.outcome == Outcome.DELETED else f"No entry {args.id}")
    return 0


def cmd_star(history: ClipboardHistory, args) -> int:
    result = history.toggle_starred(args.id)
    print("Starred" if result.entry.starred else "Unstarred")
    return 0


def cmd_restore(history: ClipboardHistory, args) -> int:
    result = history.restore(args.id)
    if result.outcome != Outcome.RESTORED:
        print(f"Could not place {result.entry.kind.value} entry on the clipboard")
        return 1
    print("Copied to clipboard")
    return 0


def cmd_clear(history: ClipboardHistory, args) -> int:
    count = len(history)
    history.clear_all()
    print(f"Cleared {count} entries")
    return 0


def cmd_watch(history: ClipboardHistory, args) -> int:
    from cliphistory.clipboard.pyperclip_clipboard import PyperclipClipboard

    watcher = ClipboardWatcher(history, PyperclipClipboard())

    def signal_handler(signum, frame):
        watcher.stop()

    signal.signal(signal.SIGTERM, signal_handler)

    print("cliphistory watching the clipboard. Press Ctrl+C to stop")
    watcher.run_forever()
    return 0


COMMANDS = {
    "list": cmd_list,
    "add": cmd_add,
    "delete": cmd_delete,
    "star": cmd_star,
    "restore": cmd_restore,
    "clear": cmd_clear,
    "watch": cmd_watch,
}


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        prog="cliphistory",
        description="cliphistory - clipboard history with starring and search"
    )

    parser.add_argument(
        "-m", "--max-entries",
        type=int,
        default=None,
        help="Maximum number of history entries (default: CLIPHISTORY_MAX_ENTRIES or 100)"
    )

    parser.add_argument(
        "-i", "--poll-interval",
        type=float,
        default=None,
        help="Clipboard polling interval in seconds (default: CLIPHISTORY_POLL_INTERVAL or 0.5)"
    )

    parser.add_argument(
        "--no-redis",
        action="store_true",
        help="Keep history in memory only"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose debug logging"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="Show history, starred first")
    list_parser.add_argument("filter", nargs="?", default="", help="Case-insensitive text filter")

    add_parser = sub.add_parser("add", help="Add text to the history")
    add_parser.add_argument("text")

    for name, help_text in (
        ("delete", "Delete an entry"),
        ("star", "Toggle the starred flag of an entry"),
        ("restore", "Copy an entry back to the clipboard"),
    ):
        cmd_parser = sub.add_parser(name, help=help_text)
        cmd_parser.add_argument("id", help="Entry id as shown by 'list'")

    sub.add_parser("clear", help="Remove every entry")
    sub.add_parser("watch", help="Record clipboard changes until interrupted")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    overrides = {}
    if args.max_entries is not None:
        overrides["max_entries"] = args.max_entries
    if args.poll_interval is not None:
        overrides["poll_interval"] = args.poll_interval

    try:
        config = replace(HistoryConfig.from_env(), **overrides)
    except ValueError as e:
        logger.error(str(e))
        return 2

    sink = None
    if args.command == "restore":
        from cliphistory.clipboard.pyperclip_clipboard import PyperclipClipboard
        sink = PyperclipClipboard()

    try:
        history = build_history(
            config,
            use_redis=not args.no_redis,
            sink=sink,
            fallback=args.command == "watch",
        )
    except PersistenceError as e:
        logger.error(f"Cannot open clipboard history: {e}")
        return 1

    try:
        return COMMANDS[args.command](history, args)
    except EntryNotFoundError as e:
        logger.error(str(e))
        return 1
    finally:
        history.close()


if __name__ == "__main__":
    sys.exit(main())

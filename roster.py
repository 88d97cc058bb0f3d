#!/usr/bin/env python3
"""
roster.py
─────────
Terminal view of the teammate directory.

Usage:
    # Print everyone, grouped and sorted like the menu-bar popover
    python roster.py --list --sort time --group timeZone

    # Keep the table on screen, refreshing every TZBUDDY_REFRESH_SECONDS
    python roster.py --watch --search tokyo

    # Store the Slack workspace id used for slack:// deep links
    python roster.py --slack-team T012ABCDEF

Data is read from TZBUDDY_HOME (default ~/.tzbuddy).
"""

import argparse
import logging
import sys
import os
import threading
from datetime import datetime

sys.path.insert(0, os.path.dirname(__file__))

from tzbuddy import config
from tzbuddy.projection import GroupMode, SortOrder, project, teammate_payload
from tzbuddy.registry import DirectoryStore
from tzbuddy.storage import FileStorage


def render(store: DirectoryStore, search: str, sort: str, group: str) -> str:
    now = datetime.now().astimezone()
    lines = [f"Timezone Buddy  {now:%Y-%m-%d %H:%M}", "═" * 56]
    buckets = project(store.snapshot(), search, sort, group)
    if not any(members for _, members in buckets):
        lines.append("  No teammates" + (f" matching {search!r}" if search else ""))
    for key, members in buckets:
        if group != GroupMode.NONE.value:
            lines.append(f"\n  {key}")
        for t in members:
            row = teammate_payload(t, at=now)
            lines.append(
                f"  {row['name']:20s}  {row['localTime'] or '—':>8s}  "
                f"{row['timeDifference'] or '?':>9s}  {row['zoneName']}"
            )
    lines.append("═" * 56)
    return "\n".join(lines)


def watch(store: DirectoryStore, search: str, sort: str, group: str) -> None:
    # Redraw on the refresh tick, or early when the directory changes
    changed = threading.Event()
    unsubscribe = store.subscribe(lambda snap: changed.set())
    try:
        while True:
            print("\033[2J\033[H" + render(store, search, sort, group), flush=True)
            changed.wait(config.refresh_seconds())
            changed.clear()
    except KeyboardInterrupt:
        pass
    finally:
        unsubscribe()


def main():
    parser = argparse.ArgumentParser(description="Show teammates' local times")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--list",       action="store_true", help="Print the directory once")
    group.add_argument("--watch",      action="store_true", help="Keep refreshing the directory")
    group.add_argument("--slack-team", metavar="ID",        help="Set the Slack workspace id")
    parser.add_argument("--search", default="",                               help="Filter by name or zone")
    parser.add_argument("--sort",   default="name", choices=[s.value for s in SortOrder])
    parser.add_argument("--group",  default="none", choices=[g.value for g in GroupMode])
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    store = DirectoryStore(FileStorage())

    if args.slack_team is not None:
        store.set_workspace_id(args.slack_team)
        print(f"  ✅ Slack workspace id set to {store.workspace_id!r}")
        return

    if args.watch:
        watch(store, args.search, args.sort, args.group)
        return

    print(render(store, args.search, args.sort, args.group))


if __name__ == "__main__":
    main()

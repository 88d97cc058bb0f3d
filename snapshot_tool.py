#!/usr/bin/env python3
"""
snapshot_tool.py
────────────────
Moves the teammate list between machines as a single JSON file.

Usage
─────
  # Write teammates to TimezoneBuddyExport.json (or a path of your choice)
  python snapshot_tool.py --export [PATH]

  # Replace the current teammate list with a previously exported file
  python snapshot_tool.py --import PATH

  # Show what an export file contains without importing it
  python snapshot_tool.py --inspect PATH

  # Remove every teammate, group and the Slack workspace id
  python snapshot_tool.py --reset

Only teammates travel: groups and the Slack workspace id stay on the machine.
Importing replaces the whole list, it never merges.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.dirname(__file__))

from tzbuddy.models import SnapshotError, decode_teammates
from tzbuddy.registry import DirectoryStore
from tzbuddy.storage import FileStorage

EXPORT_FILENAME = "TimezoneBuddyExport.json"


def export_to(store: DirectoryStore, path: Path) -> int:
    data = store.export_snapshot()
    if data is None:
        print("❌ Could not encode teammates.")
        return 1
    path.write_bytes(data)
    print(f"✅ Exported {len(store)} teammate(s) to {path}")
    return 0


def import_from(store: DirectoryStore, path: Path) -> int:
    try:
        data = path.read_bytes()
    except OSError as e:
        print(f"❌ Error reading file: {e}")
        return 1
    if not store.import_snapshot(data):
        print("❌ The selected file doesn't contain valid teammate data.")
        return 1
    print(f"✅ Imported {len(store)} teammate(s) from {path}")
    return 0


def inspect_file(path: Path) -> int:
    try:
        teammates = decode_teammates(path.read_bytes())
    except (OSError, SnapshotError) as e:
        print(f"❌ Could not read: {e}")
        return 1

    print(f"\n  📁  {path}  ({len(teammates)} teammate(s))")
    for t in teammates:
        groups = ", ".join(sorted(t.groups)) or "—"
        print(f"       • {t.name:20s}  {t.time_zone_identifier:24s}  {groups}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Timezone Buddy export/import")
    group  = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--export",  nargs="?", const=EXPORT_FILENAME, metavar="PATH",
                       help="Export teammates to a JSON file")
    group.add_argument("--import",  dest="import_path", metavar="PATH",
                       help="Replace teammates with an exported file")
    group.add_argument("--inspect", metavar="PATH", help="List the teammates in an export file")
    group.add_argument("--reset",   action="store_true", help="Remove all app data")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if args.inspect:
        sys.exit(inspect_file(Path(args.inspect)))

    store = DirectoryStore(FileStorage())

    if args.export:
        sys.exit(export_to(store, Path(args.export)))

    if args.import_path:
        sys.exit(import_from(store, Path(args.import_path)))

    if args.reset:
        answer = input("  Remove all teammates and groups? This cannot be undone. [y/N] ").strip().lower()
        if answer != "y":
            print("  Skipped.")
            return
        store.reset()
        print("✅ All app data removed.")


if __name__ == "__main__":
    main()

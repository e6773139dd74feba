#!/usr/bin/env python3
"""
Hand-off point for the blob-store cleanup worker.

Lists storage keys replaced or orphaned by the API and acknowledges the ones
the worker has deleted from the blob store.

Usage:
    python image_cleanup.py list [LIMIT]
    python image_cleanup.py ack ID [ID ...]
"""
import json
import sys

from database import SessionLocal
from services import storage
from utils.errors import NotFound

USAGE = "usage: image_cleanup.py list [LIMIT] | ack ID [ID ...]"


def list_pending(db, limit: int = 100) -> int:
    for deletion in storage.pending_image_deletions(db, limit):
        print(json.dumps({"id": deletion.id, "key": deletion.key}))
    return 0


def acknowledge(db, ids) -> int:
    failed = 0
    for deletion_id in ids:
        try:
            storage.acknowledge_image_deletion(db, deletion_id)
        except NotFound:
            print(f"✗ {deletion_id}: not pending", file=sys.stderr)
            failed += 1
            continue
        print(f"✓ {deletion_id}")
    return 1 if failed else 0


def main(argv=None, session_factory=SessionLocal) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args or args[0] not in ("list", "ack"):
        print(USAGE, file=sys.stderr)
        return 2
    try:
        numbers = [int(arg) for arg in args[1:]]
    except ValueError:
        print(USAGE, file=sys.stderr)
        return 2

    db = session_factory()
    try:
        if args[0] == "list":
            return list_pending(db, *numbers[:1])
        if not numbers:
            print(USAGE, file=sys.stderr)
            return 2
        return acknowledge(db, numbers)
    finally:
        db.close()


if __name__ == "__main__":
    exit(main())

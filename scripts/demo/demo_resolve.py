#!/usr/bin/env python
"""Resolve storage paths and show what they point at.

Examples:
    python scripts/demo/demo_resolve.py ./data/corpus.parquet
    python scripts/demo/demo_resolve.py "s3://globalnightlight/201204/201204_catalog.json?anon=true" --head 64
"""

from __future__ import annotations

import argparse
import logging
import sys

from kwindex.core.storage import ObjectNotFoundError, StorageError, StoreResolver

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def describe(resolver: StoreResolver, path: str, head: int) -> None:
    store, object_path = resolver.resolve(path)
    print(f"\n📍 {path}")
    print(f"   store: {store.kind.value} ({type(store).__name__}, id={id(store):#x})")
    print(f"   object path: {object_path}")

    try:
        meta = store.head(object_path)
    except ObjectNotFoundError:
        print("   ✗ object does not exist")
        return
    print(f"   size: {meta.size} bytes, last modified: {meta.last_modified}")

    if head:
        print(f"   first {head} bytes: {store.get_range(object_path, 0, head)!r}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve local, s3:// or memory:// paths")
    parser.add_argument("paths", nargs="+", help="Paths to resolve")
    parser.add_argument(
        "--head", type=int, default=0, help="Print this many leading bytes of each object"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger("kwindex").setLevel(logging.DEBUG)

    resolver = StoreResolver()
    failures = 0
    for path in args.paths:
        try:
            describe(resolver, path, args.head)
        except StorageError as e:
            logger.error(f"Failed to resolve {path}: {e}")
            failures += 1

    print(f"\n🗄️  Remote stores built: {len(resolver.cache)}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())

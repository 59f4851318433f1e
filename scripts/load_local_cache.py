#!/usr/bin/env python3
"""
Local Cache Loader

Loads a JSON export of products (a list of product documents, as saved by
the browser version of the tracker) into the local fallback cache. The
records are migrated into the remote store on the first sync that finds
the user's collection empty.

Usage:
    python scripts/load_local_cache.py export.json
    python scripts/load_local_cache.py export.json --show
"""
import sys
import json
import argparse
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.models.base import SessionLocal, init_db
from app.services.local_cache import LocalCache
from app.utils.logger import log


def load_records(file_path: str) -> list[dict]:
    """Read a product export; accepts a bare list or {"products": [...]}"""
    with open(file_path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("products", [])
    if not isinstance(data, list):
        raise ValueError(f"{file_path} does not contain a list of products")

    records = [r for r in data if isinstance(r, dict) and r.get("id")]
    skipped = len(data) - len(records)
    if skipped:
        log.warning(f"Skipped {skipped} entries without an id")
    return records


def main():
    parser = argparse.ArgumentParser(description="Load a product export into the local cache")
    parser.add_argument("file", help="JSON export to load")
    parser.add_argument("--show", action="store_true", help="Print the cache contents after loading")
    args = parser.parse_args()

    settings = get_settings()
    init_db()
    cache = LocalCache(SessionLocal, settings.local_cache_key)

    records = load_records(args.file)
    cache.write(records)
    log.info(f"Cached {len(records)} products under '{settings.local_cache_key}'")

    if args.show:
        print(json.dumps(cache.read(), indent=2))


if __name__ == "__main__":
    main()

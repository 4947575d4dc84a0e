#!/usr/bin/env python3
"""
Delete bucket images that no memorial references.

Dry run by default: prints the orphaned paths. Pass --apply to delete them.

Run:
    python backend/scripts/cleanup_images.py            # report only
    python backend/scripts/cleanup_images.py --apply    # delete
"""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config import get_settings
from services.app_services import create_app_services
from services.orphan_cleanup import find_orphaned_paths, reclaim_orphaned_images


async def cleanup_images(dry_run: bool = True):
    services = await create_app_services(get_settings())

    try:
        if dry_run:
            result = await find_orphaned_paths(services.memorials, services.storage)
            print(f"📊 {result.scanned} files in bucket, {result.referenced} referenced")
            for path in result.deleted:
                print(f"  🗑️  would delete {path}")
            print(f"🔍 DRY RUN: {len(result.deleted)} orphaned images (use --apply to delete)")
            return

        result = await reclaim_orphaned_images(services.memorials, services.storage)
        print(f"✅ {result.message}")

    finally:
        await services.close()


if __name__ == "__main__":
    dry_run = "--apply" not in sys.argv
    asyncio.run(cleanup_images(dry_run=dry_run))

#!/usr/bin/env python3
"""
Local Backfill Script
Runs the invoice number / zip code cleanup locally, outside of HTTP.
Exits 1 if any pass fails.
"""

import asyncio
import os
import sys
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Add app to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.analytics.backfill import BackfillService
from app.services.database import DashboardDatabase
from app.services.supabase_client import create_backend_clients
from app.settings import load_settings


async def run() -> int:
    print("=" * 60)
    print("LOCAL BACKFILL SCRIPT")
    print("=" * 60)

    settings = load_settings()
    backend = await create_backend_clients(settings)
    db = DashboardDatabase(backend.client, backend.admin, page_size=settings.jobs_page_size)
    backfill = BackfillService(db, settings.backfill_batch_size, settings.batch_delay_seconds)

    print(f"\nSupabase: {settings.supabase_url}")
    print(f"Service key: {'yes' if settings.supabase_service_key else 'no (anon key)'}")

    steps = ["Invoice numbers", "Zip codes", "Invoice numbers (final pass)"]
    results = await backfill.run_data_cleanup()

    failed = False
    for step, result in zip(steps, results):
        print("\n" + "-" * 40)
        print(f"{step}: {result.message} (updated {result.updated_count})")
        failed = failed or not result.success

    print("\n" + "=" * 60)
    print("BACKFILL FAILED" if failed else "BACKFILL COMPLETE!")
    print("=" * 60)
    return 1 if failed else 0


def main():
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()

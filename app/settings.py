"""
Settings

Environment-driven configuration for the dashboard backend.
Values are read once at startup; .env is loaded if present.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    """Runtime configuration"""
    supabase_url: str
    supabase_key: str
    supabase_service_key: Optional[str] = None
    jobs_page_size: int = 1000
    import_batch_size: int = 100
    backfill_batch_size: int = 10
    batch_delay_seconds: float = 0.1
    top_clients_limit: int = 25


def load_settings() -> Settings:
    """Build settings from environment variables"""
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url or not supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")

    return Settings(
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY"),
        jobs_page_size=int(os.getenv("JOBS_PAGE_SIZE", "1000")),
        import_batch_size=int(os.getenv("IMPORT_BATCH_SIZE", "100")),
        backfill_batch_size=int(os.getenv("BACKFILL_BATCH_SIZE", "10")),
        batch_delay_seconds=float(os.getenv("BATCH_DELAY_SECONDS", "0.1")),
        top_clients_limit=int(os.getenv("TOP_CLIENTS_LIMIT", "25")),
    )

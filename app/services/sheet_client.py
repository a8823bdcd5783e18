"""
Google Sheets Export Client

Downloads a spreadsheet's first sheet as CSV through the public export URL.
"""

import logging
import re
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

SPREADSHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
EXPORT_URL = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/export?format=csv"


class InvalidSheetUrlError(ValueError):
    """URL does not point at a Google spreadsheet"""


def extract_spreadsheet_id(url: str) -> Optional[str]:
    match = SPREADSHEET_ID_PATTERN.search(url or "")
    return match.group(1) if match else None


class SheetClient:
    """Fetches CSV exports of Google Sheets"""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    async def fetch_csv(self, spreadsheet_url: str) -> str:
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_url)
        if not spreadsheet_id:
            raise InvalidSheetUrlError("Invalid Google Sheets URL")

        url = EXPORT_URL.format(spreadsheet_id=spreadsheet_id)
        logger.info(f"[Sheets] Fetching export for {spreadsheet_id}")

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.text

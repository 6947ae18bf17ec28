"""Google Sheets v4 transport.

Only the three primitives the bot needs are implemented: read one column,
read a block of rows and append one row. Requests go through a
``google.auth`` authorized ``requests`` session and are retried on rate
limiting and transport errors.
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import requests
from google.auth import default as google_auth_default
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from mdt_reports.core.errors import SheetsError
from mdt_reports.core.rows import row_from_range
from mdt_reports.core.types import AppendResult

logger = logging.getLogger(__name__)

API_ROOT = "https://sheets.googleapis.com/v4/spreadsheets"
SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

MAX_RETRIES = 3
RETRY_BACKOFF = 2.0  # exponential backoff multiplier
REQUEST_TIMEOUT = 30


def a1_range(table: str, range_spec: str) -> str:
    """Qualify ``range_spec`` with a quoted tab name: ``'Arrest Log'!A2:A``."""
    escaped = table.replace("'", "''")
    return f"'{escaped}'!{range_spec}"


def build_credentials(credentials_json: str | None = None, credentials_file: str | None = None):
    if credentials_json:
        info = json.loads(credentials_json)
        return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    key_path = credentials_file or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if key_path and os.path.exists(key_path):
        return service_account.Credentials.from_service_account_file(key_path, scopes=SCOPES)
    creds, _ = google_auth_default(scopes=SCOPES)
    return creds


class SheetsClient:
    """Blocking client for one spreadsheet."""

    def __init__(
        self,
        spreadsheet_id: str,
        session: requests.Session | None = None,
        credentials: Any = None,
        backoff: float = RETRY_BACKOFF,
    ):
        if not spreadsheet_id:
            raise ValueError("spreadsheet_id is required")
        self.spreadsheet_id = spreadsheet_id
        self.session = session or AuthorizedSession(credentials or build_credentials())
        self.backoff = backoff

    @classmethod
    def from_settings(cls, settings) -> "SheetsClient":
        creds = build_credentials(settings.google_credentials_json, settings.google_credentials_file)
        return cls(settings.spreadsheet_id, credentials=creds)

    def read_column(self, table: str, range_spec: str) -> list[str]:
        data = self._request(
            "GET",
            f"values/{quote(a1_range(table, range_spec), safe='')}",
            params={"majorDimension": "COLUMNS"},
        )
        columns = data.get("values") or []
        return [str(value) for value in columns[0]] if columns else []

    def read_rows(self, table: str, range_spec: str) -> list[list[str]]:
        data = self._request("GET", f"values/{quote(a1_range(table, range_spec), safe='')}")
        return [[str(cell) for cell in row] for row in data.get("values") or []]

    def append_row(self, table: str, range_spec: str, row: Sequence[Any]) -> AppendResult:
        data = self._request(
            "POST",
            f"values/{quote(a1_range(table, range_spec), safe='')}:append",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            payload={"values": [list(row)]},
        )
        updated_range = (data.get("updates") or {}).get("updatedRange", "")
        logger.info(f"Appended row to {updated_range or table}")
        return AppendResult(updated_range=updated_range, row_index=row_from_range(updated_range))

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{API_ROOT}/{self.spreadsheet_id}/{path}"

        for attempt in range(MAX_RETRIES):
            try:
                logger.debug(f"{method} {url}")
                response = self.session.request(
                    method, url, params=params, json=payload, timeout=REQUEST_TIMEOUT
                )
            except requests.RequestException as e:
                if attempt < MAX_RETRIES - 1:
                    wait = self.backoff ** (attempt + 1)
                    logger.warning(f"Sheets request failed ({e}), retrying in {wait}s...")
                    time.sleep(wait)
                    continue
                raise SheetsError(f"Sheets request failed: {e}") from e

            if response.status_code == 200:
                return response.json()
            if response.status_code == 429 and attempt < MAX_RETRIES - 1:
                wait = self.backoff ** (attempt + 1)
                logger.warning(f"Rate limited, waiting {wait}s...")
                time.sleep(wait)
                continue

            logger.warning(f"HTTP {response.status_code} for {method} {url}")
            raise SheetsError(f"Sheets API returned HTTP {response.status_code}: {_error_message(response)}")

        raise SheetsError("Sheets request failed after retries")


def _error_message(response: requests.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return (response.text or "")[:200]

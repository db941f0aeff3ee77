"""
services/sheets_service.py – Google Sheets writer authenticated with a service account.

Each call to ``update_range`` overwrites the whole target range with the
given grid. Any refusal from the API surfaces as ExportError.
"""

import logging
import os
from typing import Any, List, Optional, Sequence

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from services.exceptions import CredentialsError, ExportError

logger = logging.getLogger(__name__)

# ── Configuration ────────────────────────────────────────────────────────────

SPREADSHEET_ID: str = os.environ.get(
    "NETCON_SPREADSHEET_ID", "1OeJnf9Eq5EuFn23s0n553jiGcGuXuoafREjz32T9i6I"
)

# Service-account key in JSON format.
CREDENTIALS_FILE: str = os.environ.get("NETCON_CREDENTIALS_FILE", "key.json")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

VALUE_INPUT_OPTION: str = "USER_ENTERED"

Row = Sequence[Any]


class SheetsClient:
    """
    Thin wrapper over the Sheets v4 ``values.update`` call.

    Parameters
    ----------
    spreadsheet_id   : Target spreadsheet.
    credentials_file : Path to the service-account key; read on first use.
    service          : Prebuilt Sheets service, mainly for tests.
    """

    def __init__(
        self,
        spreadsheet_id: str = SPREADSHEET_ID,
        credentials_file: str = CREDENTIALS_FILE,
        service: Optional[Any] = None,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.credentials_file = credentials_file
        self._service = service

    def update_range(self, range_name: str, rows: List[Row]) -> dict:
        """
        Overwrite *range_name* with *rows*.

        Returns
        -------
        The API response (``updatedRange``, ``updatedRows``, …).

        Raises
        ------
        CredentialsError
            When the key file cannot be loaded.
        ExportError
            When the API rejects the write.
        """
        body = {"values": [list(row) for row in rows]}
        try:
            response = (
                self._get_service()
                .spreadsheets()
                .values()
                .update(
                    spreadsheetId=self.spreadsheet_id,
                    range=range_name,
                    valueInputOption=VALUE_INPUT_OPTION,
                    body=body,
                )
                .execute()
            )
        except HttpError as exc:
            raise ExportError(
                f"Sheets API returned HTTP {exc.resp.status} while writing '{range_name}'."
            ) from exc

        logger.info(
            "Wrote %s rows to %s",
            response.get("updatedRows", len(rows)),
            response.get("updatedRange", range_name),
        )
        return response

    # ── Internals ─────────────────────────────────────────────────────────────

    def _get_service(self) -> Any:
        if self._service is None:
            self._service = build(
                "sheets", "v4", credentials=self._load_credentials(), cache_discovery=False
            )
        return self._service

    def _load_credentials(self) -> service_account.Credentials:
        try:
            return service_account.Credentials.from_service_account_file(
                self.credentials_file, scopes=SCOPES
            )
        except OSError as exc:
            raise CredentialsError(self.credentials_file, exc.strerror or str(exc)) from exc
        except ValueError as exc:
            raise CredentialsError(self.credentials_file, str(exc)) from exc

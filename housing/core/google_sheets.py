import logging
from pathlib import Path
from typing import Any, Dict, List

import gspread
from google.oauth2.service_account import Credentials

from housing.core.config import settings
from housing.core.exceptions import ExternalServiceError, NotFoundError, ServiceUnavailableError

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/drive.readonly",
]


def _get_client() -> gspread.Client:
    """Build and return an authorised gspread client using the service-account JSON."""
    creds_path = Path(settings.GOOGLE_SHEETS_CREDENTIALS_FILE)
    if not creds_path.exists():
        raise ServiceUnavailableError(
            f"Google credentials file not found at {creds_path.resolve()}"
        )
    creds = Credentials.from_service_account_file(str(creds_path), scopes=SCOPES)
    return gspread.authorize(creds)


def read_worksheet(spreadsheet_id: str, worksheet_name: str) -> List[Dict[str, Any]]:
    """
    Return the worksheet as a list of dicts keyed by the header row.
    Header normalisation happens in housing.core.spreadsheet.
    """
    client = _get_client()
    try:
        worksheet = client.open_by_key(spreadsheet_id).worksheet(worksheet_name)
        records = worksheet.get_all_records(default_blank="")
    except gspread.exceptions.SpreadsheetNotFound:
        raise NotFoundError("spreadsheet", spreadsheet_id)
    except gspread.exceptions.WorksheetNotFound:
        raise NotFoundError("worksheet", worksheet_name)
    except gspread.exceptions.GSpreadException as e:
        logger.exception("Failed to read Google Sheet %s/%s", spreadsheet_id, worksheet_name)
        raise ExternalServiceError(f"Google Sheets request failed: {e}")

    logger.info("Read %s rows from Google Sheet %s/%s", len(records), spreadsheet_id, worksheet_name)
    return records

"""Google API authentication and Drive folder access."""

from __future__ import annotations

import io
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .models import SourceFile
from .utils import PDF_MIME

log = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/documents.readonly",
    "https://www.googleapis.com/auth/spreadsheets",
]

LIST_FIELDS = "nextPageToken, files(id, name, mimeType, webViewLink, appProperties)"


@dataclass
class Services:
    """Bundle of API clients handed to the orchestrator."""

    drive: Any
    docs: Any
    sheets: Any
    session: Any  # AuthorizedSession used for raw Drive export calls


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


def authenticate(
    credentials_file: Path,
    token_file: Path,
    service_account_file: Optional[Path] = None,
):
    """Service-account credentials if given, else OAuth2 with token caching."""
    if service_account_file is not None:
        from google.oauth2 import service_account

        log.info("Using service account: %s", service_account_file)
        return service_account.Credentials.from_service_account_file(
            str(service_account_file), scopes=SCOPES
        )

    from google.auth.transport.requests import Request
    from google.oauth2.credentials import Credentials
    from google_auth_oauthlib.flow import InstalledAppFlow

    creds = None
    if token_file.exists():
        creds = Credentials.from_authorized_user_file(str(token_file), SCOPES)
    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            if not credentials_file.exists():
                log.error(
                    f"Credentials file not found: {credentials_file}\n"
                    "  1. Go to Google Cloud Console -> APIs & Services -> Credentials\n"
                    "  2. Create OAuth 2.0 Client ID (Desktop app)\n"
                    "  3. Download JSON and save as credentials.json in project root"
                )
                sys.exit(1)
            flow = InstalledAppFlow.from_client_secrets_file(
                str(credentials_file), SCOPES
            )
            creds = flow.run_local_server(port=0)
        token_file.write_text(creds.to_json())
    return creds


def build_services(creds) -> Services:
    """Build Drive v3, Docs v1 and Sheets v4 clients sharing *creds*."""
    from google.auth.transport.requests import AuthorizedSession
    from googleapiclient.discovery import build

    return Services(
        drive=build("drive", "v3", credentials=creds, cache_discovery=False),
        docs=build("docs", "v1", credentials=creds, cache_discovery=False),
        sheets=build("sheets", "v4", credentials=creds, cache_discovery=False),
        session=AuthorizedSession(creds),
    )


# ---------------------------------------------------------------------------
# Google Drive API
# ---------------------------------------------------------------------------


def list_drive_pdfs(service, folder_id: str) -> list[SourceFile]:
    """List all PDF files in a Google Drive folder (non-recursive).

    Order is whatever the Drive listing yields.
    """
    results: list[SourceFile] = []
    page_token = None
    query = f"'{folder_id}' in parents and mimeType='{PDF_MIME}' and trashed=false"
    while True:
        response = (
            service.files()
            .list(
                q=query,
                spaces="drive",
                fields=LIST_FIELDS,
                pageToken=page_token,
                pageSize=100,
            )
            .execute()
        )
        results.extend(SourceFile.from_drive(f) for f in response.get("files", []))
        page_token = response.get("nextPageToken")
        if not page_token:
            break
    return results


def download_pdf_bytes(service, file_id: str) -> bytes:
    """Fetch the binary content of a Drive file into memory."""
    from googleapiclient.http import MediaIoBaseDownload

    buffer = io.BytesIO()
    request = service.files().get_media(fileId=file_id)
    downloader = MediaIoBaseDownload(buffer, request)
    done = False
    while not done:
        _status, done = downloader.next_chunk()
    log.debug("  Downloaded %s (%s bytes)", file_id, buffer.tell())
    return buffer.getvalue()

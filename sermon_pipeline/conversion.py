"""OCR text extraction through Drive's PDF -> Google Doc conversion.

The extractor walks a fallback chain, each step running only when the
previous one produced nothing:

1. upload the PDF as a Google Doc with OCR enabled and read the Doc body;
2. if the copy did not become a Doc, export it as ``text/plain``;
3. if the export is refused, make a server-side converted copy and read that.

Every converted copy is tagged transient and trashed before returning,
whichever way the function exits.
"""

from __future__ import annotations

import io
import logging
import time
from typing import Any, Callable, Optional

from .models import SourceFile
from .sources import download_pdf_bytes
from .utils import DRIVE_EXPORT_URL, GDOC_MIME, PDF_MIME, TEMP_PREFIX, TRANSIENT_TAG

log = logging.getLogger(__name__)

Sleep = Callable[[float], None]


# ---------------------------------------------------------------------------
# Transient artifacts
# ---------------------------------------------------------------------------


def _artifact_metadata(source: SourceFile, folder_id: Optional[str]) -> dict[str, Any]:
    body: dict[str, Any] = {
        "name": f"{TEMP_PREFIX}{source.name}",
        "mimeType": GDOC_MIME,
        "appProperties": {TRANSIENT_TAG: "1", "source_id": source.id},
    }
    if folder_id:
        body["parents"] = [folder_id]
    return body


def create_ocr_copy(
    drive,
    source: SourceFile,
    content: bytes,
    *,
    folder_id: Optional[str] = None,
    ocr_language: str = "en",
) -> Optional[str]:
    """Upload *content* as a Google Doc with OCR; return the new file id."""
    from googleapiclient.http import MediaIoBaseUpload

    media = MediaIoBaseUpload(io.BytesIO(content), mimetype=PDF_MIME, resumable=False)
    created = (
        drive.files()
        .create(
            body=_artifact_metadata(source, folder_id),
            media_body=media,
            ocrLanguage=ocr_language,
            fields="id, mimeType",
        )
        .execute()
    )
    return (created or {}).get("id")


def create_converted_copy(
    drive,
    source: SourceFile,
    *,
    folder_id: Optional[str] = None,
    ocr_language: str = "en",
) -> Optional[str]:
    """Server-side copy of *source* converted to a Google Doc."""
    created = (
        drive.files()
        .copy(
            fileId=source.id,
            body=_artifact_metadata(source, folder_id),
            ocrLanguage=ocr_language,
            fields="id, mimeType",
        )
        .execute()
    )
    return (created or {}).get("id")


def trash_file(drive, file_id: str) -> bool:
    """Move *file_id* to the trash. Failures are logged, never raised."""
    try:
        drive.files().update(fileId=file_id, body={"trashed": True}).execute()
    except Exception as exc:
        log.warning("Could not trash transient file %s: %s", file_id, exc)
        return False
    log.debug("Trashed transient file %s", file_id)
    return True


# ---------------------------------------------------------------------------
# Conversion readiness
# ---------------------------------------------------------------------------


def fetch_mime_type(drive, file_id: str) -> str:
    meta = drive.files().get(fileId=file_id, fields="mimeType").execute()
    return (meta or {}).get("mimeType", "")


def wait_for_conversion(
    drive,
    file_id: str,
    budget_s: float,
    *,
    sleep: Sleep = time.sleep,
    first_interval_s: float = 1.0,
) -> str:
    """Poll the file's mime type until it is a Google Doc or *budget_s* runs out.

    Intervals double after each check. Returns the last mime type seen.
    """
    waited = 0.0
    interval = first_interval_s
    mime = fetch_mime_type(drive, file_id)
    while mime != GDOC_MIME and waited < budget_s:
        step = min(interval, budget_s - waited)
        sleep(step)
        waited += step
        interval *= 2
        mime = fetch_mime_type(drive, file_id)
    if mime != GDOC_MIME:
        log.info(
            "Conversion of %s not ready after %.1fs (mimeType=%s)",
            file_id,
            waited,
            mime or "unknown",
        )
    return mime


# ---------------------------------------------------------------------------
# Text readers
# ---------------------------------------------------------------------------


def _structural_text(elements: list[dict[str, Any]]) -> list[str]:
    parts: list[str] = []
    for element in elements or []:
        paragraph = element.get("paragraph")
        if paragraph:
            for run in paragraph.get("elements", []):
                content = run.get("textRun", {}).get("content")
                if content:
                    parts.append(content)
        table = element.get("table")
        if table:
            for row in table.get("tableRows", []):
                for cell in row.get("tableCells", []):
                    parts.extend(_structural_text(cell.get("content", [])))
        toc = element.get("tableOfContents")
        if toc:
            parts.extend(_structural_text(toc.get("content", [])))
    return parts


def read_document_text(docs, document_id: str) -> str:
    """Return the full body text of a Google Doc."""
    document = docs.documents().get(documentId=document_id).execute()
    content = (document or {}).get("body", {}).get("content", [])
    return "".join(_structural_text(content)).strip()


def export_plain_text(session, file_id: str) -> Optional[str]:
    """Export *file_id* as text/plain through the raw Drive endpoint.

    Returns the body on HTTP 200, otherwise logs and returns ``None``.
    """
    url = DRIVE_EXPORT_URL.format(file_id=file_id)
    response = session.get(url, params={"mimeType": "text/plain"})
    if response.status_code == 200:
        return response.text
    log.warning(
        "Export of %s failed: HTTP %s %s",
        file_id,
        response.status_code,
        (response.text or "")[:500],
    )
    return None


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_text(
    source: SourceFile,
    *,
    drive,
    docs,
    session,
    folder_id: Optional[str] = None,
    ocr_language: str = "en",
    conversion_wait_s: float = 8.0,
    fallback_wait_s: float = 5.0,
    sleep: Sleep = time.sleep,
) -> Optional[str]:
    """OCR a PDF from Drive and return its text, or ``None``.

    Raises whatever the Drive/Docs clients raise outside cleanup; transient
    copies are trashed before any exception leaves this function.
    """
    if source.mime_type != PDF_MIME:
        log.warning(
            "extract_text: %s is %s, not a PDF; skipping",
            source.name,
            source.mime_type or "unknown",
        )
        return None

    artifacts: list[str] = []
    t0 = time.time()
    try:
        content = download_pdf_bytes(drive, source.id)
        artifact_id = create_ocr_copy(
            drive,
            source,
            content,
            folder_id=folder_id,
            ocr_language=ocr_language,
        )
        if not artifact_id:
            log.warning("extract_text: conversion of %s returned no file", source.name)
            return None
        artifacts.append(artifact_id)

        mime = wait_for_conversion(drive, artifact_id, conversion_wait_s, sleep=sleep)
        if mime == GDOC_MIME:
            log.debug("extract_text: reading Doc body of %s", artifact_id)
            return read_document_text(docs, artifact_id) or None

        text = export_plain_text(session, artifact_id)
        if text is not None:
            return text.strip() or None

        log.info("extract_text: trying alternate conversion for %s", source.name)
        second_id = create_converted_copy(
            drive,
            source,
            folder_id=folder_id,
            ocr_language=ocr_language,
        )
        if not second_id:
            return None
        artifacts.append(second_id)
        mime = wait_for_conversion(drive, second_id, fallback_wait_s, sleep=sleep)
        text = read_document_text(docs, second_id) if mime == GDOC_MIME else ""
        artifacts.remove(second_id)
        trash_file(drive, second_id)
        return text or None
    finally:
        for artifact_id in artifacts:
            trash_file(drive, artifact_id)
        log.debug(
            "extract_text: DONE - %s in %.2fs", source.name, time.time() - t0
        )

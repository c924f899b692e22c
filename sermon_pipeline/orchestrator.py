"""Per-run pipeline: Drive folder -> OCR -> Gemini -> Sheets ledger."""

from __future__ import annotations

import logging
import time
from typing import Optional

from tqdm import tqdm

from .config import PipelineConfig
from .conversion import extract_text, trash_file
from .ledger import append_record, read_processed_links
from .metadata import extract_metadata
from .models import RunSummary, SourceFile
from .sources import Services, list_drive_pdfs
from .utils import TEMP_PREFIX, TRANSIENT_TAG

log = logging.getLogger(__name__)


def _process_one(
    source: SourceFile,
    config: PipelineConfig,
    services: Services,
    *,
    sleep,
    ai_session,
) -> bool:
    """Run one file through the pipeline. Returns True when a row was added."""
    text = extract_text(
        source,
        drive=services.drive,
        docs=services.docs,
        session=services.session,
        folder_id=config.folder_id,
        ocr_language=config.ocr_language,
        conversion_wait_s=config.conversion_wait_s,
        fallback_wait_s=config.fallback_wait_s,
        sleep=sleep,
    )
    if not text or len(text) < config.min_text_length:
        log.warning(
            "%s: extracted text too short (%s chars); skipping",
            source.name,
            len(text or ""),
        )
        return False

    record = extract_metadata(
        text,
        api_key=config.gemini_api_key,
        model=config.gemini_model,
        session=ai_session,
        timeout=config.ai_timeout_s,
    )
    if record is None:
        log.warning("%s: no metadata extracted; skipping", source.name)
        return False

    append_record(
        services.sheets,
        config.spreadsheet_id,
        config.sheet_name,
        source,
        record,
    )
    log.info("%s: logged '%s' (%s)", source.name, record.title, record.speaker)
    return True


def process_new_files(
    config: PipelineConfig,
    services: Services,
    *,
    sleep=time.sleep,
    ai_session=None,
    dry_run: bool = False,
    limit: Optional[int] = None,
    show_progress: bool = True,
) -> RunSummary:
    """Process every PDF in the folder that the ledger does not list yet.

    Failures are isolated per file; the run always completes and reports
    how many files were attempted.
    """
    t0 = time.perf_counter()
    summary = RunSummary()

    log.info("Listing PDFs in folder: %s", config.folder_id)
    files = list_drive_pdfs(services.drive, config.folder_id)
    summary.listed = len(files)
    processed = read_processed_links(
        services.sheets, config.spreadsheet_id, config.sheet_name
    )
    log.info("Found %s PDFs, %s already in ledger", len(files), len(processed))

    for source in tqdm(files, desc="Processing", disable=not show_progress):
        if source.is_transient:
            summary.skipped_transient += 1
            continue
        if source.url in processed:
            summary.skipped_processed += 1
            continue
        if limit is not None and summary.attempted >= limit:
            log.info("Attempt limit %s reached; stopping", limit)
            break

        summary.attempted += 1
        if dry_run:
            log.info("[dry-run] would process %s", source.name)
            continue

        log.info("Processing %s", source.name)
        try:
            added = _process_one(
                source, config, services, sleep=sleep, ai_session=ai_session
            )
        except Exception as exc:
            summary.failed += 1
            log.exception("%s: failed with %s", source.name, exc)
            continue
        if added:
            summary.appended += 1
            summary.appended_urls.append(source.url)
            processed.add(source.url)
        else:
            summary.failed += 1

    log.info(
        "Run complete: attempted=%s appended=%s failed=%s in %.1fs",
        summary.attempted,
        summary.appended,
        summary.failed,
        time.perf_counter() - t0,
    )
    return summary


def sweep_transient_artifacts(drive, folder_id: str) -> int:
    """Trash converted copies left in *folder_id* by interrupted runs."""
    query = (
        f"'{folder_id}' in parents and trashed=false "
        f"and (name contains '{TEMP_PREFIX}' "
        f"or appProperties has {{ key='{TRANSIENT_TAG}' and value='1' }})"
    )
    trashed = 0
    page_token = None
    while True:
        response = (
            drive.files()
            .list(
                q=query,
                spaces="drive",
                fields="nextPageToken, files(id, name, mimeType, appProperties)",
                pageToken=page_token,
                pageSize=100,
            )
            .execute()
        )
        for item in response.get("files", []):
            leftover = SourceFile.from_drive(item)
            if leftover.is_transient and trash_file(drive, leftover.id):
                trashed += 1
        page_token = response.get("nextPageToken")
        if not page_token:
            break
    log.info("Swept %s transient artifacts from %s", trashed, folder_id)
    return trashed

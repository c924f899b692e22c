"""Google Sheets ledger: one row per processed document."""

from __future__ import annotations

import logging

from .models import MetadataRecord, SourceFile
from .utils import KEY_COLUMN, column_letter, sheet_range

log = logging.getLogger(__name__)


def read_processed_links(
    sheets,
    spreadsheet_id: str,
    tab_name: str,
    key_column: int = KEY_COLUMN,
) -> set[str]:
    """Return the non-empty values of the key column, skipping the header row."""
    letter = column_letter(key_column)
    response = (
        sheets.spreadsheets()
        .values()
        .get(
            spreadsheetId=spreadsheet_id,
            range=sheet_range(tab_name, f"{letter}2:{letter}"),
        )
        .execute()
    )
    links: set[str] = set()
    for row in response.get("values", []):
        if not row:
            continue
        value = str(row[0]).strip()
        if value:
            links.add(value)
    log.debug("Ledger %s has %s recorded links", tab_name, len(links))
    return links


def build_row(source: SourceFile, record: MetadataRecord) -> list[str]:
    """Lay out a ledger row. Blank cells are reserved for manual entry."""
    row = [
        record.date or "",
        record.speaker or "",
        "",
        "",
        "",
        record.title or "",
        record.theme or "",
        "",
        ", ".join(record.references or []),
        source.url,
        "",
        "",
    ]
    return row


def append_record(
    sheets,
    spreadsheet_id: str,
    tab_name: str,
    source: SourceFile,
    record: MetadataRecord,
) -> list[str]:
    """Append one row for *source*. Append only, no upsert."""
    row = build_row(source, record)
    (
        sheets.spreadsheets()
        .values()
        .append(
            spreadsheetId=spreadsheet_id,
            range=sheet_range(tab_name, "A1"),
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": [row]},
        )
        .execute()
    )
    return row

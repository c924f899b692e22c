"""Cross-cutting helpers: constants, sheet addressing, response cleanup."""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PDF_MIME = "application/pdf"
GDOC_MIME = "application/vnd.google-apps.document"

TEMP_PREFIX = "TEMP_OCR_"
TRANSIENT_TAG = "sermon_pipeline_transient"

MIN_TEXT_LENGTH = 50

# 1-based position of the source URL in a ledger row (column J)
KEY_COLUMN = 10
ROW_WIDTH = 12

DRIVE_EXPORT_URL = "https://www.googleapis.com/drive/v3/files/{file_id}/export"
GEMINI_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "{model}:generateContent"
)

_OPEN_FENCE_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CLOSE_FENCE_RE = re.compile(r"\s*```$")


# ---------------------------------------------------------------------------
# Sheet addressing
# ---------------------------------------------------------------------------


def column_letter(index: int) -> str:
    """Convert a 1-based column index to A1 notation (1 -> A, 27 -> AA)."""
    if index < 1:
        raise ValueError(f"Column index must be >= 1, got {index}")
    letters = ""
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def sheet_range(tab_name: str, cells: str) -> str:
    """Quote *tab_name* for A1 notation: ``'My Tab'!A1``."""
    escaped = tab_name.replace("'", "''")
    return f"'{escaped}'!{cells}"


# ---------------------------------------------------------------------------
# Model output
# ---------------------------------------------------------------------------


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```` ``` ```` or ```` ```json ````) and trim."""
    text = text.strip()
    text = _OPEN_FENCE_RE.sub("", text)
    return _CLOSE_FENCE_RE.sub("", text).strip()

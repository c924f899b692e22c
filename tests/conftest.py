"""Shared fixtures for the pipeline test suite.

The Google discovery clients are replaced by small in-memory fakes that
mirror their chained ``resource().method(...).execute()`` call style.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from sermon_pipeline import PipelineConfig, Services
from sermon_pipeline.utils import GDOC_MIME, PDF_MIME

# ---------------------------------------------------------------------------
# Configure verbose logging for test debugging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)

LONG_TEXT = (
    "The Good Shepherd. Preached by Pastor Jane Doe on 12 March 2023. "
    "Text: John 10:11 and Psalm 23:1."
)


class FakeRequest:
    def __init__(self, result: Any = None, error: Exception | None = None):
        self._result = result
        self._error = error

    def execute(self):
        if self._error is not None:
            raise self._error
        if callable(self._result):
            return self._result()
        return self._result


@dataclass
class FakeResponse:
    status_code: int = 200
    text: str = ""


# ---------------------------------------------------------------------------
# Drive
# ---------------------------------------------------------------------------


class FakeDrive:
    """Drive v3 ``files()`` resource backed by dicts."""

    def __init__(self, listing: list[dict[str, Any]] | None = None):
        self.listing = list(listing or [])
        self.page_size: int | None = None
        self.mime_by_id: dict[str, str] = {}
        self.created: list[dict[str, Any]] = []
        self.copied: list[dict[str, Any]] = []
        self.trashed: list[str] = []
        self.fail_trash: set[str] = set()
        self.create_result: Callable[[int], dict[str, Any]] = (
            lambda n: {"id": f"tmp-{n}", "mimeType": GDOC_MIME}
        )
        self.copy_result: Callable[[int], dict[str, Any]] = (
            lambda n: {"id": f"copy-{n}", "mimeType": GDOC_MIME}
        )
        self.create_error: Exception | None = None
        self.list_queries: list[str] = []

    def files(self):
        return self

    def list(self, q, pageToken=None, pageSize=100, **kwargs):
        self.list_queries.append(q)
        items = self.listing
        size = self.page_size or len(items) or 1
        start = int(pageToken or 0)
        page = {"files": items[start : start + size]}
        if start + size < len(items):
            page["nextPageToken"] = str(start + size)
        return FakeRequest(page)

    def create(self, body, media_body=None, **kwargs):
        if self.create_error is not None:
            return FakeRequest(error=self.create_error)
        result = self.create_result(len(self.created) + 1)
        self.created.append({"body": body, "kwargs": kwargs, "result": result})
        if result and result.get("id"):
            self.mime_by_id.setdefault(result["id"], result.get("mimeType", ""))
        return FakeRequest(result)

    def copy(self, fileId, body, **kwargs):
        result = self.copy_result(len(self.copied) + 1)
        self.copied.append({"fileId": fileId, "body": body, "result": result})
        if result and result.get("id"):
            self.mime_by_id.setdefault(result["id"], result.get("mimeType", ""))
        return FakeRequest(result)

    def get(self, fileId, fields=None):
        return FakeRequest(lambda: {"mimeType": self.mime_by_id.get(fileId, "")})

    def update(self, fileId, body):
        def _apply():
            if fileId in self.fail_trash:
                raise RuntimeError(f"trash refused for {fileId}")
            if body.get("trashed"):
                self.trashed.append(fileId)
            return {"id": fileId}

        return FakeRequest(_apply)


# ---------------------------------------------------------------------------
# Docs
# ---------------------------------------------------------------------------


def doc_body(text: str) -> dict[str, Any]:
    return {
        "body": {
            "content": [
                {"paragraph": {"elements": [{"textRun": {"content": text}}]}},
            ]
        }
    }


class FakeDocs:
    def __init__(self, texts: dict[str, str] | None = None, default: str = ""):
        self.texts = dict(texts or {})
        self.default = default
        self.read: list[str] = []
        self.error: Exception | None = None

    def documents(self):
        return self

    def get(self, documentId):
        self.read.append(documentId)
        if self.error is not None:
            return FakeRequest(error=self.error)
        return FakeRequest(doc_body(self.texts.get(documentId, self.default)))


# ---------------------------------------------------------------------------
# Sheets
# ---------------------------------------------------------------------------


class FakeSheets:
    """Sheets v4 ``spreadsheets().values()`` with a header row plus data."""

    def __init__(self, rows: list[list[str]] | None = None):
        self.header = [f"col{i}" for i in range(1, 13)]
        self.rows: list[list[str]] = [list(r) for r in rows or []]
        self.appended: list[list[str]] = []
        self.get_ranges: list[str] = []

    def spreadsheets(self):
        return self

    def values(self):
        return self

    def get(self, spreadsheetId, range):
        self.get_ranges.append(range)
        values = [[r[9]] if len(r) > 9 and r[9] != "" else [] for r in self.rows]
        while values and not values[-1]:
            values.pop()
        return FakeRequest({"values": values} if values else {})

    def append(self, spreadsheetId, range, valueInputOption, insertDataOption, body):
        def _apply():
            for row in body["values"]:
                self.rows.append(list(row))
                self.appended.append(list(row))
            return {"updates": {"updatedRows": len(body["values"])}}

        return FakeRequest(_apply)


# ---------------------------------------------------------------------------
# HTTP sessions
# ---------------------------------------------------------------------------


class FakeExportSession:
    def __init__(self, response: FakeResponse | None = None):
        self.response = response or FakeResponse(403, '{"error": "forbidden"}')
        self.calls: list[tuple[str, dict]] = []

    def get(self, url, params=None, **kwargs):
        self.calls.append((url, params or {}))
        return self.response


def gemini_envelope(generated: str) -> str:
    return json.dumps({"candidates": [{"content": {"parts": [{"text": generated}]}}]})


class FakeGemini:
    def __init__(self, generated: dict[str, Any] | str | None = None, status: int = 200):
        if generated is None:
            generated = {
                "date": "12 March 2023",
                "speaker": "Jane Doe",
                "title": "The Good Shepherd",
                "theme": "Care",
                "references": ["John 10:11", "Psalm 23:1"],
            }
        if not isinstance(generated, str):
            generated = "```json\n" + json.dumps(generated) + "\n```"
        self.body = gemini_envelope(generated) if status == 200 else generated
        self.status = status
        self.calls: list[dict[str, Any]] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        return FakeResponse(self.status, self.body)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def pdf_item(file_id: str, name: str | None = None, **extra) -> dict[str, Any]:
    item = {
        "id": file_id,
        "name": name or f"{file_id}.pdf",
        "mimeType": PDF_MIME,
        "webViewLink": f"https://drive.google.com/file/d/{file_id}/view",
    }
    item.update(extra)
    return item


@pytest.fixture(autouse=True)
def fake_download(monkeypatch):
    monkeypatch.setattr(
        "sermon_pipeline.conversion.download_pdf_bytes",
        lambda drive, file_id: b"%PDF-1.4 fake",
    )


@pytest.fixture
def sleeps() -> list[float]:
    """Records requested sleeps; pass ``sleeps.append`` as the sleep hook."""
    return []


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig(
        folder_id="folder-1",
        spreadsheet_id="sheet-1",
        gemini_api_key="test-key",
        gemini_model="gemini-test",
        sheet_name="Ledger",
    )


@pytest.fixture
def drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
def docs() -> FakeDocs:
    return FakeDocs(default=LONG_TEXT)


@pytest.fixture
def sheets() -> FakeSheets:
    return FakeSheets()


@pytest.fixture
def export_session() -> FakeExportSession:
    return FakeExportSession()


@pytest.fixture
def services(drive, docs, sheets, export_session) -> Services:
    return Services(drive=drive, docs=docs, sheets=sheets, session=export_session)

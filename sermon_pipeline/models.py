"""Shared data models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .utils import TRANSIENT_TAG, TEMP_PREFIX


@dataclass
class SourceFile:
    """A PDF in the source Drive folder."""

    id: str
    name: str
    mime_type: str = ""
    url: str = ""
    app_properties: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_drive(cls, item: dict[str, Any]) -> "SourceFile":
        """Build from a ``files.list`` / ``files.get`` resource."""
        file_id = item["id"]
        return cls(
            id=file_id,
            name=item.get("name", ""),
            mime_type=item.get("mimeType", ""),
            url=item.get("webViewLink")
            or f"https://drive.google.com/file/d/{file_id}/view",
            app_properties=dict(item.get("appProperties") or {}),
        )

    @property
    def is_transient(self) -> bool:
        """True for converted copies left behind by an earlier run."""
        if self.app_properties.get(TRANSIENT_TAG) == "1":
            return True
        return self.name.startswith(TEMP_PREFIX)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v is not None)
    return str(value)


@dataclass
class MetadataRecord:
    """Structured fields the model extracted from a document."""

    date: str = ""
    speaker: str = ""
    title: str = ""
    theme: str = ""
    references: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetadataRecord":
        refs = data.get("references")
        if refs is None:
            references: list[str] = []
        elif isinstance(refs, str):
            references = [refs] if refs.strip() else []
        elif not isinstance(refs, (list, tuple)):
            raise TypeError(f"references must be a list, got {type(refs).__name__}")
        else:
            references = [str(r) for r in refs if r is not None and str(r).strip()]
        return cls(
            date=_as_text(data.get("date")),
            speaker=_as_text(data.get("speaker")),
            title=_as_text(data.get("title")),
            theme=_as_text(data.get("theme")),
            references=references,
        )


@dataclass
class RunSummary:
    """Counters reported at the end of a run."""

    listed: int = 0
    skipped_transient: int = 0
    skipped_processed: int = 0
    attempted: int = 0
    appended: int = 0
    failed: int = 0
    appended_urls: list[str] = field(default_factory=list)

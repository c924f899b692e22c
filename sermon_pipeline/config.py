"""Run configuration, supplied through environment variables or CLI flags."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from .utils import MIN_TEXT_LENGTH

ENV_PREFIX = "SERMON_"

DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_SHEET = "Sheet1"


@dataclass(frozen=True)
class PipelineConfig:
    """Everything one run needs to know about its external collaborators."""

    folder_id: str = ""
    spreadsheet_id: str = ""
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_MODEL
    sheet_name: str = DEFAULT_SHEET
    ocr_language: str = "en"
    conversion_wait_s: float = 8.0
    fallback_wait_s: float = 5.0
    min_text_length: int = MIN_TEXT_LENGTH
    ai_timeout_s: float = 120.0
    credentials_file: Path = Path("credentials.json")
    token_file: Path = Path("token.json")
    service_account_file: Optional[Path] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PipelineConfig":
        """Read ``SERMON_<FIELD>`` variables, e.g. ``SERMON_FOLDER_ID``.

        ``GEMINI_API_KEY`` is accepted as a fallback for the API key.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            values[f.name] = _coerce(f.name, raw)
        if "gemini_api_key" not in values and env.get("GEMINI_API_KEY"):
            values["gemini_api_key"] = env["GEMINI_API_KEY"]
        return cls(**values)

    def merged(self, **overrides: Any) -> "PipelineConfig":
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def validate(self) -> "PipelineConfig":
        missing = [
            name
            for name in ("folder_id", "spreadsheet_id", "gemini_api_key")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                "Missing required settings: "
                + ", ".join(f"{n} ({ENV_PREFIX}{n.upper()})" for n in missing)
            )
        if self.conversion_wait_s < 0 or self.fallback_wait_s < 0:
            raise ValueError("Conversion waits must be non-negative")
        return self


def _coerce(name: str, raw: str) -> Any:
    if name in ("conversion_wait_s", "fallback_wait_s", "ai_timeout_s"):
        return float(raw)
    if name == "min_text_length":
        return int(raw)
    if name in ("credentials_file", "token_file", "service_account_file"):
        return Path(raw)
    return raw

"""Structured metadata extraction with the Gemini REST API."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import requests

from .models import MetadataRecord
from .utils import GEMINI_URL, strip_code_fences

log = logging.getLogger(__name__)

PROMPT_TEMPLATE = """\
You are cataloguing sermon documents. From the text below, extract:
- date: the date the sermon was preached, as written in the document
- speaker: the name of the preacher
- title: the sermon title
- theme: the single primary theme, as a short phrase
- references: every scripture reference cited, in canonical form \
"Book Chapter:Verse" (for example "John 3:16" or "Romans 8:28-30")

Respond with a strict JSON object with exactly these keys: "date", "speaker",
"title", "theme", "references" (an array of strings). Use an empty string or
an empty array when a value is not present. Do not include any prose,
explanation or markdown formatting.

Document text:
{text}
"""


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(text=text)


def build_request_body(text: str) -> dict[str, Any]:
    return {"contents": [{"parts": [{"text": build_prompt(text)}]}]}


def parse_response(body: str) -> Optional[MetadataRecord]:
    """Parse a ``generateContent`` response body into a record.

    Returns ``None`` (after logging the raw body) when either the envelope
    or the generated JSON cannot be parsed.
    """
    try:
        envelope = json.loads(body)
        generated = envelope["candidates"][0]["content"]["parts"][0]["text"]
        data = json.loads(strip_code_fences(generated))
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return MetadataRecord.from_dict(data)
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        log.error("Could not parse model response (%s). Raw body: %s", exc, body)
        return None


def extract_metadata(
    text: str,
    *,
    api_key: str,
    model: str,
    session: Optional[requests.Session] = None,
    timeout: float = 120.0,
) -> Optional[MetadataRecord]:
    """Send *text* to Gemini once and return the extracted metadata."""
    http = session if session is not None else requests
    url = GEMINI_URL.format(model=model)
    resp = http.post(
        url,
        params={"key": api_key},
        headers={"Content-Type": "application/json; charset=utf-8"},
        json=build_request_body(text),
        timeout=timeout,
    )
    if resp.status_code != 200:
        log.error("Gemini request failed: HTTP %s %s", resp.status_code, resp.text)
        return None
    return parse_response(resp.text)

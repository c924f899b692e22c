"""Scanned PDF -> OCR -> Gemini metadata -> Sheets ledger pipeline.

Public API -- all symbols that tests and external code import live here.
Internally the code is split across focused submodules; this file
re-exports the stable public surface so ``from sermon_pipeline import X`` works.
"""

from .config import PipelineConfig
from .conversion import (
    export_plain_text,
    extract_text,
    read_document_text,
    trash_file,
    wait_for_conversion,
)
from .ledger import append_record, build_row, read_processed_links
from .metadata import build_prompt, extract_metadata, parse_response
from .models import MetadataRecord, RunSummary, SourceFile
from .orchestrator import process_new_files, sweep_transient_artifacts
from .sources import (
    Services,
    authenticate,
    build_services,
    download_pdf_bytes,
    list_drive_pdfs,
)
from .utils import (
    KEY_COLUMN,
    MIN_TEXT_LENGTH,
    TEMP_PREFIX,
    column_letter,
    strip_code_fences,
)

__all__ = [
    # Models
    "SourceFile",
    "MetadataRecord",
    "RunSummary",
    "PipelineConfig",
    # Constants
    "TEMP_PREFIX",
    "MIN_TEXT_LENGTH",
    "KEY_COLUMN",
    # Utils
    "column_letter",
    "strip_code_fences",
    # Sources
    "Services",
    "authenticate",
    "build_services",
    "list_drive_pdfs",
    "download_pdf_bytes",
    # OCR
    "extract_text",
    "wait_for_conversion",
    "read_document_text",
    "export_plain_text",
    "trash_file",
    # Metadata
    "build_prompt",
    "extract_metadata",
    "parse_response",
    # Ledger
    "read_processed_links",
    "build_row",
    "append_record",
    # Orchestration
    "process_new_files",
    "sweep_transient_artifacts",
]

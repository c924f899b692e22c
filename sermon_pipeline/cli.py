"""CLI entrypoint: process new PDFs from Drive into the Sheets ledger.

Usage:
    python -m sermon_pipeline
    python -m sermon_pipeline --folder-id <DRIVE_FOLDER_ID> --spreadsheet-id <SHEET_ID>
    python -m sermon_pipeline --dry-run
    python -m sermon_pipeline --sweep-artifacts

Settings not given as flags are read from ``SERMON_*`` environment variables.
"""

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import PipelineConfig

log = logging.getLogger(__name__)


def _setup_logging(
    *,
    verbose: bool,
    detailed_logging: bool,
    log_file: Path | None,
) -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    root_level = logging.DEBUG if verbose else logging.INFO
    root_logger.setLevel(root_level)

    console_fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    detailed_fmt = (
        "%(asctime)s | %(levelname)-8s | %(name)s | "
        "%(filename)s:%(lineno)d | %(message)s"
    )
    formatter = logging.Formatter(
        detailed_fmt if detailed_logging else console_fmt,
        "%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(root_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    resolved_log_file = log_file
    if resolved_log_file is None and detailed_logging:
        resolved_log_file = Path("logs") / "sermon_pipeline.log"

    if resolved_log_file is not None:
        resolved_log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            resolved_log_file,
            maxBytes=20 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(detailed_fmt, "%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("google_auth_oauthlib").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Scanned PDFs (Drive) -> OCR -> Gemini -> Sheets ledger"
    )
    parser.add_argument("--folder-id", help="Google Drive folder ID containing PDFs")
    parser.add_argument("--spreadsheet-id", help="Ledger spreadsheet ID")
    parser.add_argument("--sheet-name", help="Ledger tab name (default: Sheet1)")
    parser.add_argument("--model", dest="gemini_model", help="Gemini model name")
    parser.add_argument(
        "--api-key",
        dest="gemini_api_key",
        help="Gemini API key (prefer SERMON_GEMINI_API_KEY)",
    )
    parser.add_argument(
        "--credentials",
        dest="credentials_file",
        type=Path,
        help="Google OAuth2 credentials file (default: credentials.json)",
    )
    parser.add_argument(
        "--token",
        dest="token_file",
        type=Path,
        help="OAuth2 token cache (default: token.json)",
    )
    parser.add_argument(
        "--service-account",
        dest="service_account_file",
        type=Path,
        help="Service-account key file; skips the OAuth flow",
    )
    parser.add_argument(
        "--conversion-wait",
        dest="conversion_wait_s",
        type=float,
        help="Seconds to wait for OCR conversion (default: 8)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the files that would be processed without changing anything",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Process at most this many new files",
    )
    parser.add_argument(
        "--sweep-artifacts",
        action="store_true",
        help="Trash leftover OCR copies from interrupted runs, then exit",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--detailed-logging",
        action="store_true",
        help="Enable detailed logging (file/line, rotating log file)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional log file path (default: logs/sermon_pipeline.log in detailed mode)",
    )
    args = parser.parse_args(argv)
    if args.limit is not None and args.limit < 1:
        parser.error("--limit must be at least 1")
    return args


def load_config(args: argparse.Namespace) -> PipelineConfig:
    """Environment settings overridden by any flags given on the command line."""
    return PipelineConfig.from_env().merged(
        folder_id=args.folder_id,
        spreadsheet_id=args.spreadsheet_id,
        sheet_name=args.sheet_name,
        gemini_model=args.gemini_model,
        gemini_api_key=args.gemini_api_key,
        credentials_file=args.credentials_file,
        token_file=args.token_file,
        service_account_file=args.service_account_file,
        conversion_wait_s=args.conversion_wait_s,
    )


def main(argv: list[str] | None = None) -> None:
    """Process new files and print a summary."""
    from .orchestrator import process_new_files, sweep_transient_artifacts
    from .sources import authenticate, build_services

    args = parse_args(argv)
    _setup_logging(
        verbose=args.verbose,
        detailed_logging=args.detailed_logging,
        log_file=args.log_file,
    )

    config = load_config(args)
    try:
        if args.sweep_artifacts and not config.folder_id:
            raise ValueError("Missing required settings: folder_id (SERMON_FOLDER_ID)")
        if not args.sweep_artifacts:
            config.validate()
    except ValueError as exc:
        log.error("%s", exc)
        raise SystemExit(2) from exc

    log.info("Authenticating with Google...")
    creds = authenticate(
        config.credentials_file,
        config.token_file,
        config.service_account_file,
    )
    services = build_services(creds)

    if args.sweep_artifacts:
        count = sweep_transient_artifacts(services.drive, config.folder_id)
        print(f"Trashed {count} leftover OCR copies.")
        return

    summary = process_new_files(
        config,
        services,
        dry_run=args.dry_run,
        limit=args.limit,
        show_progress=not args.no_progress,
    )

    log.info("=" * 60)
    log.info("RUN COMPLETE")
    log.info(f"  PDFs listed:        {summary.listed}")
    log.info(f"  Skipped (temp):     {summary.skipped_transient}")
    log.info(f"  Skipped (logged):   {summary.skipped_processed}")
    log.info(f"  Attempted:          {summary.attempted}")
    log.info(f"  Rows appended:      {summary.appended}")
    log.info(f"  Failed / skipped:   {summary.failed}")
    verb = "would be processed" if args.dry_run else "attempted"
    print(f"Processing complete. {summary.attempted} new file(s) {verb}.")

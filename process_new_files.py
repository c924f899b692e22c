"""CLI shim -- delegates to sermon_pipeline.cli.main().

Usage:
    python process_new_files.py
    python process_new_files.py --folder-id <DRIVE_FOLDER_ID> --spreadsheet-id <SHEET_ID>
"""

from sermon_pipeline.cli import main

if __name__ == "__main__":
    main()

"""Command-line interface for the document store.

Exit codes:
    0  success
    1  the operation failed
    3  saved or deleted locally, but mirroring to the provider failed
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .config import get_settings
from .exceptions import DocumentSyncError
from .factory import create_document_store
from .helpers import format_bytes
from .metrics_config import METRICS_ENABLED
from .store import DocumentStore

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_SYNC_FAILED = 3


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="document-sync", description="Document Sync store")
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Print the active configuration and exit",
    )
    sub = parser.add_subparsers(dest="command")

    save = sub.add_parser("save", help="Save a file")
    save.add_argument("name")
    source = save.add_mutually_exclusive_group(required=True)
    source.add_argument("--content", help="File content")
    source.add_argument("--from-file", type=Path, help="Read content from this path")

    sub.add_parser("load", help="Print a file's content").add_argument("name")

    listing = sub.add_parser("list", help="List files and conflicts")
    listing.add_argument("--json", action="store_true", help="Print the listing as JSON")

    sub.add_parser("delete", help="Delete a file").add_argument("name")
    sub.add_parser("clear", help="Remove all local files")
    sub.add_parser("info", help="Show storage usage")
    sub.add_parser("exists", help="Exit 0 if the file exists, 1 otherwise").add_argument("name")
    sub.add_parser("show", help="Show a file's metadata").add_argument("name")
    sub.add_parser("upload-local", help="Upload a local-only file to the provider").add_argument("name")
    sub.add_parser("discard-local", help="Discard a local-only file").add_argument("name")
    return parser


def _print_config() -> None:
    settings = get_settings()
    print(f"Store directory: {settings.document_store_path}")
    print(f"Storage key: {settings.storage_key}")
    print(f"Limits: {format_bytes(settings.max_file_size)} per file, {format_bytes(settings.max_total_size)} total")
    print(f"Cloud provider: {settings.cloud_provider}")
    configured = {
        "dropbox": settings.dropbox_configured,
        "googleDrive": settings.google_drive_configured,
        "gcs": settings.gcs_configured,
        "local": settings.mirror_configured,
    }
    for name, ready in configured.items():
        print(f"  {name}: {'configured' if ready else 'not configured'}")
    print(f"Log level: {settings.log_level}")
    print(f"Metrics: {'enabled' if METRICS_ENABLED else 'disabled'}")


async def _run(store: DocumentStore, args: argparse.Namespace) -> int:
    command = args.command

    if command == "save":
        content = args.content if args.content is not None else args.from_file.read_text(encoding="utf-8")
        result = await store.save_file(args.name, content)
        if result.sync_error is not None:
            print(f"Saved {args.name} locally, but sync failed: {result.sync_error.user_message}", file=sys.stderr)
            return EXIT_SYNC_FAILED
        where = f" (synced to {result.file.synced_provider.value})" if result.file.synced_provider else ""
        print(f"Saved {args.name}, {format_bytes(result.file.size)}{where}")
        return EXIT_OK

    if command == "load":
        sys.stdout.write(await store.load_file(args.name))
        return EXIT_OK

    if command == "list":
        result = await store.list_files()
        if args.json:
            payload = {
                "files": [f.model_dump(mode="json", by_alias=True, exclude={"content"}) for f in result.files],
                "conflicts": [f.name for f in result.conflicts],
            }
            print(json.dumps(payload, indent=2))
            return EXIT_OK

        for f in result.files:
            tag = f.synced_provider.value if f.synced_provider else "local"
            print(f"{f.name}\t{format_bytes(f.size)}\t{tag}")
        if result.has_conflicts:
            print("\nOnly stored locally (upload-local or discard-local to resolve):")
            for f in result.conflicts:
                print(f"  {f.name}")
        return EXIT_OK

    if command == "delete":
        result = await store.delete_file(args.name)
        if result.sync_error is not None:
            print(
                f"Deleted {args.name} locally, but remote delete failed: {result.sync_error.user_message}",
                file=sys.stderr,
            )
            return EXIT_SYNC_FAILED
        print(f"Deleted {args.name}")
        return EXIT_OK

    if command == "clear":
        await store.clear_all()
        print("Cleared all local files")
        return EXIT_OK

    if command == "info":
        info = await store.get_storage_info()
        print(f"Files: {info.file_count}")
        print(f"Used: {format_bytes(info.used)} of {format_bytes(info.total)}")
        print(f"Available: {format_bytes(info.available)}")
        return EXIT_OK

    if command == "exists":
        return EXIT_OK if await store.file_exists(args.name) else EXIT_FAILED

    if command == "show":
        stored = await store.get_file_info(args.name)
        if stored is None:
            print(f'File "{args.name}" not found', file=sys.stderr)
            return EXIT_FAILED
        print(stored.model_dump_json(by_alias=True, exclude={"content"}, indent=2))
        return EXIT_OK

    if command == "upload-local":
        stored = await store.get_file_info(args.name)
        if stored is None:
            print(f'File "{args.name}" not found', file=sys.stderr)
            return EXIT_FAILED
        await store.upload_local_only_file(stored)
        print(f"Uploaded {args.name}")
        return EXIT_OK

    if command == "discard-local":
        await store.discard_local_only_file(args.name)
        print(f"Discarded {args.name}")
        return EXIT_OK

    raise ValueError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    """Run the command-line interface and return the exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.check_config:
        _print_config()
        return EXIT_OK

    if args.command is None:
        parser.print_help()
        return EXIT_FAILED

    store = create_document_store()
    try:
        return asyncio.run(_run(store, args))
    except DocumentSyncError as e:
        print(f"Error: {e.user_message}", file=sys.stderr)
        return EXIT_FAILED
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())

"""Command line for listing, backing up and restoring the catalog."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .catalog_store import CatalogStore
from .changes import PendingChanges
from .config_loader import load_app_config
from .exporter import BackupExporter
from .query import filter_records, preview
from .reconciler import ImportFormatError, ImportMode, parse_candidates, reconcile
from .storage import create_snapshot_store

LOGGER = logging.getLogger("quickassist.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the QuickAssist canned-response catalog.")
    parser.add_argument("--config", type=Path, default=None, help="Path to app.config.yaml")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="Print responses, optionally filtered")
    list_cmd.add_argument("-q", "--query", default="", help="Case-insensitive search term")

    export_cmd = sub.add_parser("export", help="Write a dated JSON backup")
    export_cmd.add_argument("--output", type=Path, default=None, help="Directory for the backup file")

    import_cmd = sub.add_parser("import", help="Merge or replace from a JSON backup")
    import_cmd.add_argument("file", type=Path)
    import_cmd.add_argument("--mode", choices=[mode.value for mode in ImportMode], default=ImportMode.MERGE.value)
    import_cmd.add_argument("--yes", action="store_true", help="Confirm a destructive replace")
    return parser


def _open_store(config_path: Path | None) -> tuple[CatalogStore, Path]:
    config = load_app_config(config_path)
    snapshots = create_snapshot_store(config.storage.backend, config.resolve(config.storage.path))
    store = CatalogStore(snapshots, key=config.storage.key)
    store.load()
    return store, config.resolve(config.exports.directory)


def _cmd_list(store: CatalogStore, query: str) -> int:
    for record in filter_records(store.list(), query):
        print(f"[{record.id}] {record.title}: {preview(record.text)}")
    return 0


def _cmd_export(store: CatalogStore, output: Path) -> int:
    path = BackupExporter(output).export(store.list())
    print(f"Backup written to {path}")
    return 0


def _cmd_import(store: CatalogStore, file: Path, mode: ImportMode, confirmed: bool) -> int:
    try:
        candidates = parse_candidates(file.read_bytes())
    except ImportFormatError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    for entry in candidates.rejected:
        print(f"Skipped entry #{entry.position}: {entry.reason}", file=sys.stderr)

    if mode is ImportMode.MERGE:
        result = reconcile(store.list(), candidates.records, mode)
        store.replace(result.records)
        print(f"Backup Restored! Added {result.added} missing responses.")
        return 0

    changes = PendingChanges(store)
    change = changes.propose_replace(candidates)
    if not confirmed:
        changes.discard(change.token)
        print(f"{change.summary} Re-run with --yes to confirm; nothing was changed.")
        return 0
    changes.commit(change.token)
    print("Backup Restored! Your list has been replaced.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    store, exports_dir = _open_store(args.config)
    LOGGER.info("Catalog holds %s responses", len(store))

    if args.command == "list":
        return _cmd_list(store, args.query)
    if args.command == "export":
        return _cmd_export(store, args.output or exports_dir)
    return _cmd_import(store, args.file, ImportMode(args.mode), args.yes)


if __name__ == "__main__":
    sys.exit(main())

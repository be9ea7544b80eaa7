"""
Command-line interface for wordbook imports.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from wordbook_editor import __version__
from wordbook_editor.cleaner import clean_json_data
from wordbook_editor.editor import WordbookEditor
from wordbook_editor.exceptions import EntityNotFoundError, ParseError
from wordbook_editor.models import ImportStatus, ImportSummary
from wordbook_editor.parser import load_import_payload


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the wordbook CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wordbook",
        description="Import and inspect dictionary word data",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=Path("wordbook.db"),
        help="SQLite database file (default: wordbook.db)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Import words from a JSON or YAML file",
    )
    import_parser.add_argument(
        "file",
        type=Path,
        help="File containing an array of word entries",
    )
    import_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run every check without writing to the database",
    )
    import_parser.add_argument(
        "--source",
        type=str,
        help="Label recorded on the import batch (default: file name)",
    )
    import_parser.add_argument(
        "--clean-script",
        type=Path,
        help="Run the file through this cleaning script before importing",
    )
    import_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary as JSON",
    )
    import_parser.set_defaults(func=cmd_import)

    # history command
    history_parser = subparsers.add_parser(
        "history",
        help="List recent import batches",
    )
    history_parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of batches to show (default: 10)",
    )
    history_parser.set_defaults(func=cmd_history)

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Show the log of one import batch",
    )
    show_parser.add_argument(
        "batch_id",
        type=str,
        help="Import batch ID to show",
    )
    show_parser.add_argument(
        "--status",
        choices=[s.value for s in ImportStatus],
        help="Only show entries with this status",
    )
    show_parser.set_defaults(func=cmd_show)

    # clean command
    clean_parser = subparsers.add_parser(
        "clean",
        help="Clean a raw export file without importing it",
    )
    clean_parser.add_argument("input", type=Path, help="Raw export file")
    clean_parser.add_argument("output", type=Path, help="Where to write the cleaned JSON")
    clean_parser.add_argument(
        "--script",
        type=Path,
        required=True,
        help="Cleaning script to run",
    )
    clean_parser.set_defaults(func=cmd_clean)

    return parser


def cmd_import(args: argparse.Namespace) -> int:
    """Handle import command."""
    source = args.file
    if args.clean_script:
        if not args.file.exists():
            print(f"Error: File not found: {args.file}", file=sys.stderr)
            return 1
        result = clean_json_data(args.file.read_text(encoding="utf-8"), args.clean_script)
        if not result.success:
            print(f"Cleaning failed: {result.error}", file=sys.stderr)
            return 1
        source = result.cleaned_data

    try:
        entries = load_import_payload(source)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ParseError as e:
        line_info = f" (line {e.line})" if e.line else ""
        print(f"Parse error: {e}{line_info}", file=sys.stderr)
        return 1

    db_path = args.db
    if args.dry_run and not args.db.exists():
        # nothing is stored yet, so check against an empty in-memory store
        db_path = ":memory:"
    with WordbookEditor(db_path) as editor:
        summary = editor.import_words(
            entries,
            dry_run=args.dry_run,
            source_name=args.source or args.file.name,
        )

    if args.json:
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_summary(summary, dry_run=args.dry_run)

    return 1 if summary.failed else 0


def cmd_history(args: argparse.Namespace) -> int:
    """Handle history command."""
    with WordbookEditor(args.db) as editor:
        batches = editor.list_import_batches(limit=args.limit)

    if not batches:
        print("No import batches found.")
        return 0

    print(f"\nRecent import batches (showing {len(batches)}):\n")
    for batch in batches:
        print(f"  {batch.id}  {batch.created_at}")
        print(f"       Source: {batch.source_name or '(none)'}")
        print(
            f"       Total: {batch.total_count}  Success: {batch.success_count}  "
            f"Skipped: {batch.skipped_count}  Failed: {batch.failed_count}"
        )
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Handle show command."""
    with WordbookEditor(args.db) as editor:
        try:
            batch = editor.get_import_batch(args.batch_id)
        except EntityNotFoundError:
            print(f"Import batch {args.batch_id} not found.")
            return 1
        logs = editor.get_import_logs(args.batch_id, status=args.status)

    print(f"\nImport batch {batch.id}")
    print(f"  Source:  {batch.source_name or '(none)'}")
    print(f"  Created: {batch.created_at}")
    print(f"  Total:   {batch.total_count}")
    print(f"  Success: {batch.success_count}")
    print(f"  Skipped: {batch.skipped_count}")
    print(f"  Failed:  {batch.failed_count}")

    if logs:
        print("\nEntries:")
        for log in logs:
            print(f"  [{log.status.upper()}] {log.raw_headword}")
            if log.message:
                print(f"       {log.message}")
    return 0


def cmd_clean(args: argparse.Namespace) -> int:
    """Handle clean command."""
    if not args.input.exists():
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1

    result = clean_json_data(args.input.read_text(encoding="utf-8"), args.script)
    for line in result.logs:
        print(f"  {line}")

    if not result.success:
        print(f"\nCleaning failed: {result.error}", file=sys.stderr)
        return 1

    args.output.write_text(result.cleaned_data or "", encoding="utf-8")
    print(f"\nCleaned data written to {args.output}")
    return 0


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _print_summary(summary: ImportSummary, dry_run: bool = False) -> None:
    """Print an import summary."""
    for error in summary.errors:
        status = error.status.value.upper()
        print(f"  [{status}] #{error.index + 1} {error.headword}: {error.reason}")

    print(f"\nResults{' (dry run)' if dry_run else ''}:")
    print(f"  Total:   {summary.total}")
    print(f"  Success: {summary.success}")
    print(f"  Skipped: {summary.skipped}")
    print(f"  Failed:  {summary.failed}")

    if summary.batch_id:
        print(f"  Batch:   {summary.batch_id}")
        print(f"\nTo inspect: wordbook show {summary.batch_id}")


if __name__ == "__main__":
    sys.exit(main())

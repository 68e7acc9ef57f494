#!/usr/bin/env python3
"""
Tomekeeper - Rules Text Importer

Main entry point for Tomekeeper. Imports one species, class, subclass,
feature batch, spell or monster from pasted text, a file or a web page into
the document library.
"""

import logging
import sys
import argparse
from typing import List, Optional

from tomekeeper.config import config
from tomekeeper.database import DocumentLibrary
from tomekeeper.errors import TomekeeperError
from tomekeeper.importers import FileImporter, TextImporter, UrlImporter
from tomekeeper.models import DomainKind, ImportResult
from tomekeeper.pipeline import ImportPipeline


def setup_logging():
    """Configure logging for the application."""
    level = getattr(logging, config.get("logging.level", "INFO").upper(), logging.INFO)
    format_str = config.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = config.log_filename

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ]
    )


def print_status(level: str, message: str):
    """Status sink for the command line: log it and echo failures to stderr."""
    if level == "error":
        logging.error(message)
        print(f"Error: {message}", file=sys.stderr)
    elif level == "warning":
        logging.warning(message)
    else:
        logging.info(message)


def print_result(result: ImportResult):
    print("\n" + "=" * 60)
    if result.primary_ref:
        verb = "Updated" if result.updated else "Created"
        print(f"{verb} {result.kind}: {result.name}")
        print(f"  {result.primary_ref}")
    else:
        print(f"Created {len(result.auxiliary_refs)} {result.kind} documents")
    print("=" * 60)

    for name, ref in result.auxiliary_refs.items():
        print(f"- {name}: {ref}")

    if result.unresolved:
        print("\nCould not link (add these manually):")
        for name in result.unresolved:
            print(f"- {name}")


def run_import(args) -> int:
    settings = config.import_settings(model=args.model)

    text = None
    if not args.url:
        source = FileImporter(args.file) if args.file else TextImporter(args.text)
        try:
            text = source.get_source_text()
        except TomekeeperError as e:
            print_status("error", e.user_message)
            return 1

    with DocumentLibrary(args.library or config.library_filename) as library:
        pipeline = ImportPipeline(settings, library, status=print_status)
        try:
            with pipeline.runner:
                if args.url:
                    result = pipeline.import_url(args.kind, args.url)
                else:
                    result = pipeline.run(args.kind, text)
        except TomekeeperError:
            # Already reported through the status callback
            return 1

    print_result(result)
    return 0


def run_check(args) -> int:
    settings = config.import_settings(model=args.model)
    with DocumentLibrary(":memory:") as library:
        pipeline = ImportPipeline(settings, library, status=print_status)
        with pipeline.runner:
            reachable = pipeline.check_connection()

    print(f"Model server {settings.ollama_host}: {'reachable' if reachable else 'NOT reachable'}")
    return 0 if reachable else 1


def run_fetch(args) -> int:
    settings = config.import_settings()
    importer = UrlImporter(args.url, timeout=settings.fetch_timeout, user_agent=settings.user_agent)
    try:
        print(importer.get_source_text())
    except TomekeeperError as e:
        print_status("error", e.user_message)
        return 1
    return 0


def run_calls(args) -> int:
    with DocumentLibrary(args.library or config.library_filename) as library:
        calls = library.get_ai_calls(domain=args.kind, limit=args.limit)

    if not calls:
        print("No model calls logged.")
        return 0

    for call in calls:
        status = "ok" if call["success"] else f"failed: {call['error_message']}"
        print(f"#{call['call_id']} {call['called_at']} {call['domain']} "
              f"{call['model_name']} {call['execution_time_ms'] or 0}ms {status}")
    return 0


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Tomekeeper - Rules Text Importer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py import species --file tabaxi.txt       # Import a species from a text file
  python main.py import subclass --url https://...      # Import a subclass from a web page
  python main.py import spell --text "Fireball. ..."    # Import a spell from pasted text
  python main.py check                                  # Check the model server
  python main.py calls --limit 5                        # Show the last model calls
        """
    )

    parser.add_argument(
        "--library",
        type=str,
        help=f"Document library database (default: {config.library_filename})"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="Tomekeeper 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import one entity")
    import_parser.add_argument(
        "kind",
        choices=[kind.value for kind in DomainKind],
        help="What the text describes"
    )
    source = import_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", type=str, help="Text to import")
    source.add_argument("--file", type=str, help="File holding the text to import")
    source.add_argument("--url", type=str, help="Web page to import")
    import_parser.add_argument("--model", type=str, help="Override the configured model")

    check_parser = subparsers.add_parser("check", help="Check that the model server is reachable")
    check_parser.add_argument("--model", type=str, help="Override the configured model")

    fetch_parser = subparsers.add_parser("fetch", help="Print the text extracted from a web page")
    fetch_parser.add_argument("url", type=str)

    calls_parser = subparsers.add_parser("calls", help="Show logged model calls")
    calls_parser.add_argument("--kind", choices=[kind.value for kind in DomainKind])
    calls_parser.add_argument("--limit", type=int, default=10)

    return parser.parse_args(argv)


COMMANDS = {
    "import": run_import,
    "check": run_check,
    "fetch": run_fetch,
    "calls": run_calls,
}


def main():
    """Main entry point."""
    args = parse_arguments()
    setup_logging()

    logging.info("Tomekeeper - Rules Text Importer")

    try:
        sys.exit(COMMANDS[args.command](args))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        print("\nInterrupted.")
        sys.exit(130)


if __name__ == "__main__":
    main()

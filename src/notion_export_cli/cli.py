import argparse
import getpass
import os
import sys

from notion_export_core import __version__
from notion_export_core.config_manager import get_config_manager
from notion_export_core.credentials import FILE_TOKEN_ENV, TOKEN_V2_ENV
from notion_export_core.exceptions import (
    AuthenticationError,
    ExportTaskFailedError,
    InvalidIdentifierError,
    MissingCredentialError,
    NotionExportError,
    TransportError,
)
from notion_export_core.exporter import NotionExporter
from notion_export_core.logger import get_logger, setup_logging, summarize_for_debug

logger = get_logger(__name__)

FILE_TYPES = ("md", "csv")

DESCRIPTION = """Export a block, page or DB from Notion.so as Markdown or CSV.
The block/page is specified by its UUID or its URL, see examples below.

To download any page, one has to provide the value of the Cookie 'token_v2'
of a logged-in user on the official Notion.so website as 'NOTION_TOKEN'
environment variable or via the prompt of the command, and likewise the
Cookie 'file_token' as 'NOTION_FILE_TOKEN'.
The user needs to have at least read access to the block/page to download."""

EXAMPLES = """examples:
  notion-exporter https://www.notion.so/Notion-Official-83715d7703ee4b8699b5e659a4712dd8
  notion-exporter 83715d7703ee4b8699b5e659a4712dd8 -t md
  notion-exporter 3af0a1e347dd40c5ba0a2c91e234b2a5 -t csv > list.csv
  notion-exporter 83715d7703ee4b8699b5e659a4712dd8 -r -o ./export"""


def ask_token(token_name: str) -> str:
    """Prompt for a token on the terminal; the answer is not echoed."""
    try:
        return getpass.getpass(f"Paste your {token_name}:\n", stream=sys.stderr).strip()
    except EOFError as exc:
        raise MissingCredentialError(token_name) from exc


def env_or_ask_token(token_name: str) -> str:
    """Read a token from the environment, prompting when it is absent."""
    return os.environ.get(token_name, "").strip() or ask_token(token_name)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notion-exporter",
        description=DESCRIPTION,
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("block", help="Block id or URL of the page/block/DB to export")
    parser.add_argument(
        "-t",
        "--type",
        choices=FILE_TYPES,
        default=None,
        help="File type to be exported (default: md)",
    )
    parser.add_argument("-r", "--recursive", action="store_true", help="Export children subpages")
    parser.add_argument(
        "--current-view",
        action="store_true",
        help="With -t csv, export only the rows of the database's current view",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="DIR",
        help="Extract every file of the export into DIR instead of printing one file",
    )
    parser.add_argument("--poll-interval", type=int, metavar="MS", help="Delay between task status checks")
    parser.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Give up when the export task is still running after SECONDS",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def _log_level(args: argparse.Namespace) -> str | None:
    if args.verbose:
        return "DEBUG"
    if args.quiet:
        return "WARNING"
    return None


def _export_config(args: argparse.Namespace) -> dict:
    # Unset flags fall back to the export.* settings read by NotionExporter
    config = {"recursive": args.recursive}
    if args.poll_interval:
        config["pollInterval"] = args.poll_interval
    if args.timeout is not None:
        config["maxWait"] = args.timeout or None
    return config


def _report_error(exc: NotionExportError) -> None:
    print(f"❌ Error: {exc}", file=sys.stderr)
    if isinstance(exc, AuthenticationError):
        print(
            f"💡 Tip: refresh {TOKEN_V2_ENV} and {FILE_TOKEN_ENV} "
            "from the Notion cookies 'token_v2' and 'file_token'.",
            file=sys.stderr,
        )
    elif isinstance(exc, TransportError):
        if exc.status_code is not None:
            print(f"   HTTP status: {exc.status_code}", file=sys.stderr)
        if exc.response_text:
            print(f"   Response: {summarize_for_debug(exc.response_text, 500)}", file=sys.stderr)
    elif isinstance(exc, ExportTaskFailedError) and exc.status:
        print(f"   Last task status: {exc.status}", file=sys.stderr)
    elif isinstance(exc, InvalidIdentifierError):
        print("   Pass a 32 character block id or a Notion page URL ending in one.", file=sys.stderr)


def run(args: argparse.Namespace) -> int:
    """Run one export for parsed arguments and return the exit status."""
    cm = get_config_manager()
    file_type = args.type or cm.get_setting("export.default_type", "md")
    if file_type not in FILE_TYPES:
        print(f"File type (-t, --type) has to be one of: {','.join(FILE_TYPES)}", file=sys.stderr)
        return 1

    try:
        exporter = NotionExporter(
            env_or_ask_token(TOKEN_V2_ENV),
            env_or_ask_token(FILE_TOKEN_ENV),
            _export_config(args),
            progress=sys.stderr.isatty(),
        )
        with exporter:
            if args.output:
                written = exporter.get_md_files(args.block, args.output)
                print(f"✅ Extracted {len(written)} files to {args.output}", file=sys.stderr)
            elif file_type == "csv":
                print(exporter.get_csv_string(args.block, only_current_view=args.current_view))
            else:
                print(exporter.get_md_string(args.block))
    except NotionExportError as exc:
        logger.debug("Export failed", exc_info=True)
        _report_error(exc)
        return 1
    except ValueError as exc:
        # Invalid local settings (e.g. a non-positive poll interval)
        print(f"❌ Error: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv=None):
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(_log_level(args))

    try:
        status = run(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        status = 130
    sys.exit(status)


if __name__ == "__main__":
    main()

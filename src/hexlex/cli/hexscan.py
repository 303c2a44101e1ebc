"""
hexscan - S-Record and Intel HEX Checker Command-Line Interface
===============================================================

This module implements the command-line interface to the record
tokenizers. It checks record files for byte count and checksum errors,
lists the fields of each record and displays files with their fields
coloured.

Commands
--------
- **check**: Report bad byte counts, bad checksums and truncated records
- **fields**: List the fields of every record (or of one line)
- **show**: Print a file with every field coloured by its tag

Usage Examples
--------------
Check firmware images:
    $ hexscan check firmware.hex bootloader.s19

Check text with an unusual extension:
    $ hexscan check -f srec image.txt

List the fields of line 3:
    $ hexscan fields -l 3 firmware.hex

Display a file in colour:
    $ hexscan show firmware.s19

The format is detected from the file extension, then from the first record,
unless given with -f/--format or the HEXSCAN_FORMAT environment variable.
Files are read as bytes and decoded as Latin-1, so every byte maps to one
character and line endings are kept exactly.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from hexlex import __version__
from hexlex.cli.errors import ExitCode, handle_cli_exception
from hexlex.config import FORMAT_CHOICES, ScanConfig
from hexlex.lexer import HexTag, StyleBuffer, TextBuffer, get_lexer_class
from hexlex.report import resolve_format, scan_records, validate_text


logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the configuration read from the environment and the verbosity.
    """

    def __init__(self) -> None:
        self.config: ScanConfig = ScanConfig.from_env()
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )

    def format_for(self, requested: Optional[str]) -> str:
        """Format option value, falling back to the configured default."""
        return requested if requested is not None else self.config.default_format


pass_context = click.make_pass_decorator(Context, ensure=True)


def read_records_file(path: Path) -> str:
    """Read a record file as Latin-1 text, keeping its line endings."""
    return path.read_bytes().decode("latin-1")


# Terminal styles for each tag; tags not listed are printed plain
TAG_STYLES: dict[HexTag, dict] = {
    HexTag.RECSTART: {"fg": "white", "bold": True},
    HexTag.RECTYPE: {"fg": "magenta"},
    HexTag.BYTECOUNT: {"fg": "cyan"},
    HexTag.BYTECOUNT_WRONG: {"fg": "white", "bg": "red", "bold": True},
    HexTag.NOADDRESS: {"fg": "bright_black"},
    HexTag.DATAADDRESS: {"fg": "blue"},
    HexTag.RECCOUNT: {"fg": "bright_blue"},
    HexTag.STARTADDRESS: {"fg": "yellow"},
    HexTag.ADDRESSFIELD_UNKNOWN: {"fg": "bright_black", "underline": True},
    HexTag.EXTENDEDADDRESS: {"fg": "bright_yellow"},
    HexTag.DATA_ODD: {"fg": "green"},
    HexTag.DATA_EVEN: {"fg": "bright_green"},
    HexTag.DATA_UNKNOWN: {"fg": "bright_black", "underline": True},
    HexTag.CHECKSUM: {"fg": "cyan"},
    HexTag.CHECKSUM_WRONG: {"fg": "white", "bg": "red", "bold": True},
}

format_option = click.option(
    "-f", "--format",
    "format_name",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    default=None,
    help="Record format (default: auto, or HEXSCAN_FORMAT)",
)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="hexscan")
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging, tracebacks)",
)
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    Motorola S-Record and Intel HEX checker.

    Checks byte counts and checksums, lists record fields, and displays
    record files with each field coloured.

    \b
    Commands:
      check   Report record errors
      fields  List the fields of each record
      show    Print a file with coloured fields

    \b
    Examples:
      hexscan check firmware.hex
      hexscan fields -l 3 image.s19
      hexscan show image.s19
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Check Command
# =============================================================================

@main.command("check")
@click.argument(
    "input_files",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
)
@format_option
@click.option(
    "--max-issues",
    type=click.IntRange(min=1),
    default=None,
    help="Stop reporting issues per file after this many (default: 100)",
)
@pass_context
def cmd_check(
    ctx: Context,
    input_files: tuple[Path, ...],
    format_name: Optional[str],
    max_issues: Optional[int],
) -> None:
    """
    Check record files for bad byte counts, bad checksums and truncated
    records.

    Prints one line per issue, then a summary per file. Exits with status 1
    if any file has errors; unknown record types are only warnings.

    \b
    Examples:
      hexscan check firmware.hex
      hexscan check -f ihex --max-issues 10 *.txt
    """
    try:
        if max_issues is None:
            max_issues = ctx.config.max_issues

        failed = False
        for path in input_files:
            text = read_records_file(path)
            report = validate_text(text, ctx.format_for(format_name), str(path), max_issues)
            for issue in report.issues:
                click.echo(str(issue))
            click.echo(report.summary())
            failed = failed or report.has_errors()

        if failed:
            sys.exit(ExitCode.INVALID_RECORDS)

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


# =============================================================================
# Fields Command
# =============================================================================

@main.command("fields")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@format_option
@click.option(
    "-l", "--line",
    type=click.IntRange(min=1),
    default=None,
    help="Only list the record on this line (1-indexed)",
)
@pass_context
def cmd_fields(
    ctx: Context,
    input_file: Path,
    format_name: Optional[str],
    line: Optional[int],
) -> None:
    """
    List the fields of every record in a file.

    Columns are 1-indexed and inclusive. Data bytes are listed one per row,
    as the tokenizer tags them.

    \b
    Example:
      hexscan fields -l 3 firmware.hex
    """
    try:
        text = read_records_file(input_file)
        fmt = resolve_format(ctx.format_for(format_name), text, str(input_file))
        records = scan_records(text, fmt)
        if line is not None:
            records = [record for record in records if record.line == line]
            if not records:
                click.echo(f"No record on line {line}", err=True)
                sys.exit(ExitCode.INVALID_ARGS)

        click.echo(f"{'LINE':>6}  {'COLUMNS':<9}  {'TAG':<21}  TEXT")
        for record in records:
            for span in record.fields:
                columns = f"{span.column}-{span.column + len(span) - 1}"
                click.echo(f"{record.line:>6}  {columns:<9}  {span.tag.name:<21}  {span.text}")

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


# =============================================================================
# Show Command
# =============================================================================

@main.command("show")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@format_option
@click.option(
    "--color/--no-color",
    default=None,
    help="Force colour on or off (default: when writing to a terminal)",
)
@pass_context
def cmd_show(
    ctx: Context,
    input_file: Path,
    format_name: Optional[str],
    color: Optional[bool],
) -> None:
    """
    Print a record file with every field coloured by its tag.

    Bad byte counts and checksums are shown white on red.

    \b
    Example:
      hexscan show firmware.s19
    """
    try:
        text = read_records_file(input_file)
        fmt = resolve_format(ctx.format_for(format_name), text, str(input_file))

        styles = StyleBuffer(len(text))
        get_lexer_class(fmt)(TextBuffer(text)).tokenize(styles)

        pieces = []
        for start, end, tag in styles.runs():
            style = TAG_STYLES.get(tag)
            chunk = text[start:end]
            pieces.append(click.style(chunk, **style) if style else chunk)

        # None lets click strip the colours when not writing to a terminal
        if color is None and not ctx.config.color:
            color = False
        click.echo("".join(pieces), nl=False, color=color)

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


if __name__ == "__main__":
    main()

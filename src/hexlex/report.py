"""
Record Validation Reports
=========================

This module turns a complete tokenizing pass into a per-record view and a
list of issues, for tools that want answers rather than tags ("which
records have a bad checksum?").

The tags are the single source of truth. A record is a line whose first
character is tagged RECSTART; its fields are the runs of equally tagged
characters on that line. Issues are read off the tags:

| Issue        | Severity | Raised when                                  |
|--------------|----------|----------------------------------------------|
| BYTE_COUNT   | error    | the byte count is tagged BYTECOUNT_WRONG     |
| CHECKSUM     | error    | the checksum is tagged CHECKSUM_WRONG        |
| TRUNCATED    | error    | the record never reaches a checksum field    |
| UNKNOWN_TYPE | warning  | the record type is not a documented one      |

Unknown record types are only a warning: the tokenizers deliberately
accept them to stay compatible with format extensions.

Example
-------
    >>> report = validate_text(open("firmware.hex").read(), "auto", "firmware.hex")
    >>> for issue in report.issues:
    ...     print(issue)
    firmware.hex:12:42: error: checksum does not match the record (declared 0x27, computed 0x26)
    >>> print(report.summary())
    firmware.hex: 57 records, 1 error, 0 warnings
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from hexlex.errors import SourceLocation, UnknownFormatError
from hexlex.lexer import (
    HexTag,
    RecordLexer,
    StyleBuffer,
    TextBuffer,
    get_lexer_class,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Format Selection
# =============================================================================

SREC_EXTENSIONS = frozenset({".srec", ".s19", ".s28", ".s37", ".mot", ".mhx", ".sx"})
IHEX_EXTENSIONS = frozenset({".hex", ".ihex", ".ihx", ".h86"})


def format_for_path(path: Union[str, Path]) -> Optional[str]:
    """
    Guess the record format from a file extension (case-insensitive).

    Returns:
        "srec", "ihex", or None if the extension is not a known one
    """
    suffix = Path(path).suffix.lower()
    if suffix in SREC_EXTENSIONS:
        return "srec"
    if suffix in IHEX_EXTENSIONS:
        return "ihex"
    return None


def detect_format(text: str) -> str:
    """
    Detect the record format from the first record in text.

    The first line starting with 'S' means S-Record, with ':' Intel HEX.
    Lines starting with anything else are skipped. Lines are split the way
    the tokenizers split them (LF, CR LF or CR), so a form feed or other
    control character never starts a line here.

    Raises:
        UnknownFormatError: If no line starts with either marker
    """
    buffer = TextBuffer(text)
    for line in range(buffer.line_count):
        marker = buffer.char_at(buffer.line_start(line))
        if marker == "S":
            return "srec"
        if marker == ":":
            return "ihex"
    raise UnknownFormatError("cannot detect record format: no line starts with 'S' or ':'")


def resolve_format(format_name: str, text: str, filename: str = "<input>") -> str:
    """
    Resolve "auto" to a concrete format name; validate any other name.

    Auto-detection tries the file extension first, then the content.
    """
    if format_name.lower() != "auto":
        return get_lexer_class(format_name).name

    detected = format_for_path(filename) if filename != "<input>" else None
    if detected is None:
        detected = detect_format(text)
    logger.debug(f"{filename}: detected format {detected}")
    return detected


# =============================================================================
# Records and Fields
# =============================================================================

@dataclass(frozen=True)
class FieldSpan:
    """
    A run of equally tagged characters in a record.

    Ordinary data fields appear as several spans, one per byte, alternating
    DATA_ODD and DATA_EVEN.

    Attributes:
        tag: Tag of the run
        start: Document offset of the first character
        end: Document offset after the last character
        text: The characters
        column: 1-indexed column of the first character
    """
    tag: HexTag
    start: int
    end: int
    text: str
    column: int

    def __len__(self) -> int:
        return self.end - self.start


@dataclass
class RecordInfo:
    """
    One record of a tokenized document.

    Attributes:
        line: 1-indexed line number
        start: Document offset of the record start marker
        text: The record line without its terminator
        fields: Tagged runs covering the line, in order
    """
    line: int
    start: int
    text: str
    fields: list[FieldSpan] = field(default_factory=list)

    def find(self, *tags: HexTag) -> Optional[FieldSpan]:
        """Return the first span with one of the given tags."""
        for span in self.fields:
            if span.tag in tags:
                return span
        return None

    @property
    def complete(self) -> bool:
        """True if the record reaches its checksum field."""
        return self.find(HexTag.CHECKSUM, HexTag.CHECKSUM_WRONG) is not None

    @property
    def valid(self) -> bool:
        """True if the record is complete and no field is flagged wrong."""
        return self.complete and not any(span.tag.is_problem() for span in self.fields)


# =============================================================================
# Issues
# =============================================================================

class IssueKind(Enum):
    """Kinds of record issues, with severity and description."""
    BYTE_COUNT = ("error", "byte count does not match the record")
    CHECKSUM = ("error", "checksum does not match the record")
    TRUNCATED = ("error", "record ends before its checksum field")
    UNKNOWN_TYPE = ("warning", "unknown record type")

    def __init__(self, severity: str, description: str):
        self.severity = severity
        self.description = description


@dataclass(frozen=True)
class RecordIssue:
    """
    An issue found in one record.

    Formats as:
        filename:line:column: error: description (detail)
    """
    kind: IssueKind
    location: SourceLocation
    detail: str = ""

    @property
    def severity(self) -> str:
        return self.kind.severity

    @property
    def is_error(self) -> bool:
        return self.kind.severity == "error"

    def __str__(self) -> str:
        message = f"{self.location}: {self.kind.severity}: {self.kind.description}"
        if self.detail:
            message += f" ({self.detail})"
        return message


@dataclass
class ValidationReport:
    """
    Records and issues of one document.

    Issue collection stops after max_issues; issues_truncated tells whether
    that happened. Records are always all listed.
    """
    filename: str
    format_name: str
    records: list[RecordInfo] = field(default_factory=list)
    issues: list[RecordIssue] = field(default_factory=list)
    max_issues: int = 100
    issues_truncated: bool = False

    def add(self, issue: RecordIssue) -> bool:
        """
        Add an issue unless the limit has been reached.

        Returns:
            True if the issue was recorded
        """
        if len(self.issues) >= self.max_issues:
            self.issues_truncated = True
            return False
        logger.debug(str(issue))
        self.issues.append(issue)
        return True

    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.is_error)

    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if not issue.is_error)

    def has_errors(self) -> bool:
        return self.error_count() > 0

    @property
    def record_count(self) -> int:
        return len(self.records)

    def summary(self) -> str:
        errors = self.error_count()
        warnings = self.warning_count()
        record_word = "record" if self.record_count == 1 else "records"
        error_word = "error" if errors == 1 else "errors"
        warning_word = "warning" if warnings == 1 else "warnings"
        line = (
            f"{self.filename}: {self.record_count} {record_word}, "
            f"{errors} {error_word}, {warnings} {warning_word}"
        )
        if self.issues_truncated:
            line += f" (stopped after {self.max_issues} issues)"
        return line


# =============================================================================
# Scanning
# =============================================================================

def _tokenize(text: str, format_name: str) -> tuple[TextBuffer, RecordLexer, StyleBuffer]:
    buffer = TextBuffer(text)
    lexer = get_lexer_class(format_name)(buffer)
    styles = StyleBuffer(len(text))
    lexer.tokenize(styles)
    return buffer, lexer, styles


def _collect_records(buffer: TextBuffer, styles: StyleBuffer) -> list[RecordInfo]:
    records = []
    for line in range(buffer.line_count):
        start = buffer.line_start(line)
        if start >= buffer.length or styles.tag_at(start) != HexTag.RECSTART:
            continue
        line_text = buffer.line_text(line)
        spans = [
            FieldSpan(tag, run_start, run_end, buffer.text[run_start:run_end], run_start - start + 1)
            for run_start, run_end, tag in styles.runs(start, start + len(line_text))
        ]
        records.append(RecordInfo(line + 1, start, line_text, spans))
    return records


def scan_records(text: str, format_name: str) -> list[RecordInfo]:
    """
    Tokenize text and return its records with their tagged fields.

    Args:
        text: The document
        format_name: "srec" or "ihex"

    Raises:
        UnknownFormatError: If format_name is not a known format
    """
    buffer, _, styles = _tokenize(text, format_name)
    return _collect_records(buffer, styles)


def _type_unknown(record: RecordInfo) -> bool:
    """
    True if the field after the byte count is not a known address field.

    Intel HEX tags the address of an unknown type ADDRESSFIELD_UNKNOWN.
    An unknown S-Record type has no address field at all, so its byte
    count is followed by unknown data or directly by the checksum.
    """
    fields = record.fields
    for index, span in enumerate(fields[:-1]):
        if span.tag.is_byte_count():
            following = fields[index + 1].tag
            return following.is_unknown() or not following.is_address()
    return False


def _byte_count_detail(lexer: RecordLexer, rec: int) -> str:
    layout = lexer.layout
    declared = layout.byte_count(rec)
    present = max(layout.count_byte_count(rec), 0)
    detail = f"declares {declared} bytes, record holds {present}"
    required = layout.required_byte_count(rec)
    if required != declared:
        detail += f", type requires {required}"
    return detail


def _checksum_detail(lexer: RecordLexer, rec: int) -> str:
    declared = lexer.layout.declared_checksum(rec)
    computed = lexer.layout.computed_checksum(rec)
    if declared is None:
        return "checksum field is not a hex byte"
    if computed is None:
        return "record contains non-hex characters"
    return f"declared 0x{declared:02X}, computed 0x{computed:02X}"


def _find_group(record: RecordInfo, in_group: Callable[[HexTag], bool]) -> Optional[FieldSpan]:
    return next((span for span in record.fields if in_group(span.tag)), None)


def _check_record(report: ValidationReport, lexer: RecordLexer, record: RecordInfo) -> None:
    def location(column: int) -> SourceLocation:
        return SourceLocation(report.filename, record.line, column)

    type_span = record.find(HexTag.RECTYPE)
    if type_span is not None and _type_unknown(record):
        report.add(RecordIssue(
            IssueKind.UNKNOWN_TYPE, location(type_span.column), f"type {type_span.text!r}"
        ))

    count_span = _find_group(record, HexTag.is_byte_count)
    if count_span is not None and count_span.tag.is_problem():
        report.add(RecordIssue(
            IssueKind.BYTE_COUNT, location(count_span.column), _byte_count_detail(lexer, record.start)
        ))

    checksum_span = _find_group(record, HexTag.is_checksum)
    if checksum_span is not None and checksum_span.tag.is_problem():
        report.add(RecordIssue(
            IssueKind.CHECKSUM, location(checksum_span.column), _checksum_detail(lexer, record.start)
        ))

    if not record.complete:
        report.add(RecordIssue(IssueKind.TRUNCATED, location(len(record.text) + 1)))


def validate_text(
    text: str,
    format_name: str = "auto",
    filename: str = "<input>",
    max_issues: int = 100,
) -> ValidationReport:
    """
    Tokenize text and report the issues of every record.

    Args:
        text: The document, with its original line endings
        format_name: "srec", "ihex" or "auto"
        filename: Name used in issue locations (and for auto-detection)
        max_issues: Stop collecting issues after this many

    Returns:
        ValidationReport with all records and the collected issues

    Raises:
        UnknownFormatError: If the format is unknown or cannot be detected
    """
    format_name = resolve_format(format_name, text, filename)
    buffer, lexer, styles = _tokenize(text, format_name)

    report = ValidationReport(filename, format_name, max_issues=max_issues)
    report.records = _collect_records(buffer, styles)
    for record in report.records:
        _check_record(report, lexer, record)

    logger.info(report.summary())
    return report

"""
Resumable Tokenizing Tests
==========================

Tests for the behaviour shared by both tokenizers: resuming a pass at a
record or field boundary, range handling, transition coalescing and the
tag sinks.

Test Categories
---------------
1. Resumption: split passes give the same transitions as one pass
2. Ranges: clamping, range errors, stopping inside a record
3. Sinks: TransitionLog and StyleBuffer
4. Registry: looking up tokenizers by format name
"""

import pytest

from hexlex.errors import HexLexError, InvalidTagError, TokenizeRangeError, UnknownFormatError
from hexlex.lexer import (
    LEXERS,
    HexTag,
    IHexLexer,
    SrecLexer,
    StyleBuffer,
    TextBuffer,
    Transition,
    TransitionLog,
    get_lexer_class,
)


# =============================================================================
# Test Fixtures
# =============================================================================

SREC_DOCUMENT = (
    "S00F000068656C6C6F202020202000003C\n"
    "S111003848656C6C6F20776F726C642E0A0042\n"
    "S9030000FD\n"
    "S1110038486\n"
    "S9030000FC\n"
)

IHEX_DOCUMENT = (
    ":020000040800F2\n"
    ":10010000214601360121470136007EFE09D2190140\n"
    ":0000\n"
    ":100110002146017E17C20001FF5F16002148011928\n"
    ":00000001FF\n"
)


@pytest.fixture(params=[
    (SrecLexer, SREC_DOCUMENT),
    (IHexLexer, IHEX_DOCUMENT),
], ids=["srec", "ihex"])
def document(request):
    """A (lexer, buffer) pair with valid and malformed records."""
    lexer_class, text = request.param
    buffer = TextBuffer(text)
    return lexer_class(buffer), buffer


def full_pass(lexer) -> list[Transition]:
    log = TransitionLog()
    lexer.tokenize(log)
    return log.transitions


# =============================================================================
# Resumption Tests
# =============================================================================

class TestResumption:
    """Tests for passes split at record and field boundaries."""

    def test_repeatable(self, document):
        """Tokenizing twice gives the same transitions."""
        lexer, _ = document
        assert full_pass(lexer) == full_pass(lexer)

    def test_split_at_every_line_start(self, document):
        """Passes split at any record boundary concatenate to one pass."""
        lexer, buffer = document
        expected = full_pass(lexer)

        for line in range(1, buffer.line_count):
            split = buffer.line_start(line)
            log = TransitionLog()
            state = lexer.tokenize(log, 0, split)
            assert state == HexTag.DEFAULT
            lexer.tokenize(log, split, initial_tag=state)
            assert log.transitions == expected

    def test_resume_each_line_separately(self, document):
        """Every line tokenized on its own gives the same tags."""
        lexer, buffer = document
        whole = StyleBuffer(buffer.length)
        lexer.tokenize(whole)

        pieces = StyleBuffer(buffer.length)
        for line in range(buffer.line_count):
            start = buffer.line_start(line)
            end = buffer.line_start(line + 1) if line + 1 < buffer.line_count else buffer.length
            lexer.tokenize(pieces, start, end - start)
        assert pieces.tags() == whole.tags()

    def test_split_at_field_boundaries(self):
        """A pass may resume at a field boundary with the tag before it."""
        text = "S111003848656C6C6F20776F726C642E0A0042\n"
        lexer = SrecLexer(TextBuffer(text))
        expected = full_pass(lexer)

        for split in (1, 2, 4, 8, 36, 38):
            log = TransitionLog()
            state = lexer.tokenize(log, 0, split)
            lexer.tokenize(log, split, initial_tag=state)
            assert log.transitions == expected, f"split at {split}"

    def test_retokenize_one_record(self):
        """Re-tokenizing an edited record leaves the other records alone."""
        original = "S9030000FC\nS5030003F9\nS9030000FC\n"
        edited = "S9030000FC\nS5030003F8\nS9030000FC\n"

        styles = StyleBuffer(len(original))
        SrecLexer(TextBuffer(original)).tokenize(styles)
        assert styles.tag_at(19) == HexTag.CHECKSUM

        SrecLexer(TextBuffer(edited)).tokenize(styles, 11, 11)
        assert styles.tag_at(19) == HexTag.CHECKSUM_WRONG
        assert styles.tag_at(8) == HexTag.CHECKSUM
        assert styles.tag_at(30) == HexTag.CHECKSUM


# =============================================================================
# Range Tests
# =============================================================================

class TestRanges:
    """Tests for tokenizing ranges."""

    def test_negative_start(self):
        lexer = SrecLexer(TextBuffer("S9030000FC"))
        with pytest.raises(TokenizeRangeError) as exc_info:
            lexer.tokenize(TransitionLog(), -1, 5)
        assert exc_info.value.start == -1
        assert "start=-1" in str(exc_info.value)

    def test_negative_length(self):
        lexer = SrecLexer(TextBuffer("S9030000FC"))
        with pytest.raises(TokenizeRangeError):
            lexer.tokenize(TransitionLog(), 0, -1)

    @pytest.mark.parametrize("tag", [3, 18, -1])
    def test_invalid_initial_tag(self, tag):
        lexer = SrecLexer(TextBuffer("S9030000FC"))
        with pytest.raises(InvalidTagError) as exc_info:
            lexer.tokenize(TransitionLog(), 0, None, tag)
        assert isinstance(exc_info.value, HexLexError)
        assert exc_info.value.tag == tag

    def test_plain_int_initial_tag(self):
        log = TransitionLog()
        state = SrecLexer(TextBuffer("S9030000FC")).tokenize(log, 4, None, 4)
        assert state == HexTag.CHECKSUM
        assert log.tags() == [HexTag.STARTADDRESS, HexTag.CHECKSUM]

    def test_length_clamped(self):
        log = TransitionLog()
        SrecLexer(TextBuffer("S9030000FC")).tokenize(log, 0, 1000)
        assert log.completed_at == 10
        assert log.transitions[-1] == Transition(8, HexTag.CHECKSUM)

    def test_start_past_end(self):
        log = TransitionLog()
        state = SrecLexer(TextBuffer("S9030000FC")).tokenize(log, 50)
        assert state == HexTag.DEFAULT
        assert log.transitions == []

    def test_range_ends_inside_field(self):
        """A pass ending inside a field stops there in that field's state."""
        log = TransitionLog()
        state = SrecLexer(TextBuffer("S111003848656C6C6F20776F726C642E0A0042")).tokenize(log, 0, 5)
        assert state == HexTag.DATAADDRESS
        assert log.completed_at == 5
        assert [t.position for t in log] == [0, 1, 2, 4]

    def test_zero_length(self):
        log = TransitionLog()
        state = IHexLexer(TextBuffer(":00000001FF")).tokenize(log, 3, 0, HexTag.BYTECOUNT)
        assert state == HexTag.BYTECOUNT
        assert log.transitions == []
        assert log.completed_at == 3

    def test_garbage_terminates(self):
        """Any input is tokenized to its end."""
        text = "S" * 50 + "\n:" * 20 + "\r\r\n\x00\xff S1" + ":" + "9" * 30
        for lexer_class in (SrecLexer, IHexLexer):
            log = TransitionLog()
            lexer_class(TextBuffer(text)).tokenize(log)
            assert log.completed_at == len(text)
            assert all(t.position < len(text) for t in log)


# =============================================================================
# Sink Tests
# =============================================================================

class TestSinks:
    """Tests for TransitionLog and StyleBuffer."""

    def test_transition_repr(self):
        assert repr(Transition(4, HexTag.DATAADDRESS)) == "Transition(4, DATAADDRESS)"

    def test_log_tags(self):
        log = TransitionLog()
        SrecLexer(TextBuffer("S9030000FC")).tokenize(log)
        assert log.tags() == [
            HexTag.RECSTART,
            HexTag.RECTYPE,
            HexTag.BYTECOUNT,
            HexTag.STARTADDRESS,
            HexTag.CHECKSUM,
        ]
        assert len(log) == 5

    def test_style_buffer_tags(self):
        styles = StyleBuffer(11)
        SrecLexer(TextBuffer("S9030000FC\n")).tokenize(styles)
        assert styles.tags() == [
            HexTag.RECSTART,
            HexTag.RECTYPE,
            HexTag.BYTECOUNT, HexTag.BYTECOUNT,
            HexTag.STARTADDRESS, HexTag.STARTADDRESS,
            HexTag.STARTADDRESS, HexTag.STARTADDRESS,
            HexTag.CHECKSUM, HexTag.CHECKSUM,
            HexTag.DEFAULT,
        ]

    def test_style_buffer_runs(self):
        styles = StyleBuffer(11)
        SrecLexer(TextBuffer("S9030000FC\n")).tokenize(styles)
        assert list(styles.runs()) == [
            (0, 1, HexTag.RECSTART),
            (1, 2, HexTag.RECTYPE),
            (2, 4, HexTag.BYTECOUNT),
            (4, 8, HexTag.STARTADDRESS),
            (8, 10, HexTag.CHECKSUM),
            (10, 11, HexTag.DEFAULT),
        ]
        assert list(styles.runs(3, 6)) == [
            (3, 4, HexTag.BYTECOUNT),
            (4, 6, HexTag.STARTADDRESS),
        ]

    def test_style_buffer_out_of_range(self):
        styles = StyleBuffer(2)
        assert styles.tag_at(-1) == HexTag.DEFAULT
        assert styles.tag_at(2) == HexTag.DEFAULT

    def test_style_buffer_resumed_range(self):
        """A resumed pass only writes its own range."""
        text = "S9030000FC"
        styles = StyleBuffer(len(text))
        SrecLexer(TextBuffer(text)).tokenize(styles, 4, None, HexTag.BYTECOUNT)
        assert styles.tags(4) == [HexTag.STARTADDRESS] * 4 + [HexTag.CHECKSUM] * 2
        assert styles.tags(0, 4) == [HexTag.DEFAULT] * 4


# =============================================================================
# Registry Tests
# =============================================================================

class TestRegistry:
    """Tests for looking up tokenizers by name."""

    def test_known_names(self):
        assert get_lexer_class("srec") is SrecLexer
        assert get_lexer_class("IHEX") is IHexLexer
        assert set(LEXERS) == {"srec", "ihex"}

    def test_unknown_name(self):
        with pytest.raises(UnknownFormatError) as exc_info:
            get_lexer_class("tektronix")
        assert exc_info.value.choices == ("srec", "ihex")
        assert "choose from: srec, ihex" in str(exc_info.value)


# =============================================================================
# Property Tests
# =============================================================================

VALID_RECORDS = [
    (SrecLexer, "S111003848656C6C6F20776F726C642E0A0042", range(4, 36)),
    (IHexLexer, ":10010000214601360121470136007EFE09D2190140", [*range(3, 7), *range(9, 41)]),
]


def bump(digit: str) -> str:
    """Next hex digit, wrapping F to 0."""
    return "0123456789ABCDEF"[(int(digit, 16) + 1) % 16]


class TestProperties:
    """Checks run over every digit or every prefix of a record."""

    @pytest.mark.parametrize("lexer_class,record,positions", VALID_RECORDS, ids=["srec", "ihex"])
    def test_single_digit_change_breaks_checksum(self, lexer_class, record, positions):
        checksum_pos = len(record) - 2
        for pos in positions:
            changed = record[:pos] + bump(record[pos]) + record[pos + 1:]
            styles = StyleBuffer(len(changed))
            lexer_class(TextBuffer(changed)).tokenize(styles)
            assert styles.tag_at(checksum_pos) == HexTag.CHECKSUM_WRONG, f"digit {pos}"

    @pytest.mark.parametrize("lexer_class,record,positions", VALID_RECORDS, ids=["srec", "ihex"])
    def test_every_prefix_recovers(self, lexer_class, record, positions):
        """A record cut anywhere ends idle at its terminator; the next record is intact."""
        for cut in range(1, len(record)):
            text = record[:cut] + "\n" + record + "\n"
            styles = StyleBuffer(len(text))
            state = lexer_class(TextBuffer(text)).tokenize(styles)
            assert state == HexTag.DEFAULT
            assert styles.tag_at(cut) == HexTag.DEFAULT, f"cut at {cut}"
            assert styles.tag_at(cut + 1) == HexTag.RECSTART, f"cut at {cut}"
            assert styles.tag_at(len(text) - 3) == HexTag.CHECKSUM, f"cut at {cut}"

    @pytest.mark.parametrize("lexer_class,record,positions", VALID_RECORDS, ids=["srec", "ihex"])
    def test_every_prefix_alone_terminates(self, lexer_class, record, positions):
        for cut in range(len(record) + 1):
            log = TransitionLog()
            lexer_class(TextBuffer(record[:cut])).tokenize(log)
            assert log.completed_at == cut

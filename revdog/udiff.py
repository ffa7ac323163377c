"""Parser for the unified diff format, including git's extended headers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum

_TOKEN_DIFF = "diff"
_TOKEN_OLD_FILE = "---"
_TOKEN_NEW_FILE = "+++"
_TOKEN_START_HUNK = "@@"
_TOKEN_UNCHANGED = " "
_TOKEN_ADDED = "+"
_TOKEN_DELETED = "-"
_TOKEN_NO_NEWLINE_AT_EOF = "\\"

_INT_RE = re.compile(r"[+-]?[0-9]+")

_SIMPLE_ESCAPES = {
    ord("a"): 0x07,
    ord("b"): 0x08,
    ord("t"): 0x09,
    ord("n"): 0x0A,
    ord("v"): 0x0B,
    ord("f"): 0x0C,
    ord("r"): 0x0D,
    ord('"'): ord('"'),
    ord("\\"): ord("\\"),
}


class DiffParseError(ValueError):
    """Base class for errors raised while parsing a diff."""


class NoNewFileError(DiffParseError):
    """An old-file header line was not followed by a new-file header line."""

    def __init__(self) -> None:
        super().__init__("no expected new file line")


class NoHunksError(DiffParseError):
    """A file diff holds no hunks where hunks were expected."""

    def __init__(self) -> None:
        super().__init__("no expected hunks")


class InvalidHunkRangeError(DiffParseError):
    """A hunk header line such as ``@@ -1,3 +1,4 @@`` is malformed."""

    def __init__(self, invalid: str) -> None:
        super().__init__(f"invalid hunk range: {invalid}")
        self.invalid = invalid


class LineType(IntEnum):
    """Kind of a line in a hunk body."""

    UNCHANGED = 0
    ADDED = 1
    DELETED = 2


@dataclass
class Line:
    """A single line of a hunk.

    ``lnum_diff`` is the position of the line counted from the first hunk
    header of the file; ``lnum_old``/``lnum_new`` are 0 where not applicable.
    """

    type: LineType
    content: str
    lnum_diff: int = 0
    lnum_old: int = 0
    lnum_new: int = 0


@dataclass
class Hunk:
    """A change hunk of a file diff."""

    start_line_old: int = 0
    line_length_old: int = 0
    start_line_new: int = 0
    line_length_new: int = 0
    section: str = ""
    lines: list[Line] = field(default_factory=list)


@dataclass
class FileDiff:
    """The unified diff of a single file."""

    path_old: str = ""
    path_new: str = ""
    time_old: str = ""
    time_new: str = ""
    hunks: list[Hunk] = field(default_factory=list)
    extended: list[str] = field(default_factory=list)


@dataclass
class HunkRange:
    """The parsed header of a hunk: ``@@ -lold,sold +lnew,snew @@ section``."""

    lold: int = 0
    sold: int = 0
    lnew: int = 0
    snew: int = 0
    section: str = ""


class LineReader:
    """Reads text line by line with a look-ahead of raw characters."""

    def __init__(self, text: str | bytes) -> None:
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8", errors="surrogateescape")
        self._text = text
        self._pos = 0

    def peek(self, n: int) -> str | None:
        """Return the next ``n`` characters, or None if fewer remain."""
        chunk = self._text[self._pos:self._pos + n]
        return chunk if len(chunk) == n else None

    def readline(self) -> str:
        """Consume and return the next line without its line terminator.

        Raises EOFError when nothing is left.
        """
        if self._pos >= len(self._text):
            raise EOFError("end of diff input")
        end = self._text.find("\n", self._pos)
        if end == -1:
            line = self._text[self._pos:]
            self._pos = len(self._text)
            return line
        line = self._text[self._pos:end]
        self._pos = end + 1
        if line.endswith("\r"):
            line = line[:-1]
        return line


def _atoi(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def parse_ls(text: str) -> tuple[int, int]:
    """Parse ``l[,s]``; the length defaults to 1."""
    start, sep, length = text.partition(",")
    line = _atoi(start)
    size = _atoi(length) if sep else 1
    return line, size


def parse_hunk_range(rangeline: str) -> HunkRange:
    """Parse a hunk header line ``@@ -lold[,sold] +lnew[,snew] @@[ section]``."""
    parts = rangeline.split(" ", 4)
    if len(parts) < 4 or parts[0] != "@@" or parts[3] != "@@":
        raise InvalidHunkRangeError(rangeline)
    old, new = parts[1], parts[2]
    if not old.startswith("-") or not new.startswith("+"):
        raise InvalidHunkRangeError(rangeline)
    try:
        lold, sold = parse_ls(old[1:])
        lnew, snew = parse_ls(new[1:])
    except ValueError:
        raise InvalidHunkRangeError(rangeline) from None
    section = parts[4] if len(parts) == 5 else ""
    return HunkRange(lold=lold, sold=sold, lnew=lnew, snew=snew, section=section)


def unquote_c_style(text: str) -> str:
    """Undo git's C-style quoting of a file name; unquoted names pass through."""
    if not text.startswith('"'):
        return text
    if text.endswith('"'):
        text = text[:-1]
    if text.startswith('"'):
        text = text[1:]

    data = text.encode("utf-8", errors="surrogateescape")
    out = bytearray()
    i = 0
    n = len(data)
    while i < n:
        ch = data[i]
        i += 1
        if ch != ord("\\"):
            out.append(ch)
            continue
        if i >= n:
            break
        ch = data[i]
        if ch in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[ch])
            i += 1
        elif ord("0") <= ch <= ord("9"):
            octal = data[i:i + 3]
            i += len(octal)
            if len(octal) < 3:
                out.extend(octal)
                break
            digits = octal.decode("ascii", errors="replace")
            if all(c in "01234567" for c in digits) and int(digits, 8) <= 0xFF:
                out.append(int(digits, 8))
            else:
                out.extend(octal)
        else:
            out.append(ch)
            i += 1
    return out.decode("utf-8", errors="surrogateescape")


def parse_file_header(line: str) -> tuple[str, str]:
    """Parse a ``--- name<TAB>time`` or ``+++ name`` line into (name, time)."""
    rest = line[len(_TOKEN_OLD_FILE) + 1:]
    name, tab, timestamp = rest.rpartition("\t")
    if not tab:
        return unquote_c_style(rest), ""
    return unquote_c_style(name), timestamp


def parse_extended_header(reader: LineReader) -> list[str]:
    """Read git's extended header lines, starting at a ``diff`` line."""
    head = reader.peek(len(_TOKEN_DIFF))
    if head is None or not head.startswith(_TOKEN_DIFF):
        return []
    lines = [reader.readline()]
    while True:
        head = reader.peek(len(_TOKEN_DIFF))
        if head is None or head.startswith(_TOKEN_OLD_FILE) or head.startswith(_TOKEN_DIFF):
            break
        lines.append(reader.readline())
    return lines


class HunkParser:
    """Parses consecutive hunks, numbering lines by their position in the diff."""

    def __init__(self, reader: LineReader, lnumdiff: int = 0) -> None:
        self.reader = reader
        self.lnumdiff = lnumdiff

    def _done(self, lold: int, lnew: int, hr: HunkRange) -> bool:
        end = lold >= hr.lold + hr.sold and lnew >= hr.lnew + hr.snew
        head = self.reader.peek(1)
        return head is None or (head != _TOKEN_NO_NEWLINE_AT_EOF and end)

    def parse(self) -> Hunk | None:
        """Parse the next hunk, or return None if no hunk header follows."""
        head = self.reader.peek(len(_TOKEN_START_HUNK))
        if head is None or not head.startswith(_TOKEN_START_HUNK):
            return None
        hr = parse_hunk_range(self.reader.readline())
        hunk = Hunk(
            start_line_old=hr.lold,
            line_length_old=hr.sold,
            start_line_new=hr.lnew,
            line_length_new=hr.snew,
            section=hr.section,
        )
        lold, lnew = hr.lold, hr.lnew
        while not self._done(lold, lnew, hr):
            token = self.reader.peek(1)
            if token is None:
                break
            if token == _TOKEN_NO_NEWLINE_AT_EOF:
                self.reader.readline()
                continue
            if token not in (_TOKEN_UNCHANGED, _TOKEN_ADDED, _TOKEN_DELETED):
                break
            self.lnumdiff += 1
            content = self.reader.readline()[1:]
            if token == _TOKEN_UNCHANGED:
                line = Line(LineType.UNCHANGED, content, self.lnumdiff, lold, lnew)
                lold += 1
                lnew += 1
            elif token == _TOKEN_ADDED:
                line = Line(LineType.ADDED, content, self.lnumdiff, 0, lnew)
                lnew += 1
            else:
                line = Line(LineType.DELETED, content, self.lnumdiff, lold, 0)
                lold += 1
            hunk.lines.append(line)
        self.lnumdiff += 1
        return hunk


def _parse_hunks(reader: LineReader) -> list[Hunk]:
    head = reader.peek(len(_TOKEN_OLD_FILE))
    if head is None:
        raise NoHunksError()
    if not head.startswith(_TOKEN_START_HUNK):
        head = reader.peek(len(_TOKEN_DIFF))
        if head is not None and head.startswith(_TOKEN_DIFF):
            # git may emit a file diff without hunks, e.g. deleting an empty file.
            return []
        raise NoHunksError()
    parser = HunkParser(reader)
    hunks = []
    while (hunk := parser.parse()) is not None:
        hunks.append(hunk)
    return hunks


def _parse_one(reader: LineReader) -> FileDiff | None:
    fd = FileDiff(extended=parse_extended_header(reader))
    head = reader.peek(len(_TOKEN_OLD_FILE))
    if head is None:
        return fd if fd.extended else None
    if head.startswith(_TOKEN_OLD_FILE):
        fd.path_old, fd.time_old = parse_file_header(reader.readline())
        head = reader.peek(len(_TOKEN_NEW_FILE))
        if head is None or not head.startswith(_TOKEN_NEW_FILE):
            raise NoNewFileError()
        fd.path_new, fd.time_new = parse_file_header(reader.readline())
    fd.hunks = _parse_hunks(reader)
    return fd


def parse_file(text: str | bytes) -> FileDiff | None:
    """Parse the diff of a single file; None if the input holds no diff."""
    return _parse_one(LineReader(text))


def parse_multi_file(text: str | bytes) -> list[FileDiff]:
    """Parse a multi-file unified diff, stopping at the first malformed part."""
    reader = LineReader(text)
    result = []
    while True:
        try:
            fd = _parse_one(reader)
        except DiffParseError:
            break
        if fd is None:
            break
        result.append(fd)
    return result
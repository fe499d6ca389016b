"""Offset unit conversions between widget positions, byte columns and str indices."""

from __future__ import annotations

from bisect import bisect_right


def utf16_offset_to_index(text: str, utf16_offset: int) -> int:
    """Convert a UTF-16 code-unit position (Qt cursor position) to a str index.

    A position that falls inside a surrogate pair resolves to the index after
    the pair.
    """
    value = int(utf16_offset)
    if value <= 0:
        return 0
    if text.isascii():
        return min(value, len(text))
    units = 0
    for index, ch in enumerate(text):
        if units >= value:
            return index
        units += 2 if ord(ch) > 0xFFFF else 1
    return len(text)


def index_to_utf16_offset(text: str, index: int) -> int:
    value = max(0, min(int(index), len(text)))
    if text.isascii():
        return value
    return value + sum(1 for ch in text[:value] if ord(ch) > 0xFFFF)


def line_start_offsets(text: str) -> list[int]:
    starts = [0]
    find = text.find
    pos = find("\n")
    while pos != -1:
        starts.append(pos + 1)
        pos = find("\n", pos + 1)
    return starts


def line_number_at(line_starts: list[int], index: int) -> int:
    """Zero-based line number containing ``index``."""
    return max(0, bisect_right(line_starts, int(index)) - 1)


def _line_text(text: str, line_starts: list[int], line_index: int) -> str:
    start = line_starts[line_index]
    end = line_starts[line_index + 1] if line_index + 1 < len(line_starts) else len(text)
    return text[start:end]


def char_position_to_index(text: str, line_starts: list[int], lineno: int, col: int) -> int:
    """Map a 1-based line and a code-point column to a str index."""
    if not line_starts:
        return 0
    line_index = min(max(0, int(lineno) - 1), len(line_starts) - 1)
    start = line_starts[line_index]
    line_len = len(_line_text(text, line_starts, line_index))
    return start + max(0, min(int(col), line_len))


def utf8_position_to_index(text: str, line_starts: list[int], lineno: int, byte_col: int) -> int:
    """Map a 1-based line and a UTF-8 byte column (as reported by ``ast``) to a str index."""
    if not line_starts:
        return 0
    line_index = min(max(0, int(lineno) - 1), len(line_starts) - 1)
    line = _line_text(text, line_starts, line_index)
    if line.isascii():
        col = max(0, min(int(byte_col), len(line)))
    else:
        prefix = line.encode("utf-8")[: max(0, int(byte_col))]
        col = len(prefix.decode("utf-8", errors="ignore"))
    return line_starts[line_index] + col

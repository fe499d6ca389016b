"""Diff-based offset correlation between source text and reformatted text."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from diff_match_patch import diff_match_patch

from fmtlens.mapping.sorted_index import SortedPointIndex

log = logging.getLogger(__name__)

WHITESPACE_CHARS = frozenset(" \t\n\r")
DEFAULT_DIFF_TIMEOUT = 1.0

# Line keys only; quote normalization is the most common non-whitespace rewrite.
_QUOTE_FOLD = str.maketrans({"'": '"'})


@dataclass(frozen=True, slots=True)
class Anchor:
    src_offset: int
    out_offset: int


AnchorTable = tuple[Anchor, ...]

# (non-whitespace characters of one line, their offsets in the full text)
_Chunk = tuple[str, list[int]]


def _line_chunks(text: str) -> list[_Chunk]:
    chunks: list[_Chunk] = []
    chars: list[str] = []
    offsets: list[int] = []
    for index, ch in enumerate(text):
        if ch == "\n":
            if chars:
                chunks.append(("".join(chars), offsets))
                chars = []
                offsets = []
        elif ch not in WHITESPACE_CHARS:
            chars.append(ch)
            offsets.append(index)
    if chars:
        chunks.append(("".join(chars), offsets))
    return chunks


class _AnchorCollector:
    def __init__(self, dmp: diff_match_patch) -> None:
        self.dmp = dmp
        self.anchors: list[Anchor] = []
        self.char_diffs = 0

    def pair(self, src: _Chunk, out: _Chunk) -> None:
        src_chars, src_offsets = src
        out_chars, out_offsets = out
        if src_chars == out_chars:
            self.anchors.extend(Anchor(s, o) for s, o in zip(src_offsets, out_offsets))
            return
        # Equal line keys: same length, differing only where quotes were swapped.
        self.anchors.extend(
            Anchor(s, o)
            for s, o, a, b in zip(src_offsets, out_offsets, src_chars, out_chars)
            if a == b
        )

    def diff(self, src: _Chunk, out: _Chunk) -> None:
        src_chars, src_offsets = src
        out_chars, out_offsets = out
        if not src_chars or not out_chars:
            return
        self.char_diffs += 1
        src_idx = 0
        out_idx = 0
        for op, text in self.dmp.diff_main(src_chars, out_chars, False):
            count = len(text)
            if op == diff_match_patch.DIFF_EQUAL:
                self.anchors.extend(
                    Anchor(src_offsets[src_idx + i], out_offsets[out_idx + i]) for i in range(count)
                )
                src_idx += count
                out_idx += count
            elif op == diff_match_patch.DIFF_DELETE:
                src_idx += count
            else:
                out_idx += count


def _join(chunks: list[_Chunk]) -> _Chunk:
    offsets: list[int] = []
    for _chars, chunk_offsets in chunks:
        offsets.extend(chunk_offsets)
    return "".join(chars for chars, _offsets in chunks), offsets


def build_anchor_table(source: str, derived: str, *, timeout: float = DEFAULT_DIFF_TIMEOUT) -> AnchorTable:
    """Pair every non-whitespace character the two texts have in common.

    Both texts are reduced to their non-whitespace characters, kept in
    per-line chunks. The chunks are first diffed as whole lines, with single
    and double quotes treated as the same character; lines that pair up are
    matched position by position, and each run of unpaired lines is diffed
    character by character as one block. Every character of an equal run
    yields one anchor holding its original offsets; inserted and deleted
    characters yield nothing.

    ``timeout`` bounds each diff call in seconds (``0`` disables the bound).
    Since the character diffs only ever see one changed block, the bound is
    reached only when a single block is both large and heavily rewritten;
    that block then contributes no anchors.
    """
    if not source or not derived:
        return ()

    src_chunks = _line_chunks(source)
    out_chunks = _line_chunks(derived)
    if not src_chunks or not out_chunks:
        return ()

    started = time.perf_counter()
    dmp = diff_match_patch()
    dmp.Diff_Timeout = max(0.0, float(timeout))
    src_lines, out_lines, _line_array = dmp.diff_linesToChars(
        "".join(chars.translate(_QUOTE_FOLD) + "\n" for chars, _offsets in src_chunks),
        "".join(chars.translate(_QUOTE_FOLD) + "\n" for chars, _offsets in out_chunks),
    )

    collector = _AnchorCollector(dmp)
    src_idx = 0
    out_idx = 0
    deleted: list[_Chunk] = []
    inserted: list[_Chunk] = []
    for op, text in dmp.diff_main(src_lines, out_lines, False):
        count = len(text)
        if op == diff_match_patch.DIFF_EQUAL:
            if deleted or inserted:
                collector.diff(_join(deleted), _join(inserted))
                deleted = []
                inserted = []
            for i in range(count):
                collector.pair(src_chunks[src_idx + i], out_chunks[out_idx + i])
            src_idx += count
            out_idx += count
        elif op == diff_match_patch.DIFF_DELETE:
            deleted.extend(src_chunks[src_idx:src_idx + count])
            src_idx += count
        else:
            inserted.extend(out_chunks[out_idx:out_idx + count])
            out_idx += count
    if deleted or inserted:
        collector.diff(_join(deleted), _join(inserted))

    log.debug(
        "anchor table: %d anchors from %d/%d lines (%d character diffs) in %.1f ms",
        len(collector.anchors),
        len(src_chunks),
        len(out_chunks),
        collector.char_diffs,
        (time.perf_counter() - started) * 1000.0,
    )
    return tuple(collector.anchors)


def query_forward(table: AnchorTable, src_offset: int) -> int:
    """Source offset -> derived offset."""
    return SortedPointIndex(table, search="src_offset", report="out_offset").project(int(src_offset))


def query_reverse(table: AnchorTable, out_offset: int) -> int:
    """Derived offset -> source offset."""
    return SortedPointIndex(table, search="out_offset", report="src_offset").project(int(out_offset))

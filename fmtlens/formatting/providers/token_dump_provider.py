"""Token view: the ``tokenize`` stream the formatter consumes, one token per line."""

from __future__ import annotations

import io
import logging
import token
import tokenize

from fmtlens.formatting.code_formatting import FormatRequest, FormatResult
from fmtlens.mapping.intervals import Interval, IntervalList
from fmtlens.mapping.text_units import char_position_to_index, line_start_offsets

log = logging.getLogger(__name__)

TOKEN_VIEW_KINDS = {"tokens"}
_POSITION_WIDTH = 16
_TYPE_WIDTH = 12


def dump_tokens_with_intervals(source: str) -> tuple[str, IntervalList]:
    """Tokenize ``source``; each non-empty token maps to its quoted text in the dump.

    Raises ``tokenize.TokenError`` or ``SyntaxError`` for input that cannot be
    tokenized.
    """
    line_starts = line_start_offsets(source)
    parts: list[str] = []
    length = 0
    intervals: list[Interval] = []

    for tok in tokenize.generate_tokens(io.StringIO(source).readline):
        (start_row, start_col), (end_row, end_col) = tok.start, tok.end
        position = f"{start_row}:{start_col}-{end_row}:{end_col}"
        prefix = f"{position:<{_POSITION_WIDTH}}{token.tok_name.get(tok.exact_type, 'OP'):<{_TYPE_WIDTH}}"
        shown = repr(tok.string)
        out_start = length + len(prefix)
        line = f"{prefix}{shown}\n"
        parts.append(line)
        length += len(line)

        if not tok.string:
            continue
        src_start = char_position_to_index(source, line_starts, start_row, start_col)
        src_end = char_position_to_index(source, line_starts, end_row, end_col)
        if src_end > src_start:
            intervals.append(Interval(src_start, src_end, out_start, out_start + len(shown)))

    return "".join(parts), IntervalList(intervals)


class TokenDumpProvider:
    def can_render(self, view_kind: str) -> bool:
        return str(view_kind or "").strip().lower() in TOKEN_VIEW_KINDS

    def render(self, request: FormatRequest) -> FormatResult:
        source_text = str(request.source_text or "")
        try:
            text, intervals = dump_tokens_with_intervals(source_text)
        except (tokenize.TokenError, SyntaxError) as exc:
            message = f"{type(exc).__name__}: {exc}"
            log.debug("token dump failed: %s", message)
            return FormatResult(status="error", message=message, debug_lines=[f"[Tokens] {message}"])
        return FormatResult(
            status="ok",
            output_text=text,
            intervals=intervals,
            debug_lines=[f"[Tokens] {len(intervals)} token intervals"],
        )

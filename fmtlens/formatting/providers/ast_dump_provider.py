"""AST view: an indented ``ast`` dump with leaf-node source intervals."""

from __future__ import annotations

import ast
import logging

from fmtlens.formatting.code_formatting import FormatRequest, FormatResult
from fmtlens.mapping.intervals import Interval, IntervalList
from fmtlens.mapping.text_units import line_start_offsets, utf8_position_to_index

log = logging.getLogger(__name__)

AST_VIEW_KINDS = {"ast"}
INDENT_STEP = 2


def _is_marker(node: ast.AST) -> bool:
    # expr_context, operators and similar carry no fields.
    return not node._fields


def _is_leaf(node: ast.AST) -> bool:
    return not any(not _is_marker(child) for child in ast.iter_child_nodes(node))


def _is_located(node: ast.AST) -> bool:
    return (
        getattr(node, "lineno", None) is not None
        and getattr(node, "end_lineno", None) is not None
        and getattr(node, "col_offset", None) is not None
        and getattr(node, "end_col_offset", None) is not None
    )


def _value_repr(value: object) -> str:
    if isinstance(value, ast.AST):
        return type(value).__name__
    if isinstance(value, list):
        return "[" + ", ".join(_value_repr(item) for item in value) + "]"
    return repr(value)


def _leaf_repr(node: ast.AST) -> str:
    parts = [f"{name}={_value_repr(getattr(node, name, None))}" for name in node._fields]
    return f"{type(node).__name__}({', '.join(parts)})"


class _AstDumpWriter:
    def __init__(self, source: str) -> None:
        self._source = source
        self._line_starts = line_start_offsets(source)
        self._parts: list[str] = []
        self._length = 0
        self.intervals: list[Interval] = []

    def text(self) -> str:
        return "".join(self._parts)

    def _write(self, text: str) -> int:
        start = self._length
        self._parts.append(text)
        self._length += len(text)
        return start

    def _source_range(self, node: ast.AST) -> tuple[int, int]:
        start = utf8_position_to_index(self._source, self._line_starts, node.lineno, node.col_offset)
        end = utf8_position_to_index(self._source, self._line_starts, node.end_lineno, node.end_col_offset)
        return start, max(start, end)

    def write_node(self, node: ast.AST, indent: int) -> None:
        pad = " " * indent
        if _is_leaf(node):
            self._write(pad)
            text = _leaf_repr(node)
            out_start = self._write(text)
            self._write("\n")
            if _is_located(node):
                src_start, src_end = self._source_range(node)
                if src_end > src_start:
                    self.intervals.append(Interval(src_start, src_end, out_start, out_start + len(text)))
            return

        self._write(f"{pad}{type(node).__name__}\n")
        child_pad = " " * (indent + INDENT_STEP)
        for name in node._fields:
            value = getattr(node, name, None)
            if isinstance(value, ast.AST) and not _is_marker(value):
                self._write(f"{child_pad}{name}:\n")
                self.write_node(value, indent + 2 * INDENT_STEP)
            elif isinstance(value, list) and any(isinstance(item, ast.AST) and not _is_marker(item) for item in value):
                self._write(f"{child_pad}{name}:\n")
                for item in value:
                    if isinstance(item, ast.AST) and not _is_marker(item):
                        self.write_node(item, indent + 2 * INDENT_STEP)
                    else:
                        self._write(f"{' ' * (indent + 2 * INDENT_STEP)}{_value_repr(item)}\n")
            else:
                self._write(f"{child_pad}{name}={_value_repr(value)}\n")


def drop_enclosing_intervals(intervals: list[Interval]) -> list[Interval]:
    """Remove intervals whose source range strictly contains another interval's.

    Before Python 3.12 the literal parts of an f-string report the whole
    f-string as their position, which would nest them around the
    placeholders' names. Identical ranges are not nested and are kept.
    """
    ordered = sorted(intervals, key=lambda item: (item.src_start, -item.src_end))
    enclosing: set[tuple[int, int]] = set()
    for index, outer in enumerate(ordered):
        for next_index in range(index + 1, len(ordered)):
            inner = ordered[next_index]
            if inner.src_start >= outer.src_end:
                break
            if inner.src_end <= outer.src_end and inner.source_range != outer.source_range:
                enclosing.add(outer.source_range)
                break
    if not enclosing:
        return intervals
    return [item for item in intervals if item.source_range not in enclosing]


def dump_ast_with_intervals(source: str) -> tuple[str, IntervalList]:
    """Parse ``source`` and return its dump plus one interval per located leaf.

    Raises ``SyntaxError`` for unparsable input.
    """
    tree = ast.parse(source, mode="exec")
    writer = _AstDumpWriter(source)
    writer.write_node(tree, 0)
    return writer.text(), IntervalList(drop_enclosing_intervals(writer.intervals))


class AstDumpProvider:
    def can_render(self, view_kind: str) -> bool:
        return str(view_kind or "").strip().lower() in AST_VIEW_KINDS

    def render(self, request: FormatRequest) -> FormatResult:
        source_text = str(request.source_text or "")
        try:
            text, intervals = dump_ast_with_intervals(source_text)
        except (SyntaxError, ValueError) as exc:
            message = _syntax_error_message(exc)
            log.debug("AST dump failed: %s", message)
            return FormatResult(status="error", message=message, debug_lines=[f"[AST] {message}"])
        return FormatResult(
            status="ok",
            output_text=text,
            intervals=intervals,
            debug_lines=[f"[AST] {len(intervals)} leaf intervals"],
        )


def _syntax_error_message(exc: Exception) -> str:
    if isinstance(exc, SyntaxError):
        where = f" (line {exc.lineno})" if exc.lineno else ""
        return f"{type(exc).__name__}: {exc.msg}{where}"
    return f"{type(exc).__name__}: {exc}"

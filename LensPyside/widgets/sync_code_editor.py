from __future__ import annotations

from typing import Sequence

from PySide6.QtCore import QRect, QSize, Qt, Signal
from PySide6.QtGui import QColor, QFont, QFontDatabase, QPainter, QTextCursor, QTextFormat
from PySide6.QtWidgets import QPlainTextEdit, QTextEdit, QWidget

from fmtlens.mapping.text_units import index_to_utf16_offset, utf16_offset_to_index

_SOURCE_HIGHLIGHT = QColor(59, 130, 246, 64)
_OUTPUT_HIGHLIGHT = QColor(34, 197, 94, 64)


# ---------------- Code Editor with line numbers ----------------

class LineNumberArea(QWidget):
    def __init__(self, editor: "SyncCodeEditor"):
        super().__init__(editor)
        self.codeEditor = editor

    def sizeHint(self):
        return QSize(self.codeEditor.lineNumberAreaWidth(), 0)

    def paintEvent(self, event):
        self.codeEditor.lineNumberAreaPaintEvent(event)


class SyncCodeEditor(QPlainTextEdit):
    """Plain-text editor that reports focus and cursor moves as str offsets.

    Qt positions count UTF-16 code units; everything this widget emits or
    accepts is a Python str index into ``toPlainText()``.
    """

    focusEntered = Signal()
    focusLeft = Signal()
    cursorOffsetChanged = Signal(int)  # str index

    def __init__(self, parent=None, *, highlight_role: str = "source"):
        super().__init__(parent)
        self._editor_background_color = QColor("#1e1e1e")
        self._sync_highlight_color = _OUTPUT_HIGHLIGHT if highlight_role == "output" else _SOURCE_HIGHLIGHT
        self._sync_selections: list[QTextEdit.ExtraSelection] = []
        self._text_cache: str | None = None

        self.setLineWrapMode(QPlainTextEdit.NoWrap)
        self.setTabStopDistance(self.fontMetrics().horizontalAdvance(" ") * 4)
        self.set_editor_font_preferences()

        self.lineNumberArea = LineNumberArea(self)
        self.blockCountChanged.connect(self.updateLineNumberAreaWidth)
        self.updateRequest.connect(self.updateLineNumberArea)
        self.cursorPositionChanged.connect(self.highlightCurrentLine)
        self.cursorPositionChanged.connect(self._emit_cursor_offset)
        self.textChanged.connect(self._invalidate_text_cache)
        self.updateLineNumberAreaWidth(0)
        self.highlightCurrentLine()

    # ---------- sync pane API ----------

    def text(self) -> str:
        if self._text_cache is None:
            self._text_cache = self.toPlainText()
        return self._text_cache

    def set_text(self, text: str) -> None:
        """Replace the content, keeping the scroll position where possible."""
        value = str(text or "")
        if value == self.text():
            return
        bar = self.verticalScrollBar()
        scroll = bar.value()
        self.blockSignals(True)
        try:
            self.setPlainText(value)
        finally:
            self.blockSignals(False)
        self._invalidate_text_cache()
        self.updateLineNumberAreaWidth(0)
        bar.setValue(min(scroll, bar.maximum()))
        self.highlightCurrentLine()

    def cursor_offset(self) -> int:
        return utf16_offset_to_index(self.text(), self.textCursor().position())

    def set_cursor_offset(self, offset: int) -> None:
        cursor = self.textCursor()
        cursor.setPosition(self._qt_position(offset))
        self.setTextCursor(cursor)

    def reveal_offset(self, offset: int) -> None:
        """Scroll so the line holding ``offset`` is centred; the caret does not move."""
        block = self.document().findBlock(self._qt_position(offset))
        if not block.isValid():
            return
        bar = self.verticalScrollBar()
        # For QPlainTextEdit the vertical scroll value is a block number.
        visible_lines = max(1, self.viewport().height() // max(1, self.fontMetrics().height()))
        target = block.firstLineNumber() - visible_lines // 2
        bar.setValue(max(bar.minimum(), min(bar.maximum(), target)))

    def set_sync_highlights(self, ranges: Sequence[tuple[int, int]]) -> None:
        selections: list[QTextEdit.ExtraSelection] = []
        for start, end in ranges:
            sel = QTextEdit.ExtraSelection()
            cur = QTextCursor(self.document())
            cur.setPosition(self._qt_position(start))
            cur.setPosition(self._qt_position(end), QTextCursor.KeepAnchor)
            sel.cursor = cur
            sel.format.setBackground(self._sync_highlight_color)
            selections.append(sel)
        self._sync_selections = selections
        self._rebuild_extra_selections()

    def clear_sync_highlights(self) -> None:
        if not self._sync_selections:
            return
        self._sync_selections = []
        self._rebuild_extra_selections()

    def sync_highlight_ranges(self) -> list[tuple[int, int]]:
        text = self.text()
        return [
            (
                utf16_offset_to_index(text, sel.cursor.selectionStart()),
                utf16_offset_to_index(text, sel.cursor.selectionEnd()),
            )
            for sel in self._sync_selections
        ]

    # ---------- appearance ----------

    def set_editor_font_preferences(self, *, family: str | None = None, point_size: int | None = None) -> None:
        font = QFontDatabase.systemFont(QFontDatabase.FixedFont)
        if family:
            font = QFont(family)
            font.setStyleHint(QFont.Monospace)
        if point_size:
            font.setPointSize(int(point_size))
        self.setFont(font)
        self.setTabStopDistance(self.fontMetrics().horizontalAdvance(" ") * 4)
        self.updateLineNumberAreaWidth(0)

    def lineNumberAreaWidth(self):
        digits = 1
        max_num = max(1, self.blockCount())
        while max_num >= 10:
            max_num //= 10
            digits += 1
        return 6 + self.fontMetrics().horizontalAdvance("9") * digits

    def updateLineNumberAreaWidth(self, _):
        self.setViewportMargins(self.lineNumberAreaWidth(), 0, 0, 0)

    def updateLineNumberArea(self, rect, dy):
        if dy:
            self.lineNumberArea.scroll(0, dy)
        else:
            self.lineNumberArea.update(0, rect.y(), self.lineNumberArea.width(), rect.height())
        if rect.contains(self.viewport().rect()):
            self.updateLineNumberAreaWidth(0)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        cr = self.contentsRect()
        self.lineNumberArea.setGeometry(QRect(cr.left(), cr.top(), self.lineNumberAreaWidth(), cr.height()))

    def lineNumberAreaPaintEvent(self, event):
        painter = QPainter(self.lineNumberArea)
        gutter = QColor(self._editor_background_color).darker(125)
        painter.fillRect(event.rect(), gutter)

        block = self.firstVisibleBlock()
        blockNumber = block.blockNumber()
        top = self.blockBoundingGeometry(block).translated(self.contentOffset()).top()
        bottom = top + self.blockBoundingRect(block).height()
        painter.setPen(QColor(gutter).lighter(155))

        while block.isValid() and top <= event.rect().bottom():
            if block.isVisible() and bottom >= event.rect().top():
                painter.drawText(
                    0,
                    int(top),
                    max(0, self.lineNumberArea.width() - 3),
                    self.fontMetrics().height(),
                    Qt.AlignRight,
                    str(blockNumber + 1),
                )
            block = block.next()
            top = bottom
            bottom = top + self.blockBoundingRect(block).height()
            blockNumber += 1

    def highlightCurrentLine(self):
        self._rebuild_extra_selections()

    def _rebuild_extra_selections(self):
        extraSelections = list(self._sync_selections)
        selection = QTextEdit.ExtraSelection()
        lineColor = QColor(self._editor_background_color).lighter(130)
        lineColor.setAlpha(140)
        selection.format.setBackground(lineColor)
        selection.format.setProperty(QTextFormat.FullWidthSelection, True)
        selection.cursor = self.textCursor()
        selection.cursor.clearSelection()
        extraSelections.insert(0, selection)
        self.setExtraSelections(extraSelections)

    # ---------- events ----------

    def focusInEvent(self, event):
        super().focusInEvent(event)
        self.focusEntered.emit()

    def focusOutEvent(self, event):
        super().focusOutEvent(event)
        self.focusLeft.emit()

    def _emit_cursor_offset(self) -> None:
        self.cursorOffsetChanged.emit(self.cursor_offset())

    def _invalidate_text_cache(self) -> None:
        self._text_cache = None

    def _qt_position(self, offset: int) -> int:
        text = self.text()
        return index_to_utf16_offset(text, offset)

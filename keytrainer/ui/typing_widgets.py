"""Pattern display: one box per token, accepted ones ticked off."""

from __future__ import annotations

from typing import Optional, Sequence

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtWidgets import QWidget

from keytrainer.core.tokens import Token
from keytrainer.ui.colors import TrainerColors, blend_hex


class TokenSequenceWidget(QWidget):
    """Horizontal row of boxes: accepted (filled), current (outlined), upcoming (dim)."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._tokens: list[Token] = []
        self._current_index: int = 0
        self._accent: str = TrainerColors.TARGET
        self.setFixedHeight(80)
        self.setMinimumWidth(200)

    def set_tokens(self, tokens: Sequence[Token]) -> None:
        self._tokens = list(tokens)
        self._current_index = 0
        self.update()

    def set_current(self, index: int) -> None:
        """Set the index of the next expected token (clamped to valid range)."""
        self._current_index = max(0, min(index, len(self._tokens)))
        self.update()

    def set_accent(self, color: str) -> None:
        self._accent = color
        self.update()

    def paintEvent(self, event) -> None:
        super().paintEvent(event)
        if not self._tokens:
            return
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)

        box_size = 56
        spacing = 8
        radius = 10

        total_width = len(self._tokens) * (box_size + spacing) - spacing
        start_x = max(0, (self.width() - total_width) // 2)
        y = (self.height() - box_size) // 2
        done_fill = QColor(blend_hex(TrainerColors.BACKGROUND, self._accent, 0.25))
        for i, token in enumerate(self._tokens):
            x = start_x + i * (box_size + spacing)
            if i < self._current_index:
                painter.setBrush(done_fill)
                painter.setPen(QPen(QColor(self._accent), 2))
                text_color = QColor(self._accent)
            elif i == self._current_index:
                painter.setBrush(QColor(TrainerColors.BOX_UPCOMING))
                painter.setPen(QPen(QColor(TrainerColors.TARGET), 2))
                text_color = QColor(TrainerColors.TARGET)
            else:
                painter.setBrush(QColor(TrainerColors.BOX_UPCOMING))
                painter.setPen(QPen(QColor(TrainerColors.BOX_BORDER), 1))
                text_color = QColor(TrainerColors.INPUT_IDLE)
            painter.drawRoundedRect(x, y, box_size, box_size, radius, radius)
            painter.setPen(text_color)
            font = painter.font()
            font.setPointSize(18 if len(token.icon) < 3 else 12)
            font.setBold(i == self._current_index)
            painter.setFont(font)
            painter.drawText(x, y, box_size, box_size, Qt.AlignCenter, token.icon)

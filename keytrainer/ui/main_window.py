from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QObject, Qt, QTimer
from PySide6.QtGui import QCloseEvent, QFont, QKeyEvent, QMouseEvent
from PySide6.QtWidgets import QLabel, QMainWindow, QVBoxLayout, QWidget

from keytrainer.core.events import AbortSession, BeginSession, InputEvent, TokenInput
from keytrainer.core.orchestrator import (
    EndReason,
    SessionOrchestrator,
    SessionState,
    TrainerUpdate,
    UpdateKind,
)
from keytrainer.core.stats import format_duration
from keytrainer.core.tokens import (
    Token,
    char_token,
    click_token,
    format_for_display,
    function_key_token,
)
from keytrainer.ui.colors import TrainerColors
from keytrainer.ui.typing_widgets import TokenSequenceWidget

_FUNCTION_KEYS = {getattr(Qt.Key, f"Key_F{n}"): n for n in range(1, 13)}
_MOUSE_BUTTONS = {
    Qt.MouseButton.LeftButton: "left",
    Qt.MouseButton.RightButton: "right",
    Qt.MouseButton.MiddleButton: "middle",
}
_START_KEYS = (Qt.Key.Key_Space, Qt.Key.Key_Return, Qt.Key.Key_Enter)


class _TimerCall:
    def __init__(self, timer: QTimer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()
        self._timer.deleteLater()


class QtScheduler:
    """Deferred callbacks on the Qt event loop, one single-shot timer each."""

    def __init__(self, parent: QObject) -> None:
        self._parent = parent

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> _TimerCall:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)

        def fire() -> None:
            timer.deleteLater()
            callback()

        timer.timeout.connect(fire)
        timer.start(max(0, int(delay_ms)))
        return _TimerCall(timer)


class MainWindow(QMainWindow):
    """Full-window input surface for the trainer.

    Every key press and mouse click is turned into an input event and handed
    to the orchestrator; the labels are redrawn from the orchestrator's state
    whenever it reports an update.
    """

    def __init__(self, orchestrator: SessionOrchestrator) -> None:
        super().__init__()
        self._orchestrator = orchestrator
        self._orchestrator.listener = self._on_update

        self.setWindowTitle("⌨️ Keystroke Trainer")
        self.resize(700, 450)
        self._build_ui()
        self._show_idle_state()

    def _build_ui(self) -> None:
        central = QWidget(self)
        central.setStyleSheet(f"background: {TrainerColors.BACKGROUND};")
        central.setFocusPolicy(Qt.StrongFocus)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(24, 24, 24, 24)

        def _label(size: int, bold: bool = False, mono: bool = False) -> QLabel:
            label = QLabel("", central)
            label.setAlignment(Qt.AlignCenter)
            font = QFont("monospace" if mono else label.font().family())
            font.setPointSize(size)
            font.setBold(bold)
            label.setFont(font)
            # Clicks must reach the window so they count as click tokens.
            label.setAttribute(Qt.WA_TransparentForMouseEvents, True)
            return label

        self._pattern_name = _label(28, bold=True)
        self._best_time_label = _label(16)
        self._sequence = TokenSequenceWidget(central)
        self._sequence.setAttribute(Qt.WA_TransparentForMouseEvents, True)
        self._input_display = _label(40, mono=True)
        self._status_label = _label(24, bold=True)
        self._progress_label = _label(18)
        self._hint_label = _label(14)

        layout.addStretch(1)
        layout.addWidget(self._pattern_name)
        layout.addWidget(self._best_time_label)
        layout.addStretch(1)
        layout.addWidget(self._sequence)
        layout.addWidget(self._input_display)
        layout.addStretch(1)
        layout.addWidget(self._status_label)
        layout.addWidget(self._progress_label)
        layout.addStretch(1)
        layout.addWidget(self._hint_label)

        self.setCentralWidget(central)
        central.setFocus()

    @staticmethod
    def _set(label: QLabel, text: str, color: Optional[str] = None) -> None:
        label.setText(text)
        if color is not None:
            label.setStyleSheet(f"color: {color};")

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _dispatch(self, event: InputEvent) -> None:
        self._orchestrator.handle(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        running = self._orchestrator.state is SessionState.RUNNING
        key = event.key()

        if key == Qt.Key.Key_Escape:
            if running:
                self._dispatch(AbortSession())
            return
        if not running:
            if key in _START_KEYS:
                self._dispatch(BeginSession())
            return
        if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
            return

        token: Optional[Token] = None
        if key in _FUNCTION_KEYS:
            token = function_key_token(_FUNCTION_KEYS[key])
        elif key == Qt.Key.Key_Space:
            token = char_token(" ")
        else:
            text = event.text()
            if len(text) == 1 and text.isprintable():
                token = char_token(text)
        if token is None:
            super().keyPressEvent(event)
            return
        self._dispatch(TokenInput(token))

    def mousePressEvent(self, event: QMouseEvent) -> None:
        self.centralWidget().setFocus()
        button = _MOUSE_BUTTONS.get(event.button())
        if button is None or self._orchestrator.state is not SessionState.RUNNING:
            return
        shift = bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)
        self._dispatch(TokenInput(click_token(button, shift)))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _on_update(self, update: TrainerUpdate) -> None:
        if update.kind is UpdateKind.SESSION_STARTED:
            self._set(self._hint_label, "ESC to stop session", TrainerColors.HINT)
        elif update.kind is UpdateKind.PATTERN_LOADED:
            self._show_pattern()
        elif update.kind is UpdateKind.ACCEPTED:
            self._show_input(TrainerColors.INPUT_OK)
        elif update.kind is UpdateKind.RESET:
            expected = format_for_display([update.mistake.expected])
            self._set(self._status_label, f"❌ Expected {expected}", TrainerColors.STATUS_ERROR)
            self._show_input(TrainerColors.STATUS_ERROR)
        elif update.kind is UpdateKind.PATTERN_COMPLETED:
            self._show_completion(update)
        elif update.kind is UpdateKind.SESSION_ENDED:
            self._show_session_end()

    def _show_idle_state(self) -> None:
        self._set(self._pattern_name, "⌨️ Keystroke Trainer", TrainerColors.TITLE)
        self._set(
            self._best_time_label,
            f"{len(self._orchestrator.patterns)} patterns loaded",
            TrainerColors.STATUS_MUTED,
        )
        self._sequence.set_tokens([])
        self._set(self._input_display, "")
        self._set(self._status_label, "Click anywhere to focus", TrainerColors.STATUS_MUTED)
        self._set(self._progress_label, "")
        self._set(self._hint_label, "Press SPACE to start • ESC to stop", TrainerColors.HINT)

    def _show_pattern(self) -> None:
        pattern = self._orchestrator.current_pattern
        self._set(self._pattern_name, pattern.name, TrainerColors.TITLE)
        best = self._orchestrator.stats.best_time(pattern.text)
        if best > 0:
            self._set(self._best_time_label, f"Best: {format_duration(best)}", TrainerColors.GOLD)
        else:
            self._set(self._best_time_label, "No record yet", TrainerColors.NO_RECORD)
        self._sequence.set_accent(TrainerColors.INPUT_OK)
        self._sequence.set_tokens(pattern.tokens)
        self._set(self._input_display, "▌", TrainerColors.INPUT_IDLE)
        self._set(self._status_label, "")
        self._set(
            self._progress_label,
            f"{self._orchestrator.pending_count + 1} patterns remaining",
            TrainerColors.PROGRESS,
        )

    def _show_input(self, color: str) -> None:
        buffer = self._orchestrator.engine.buffer
        self._sequence.set_current(len(buffer))
        if buffer:
            self._set(self._input_display, format_for_display(buffer), color)
        else:
            self._set(self._input_display, "▌", color)

    def _show_completion(self, update: TrainerUpdate) -> None:
        completion = update.completion
        self._sequence.set_current(len(completion.pattern))
        elapsed = format_duration(completion.elapsed)
        if completion.perfect:
            self._sequence.set_accent(TrainerColors.INPUT_PERFECT)
            if update.new_best:
                self._set(self._status_label, f"✅ NEW BEST! {elapsed}", TrainerColors.GOLD)
            else:
                self._set(self._status_label, f"✅ {elapsed}", TrainerColors.INPUT_OK)
            self._show_input(TrainerColors.INPUT_PERFECT)
        else:
            self._sequence.set_accent(TrainerColors.INPUT_RETRY)
            self._set(
                self._status_label,
                f"↻ {completion.reset_count} resets - retry later",
                TrainerColors.STATUS_RETRY,
            )
            self._show_input(TrainerColors.INPUT_RETRY)

    def _show_session_end(self) -> None:
        orch = self._orchestrator
        self._sequence.set_tokens([])
        self._set(self._input_display, "")
        self._set(self._progress_label, "")
        if orch.end_reason is EndReason.COMPLETED:
            elapsed = orch.last_record.duration if orch.last_record else 0
            self._set(self._pattern_name, "🏆 ALL PATTERNS MASTERED!", TrainerColors.GOLD)
            self._set(
                self._best_time_label,
                f"Session time: {format_duration(round(elapsed, -9))}",
                TrainerColors.STATUS_MUTED,
            )
            self._set(
                self._status_label,
                f"{len(orch.patterns)} patterns completed perfectly",
                TrainerColors.INPUT_OK,
            )
            self._set(self._hint_label, "Press SPACE to train again", TrainerColors.HINT)
        else:
            self._set(self._pattern_name, "Session Stopped", TrainerColors.STATUS_RETRY)
            self._set(self._best_time_label, "")
            self._set(
                self._status_label,
                f"Session ended: {orch.patterns_perfect}/{orch.patterns_total} perfect",
                TrainerColors.STATUS_STOPPED,
            )
            self._set(self._hint_label, "Press SPACE to start new session", TrainerColors.HINT)

    def closeEvent(self, event: QCloseEvent) -> None:
        """Close an unfinished session so its record is saved."""
        self._orchestrator.stop()
        super().closeEvent(event)

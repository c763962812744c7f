"""Overlay window showing the listening indicator, transcript and feedback."""

from __future__ import annotations

from models import Phase, RecognitionState

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QWidget, QVBoxLayout
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

_BASE_STYLE = "font-size: 18px; padding: 16px; border-radius: 12px;"
_NORMAL_STYLE = "color: white; background: rgba(0,0,0,190);" + _BASE_STYLE
_ERROR_STYLE = "color: #FF6B6B; background: rgba(0,0,0,210);" + _BASE_STYLE
_HINT_STYLE = "color: #BBBBBB; font-size: 13px; padding: 0 16px 12px 16px;"


def overlay_lines(state: RecognitionState) -> list[str]:
    """Text lines the overlay shows for a session snapshot, top to bottom."""
    lines = []
    if state.phase == Phase.LISTENING:
        lines.append("🎙️ " + (state.transcript or state.feedback_text))
    else:
        # a finished turn keeps its transcript but only shows it next to feedback
        if state.transcript and (state.feedback_text or state.phase != Phase.IDLE):
            lines.append(f"“{state.transcript}”")
        if state.feedback_text:
            prefix = "⚠️ " if state.phase == Phase.ERROR else ""
            lines.append(prefix + state.feedback_text)
    return lines


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(600)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setStyleSheet(_NORMAL_STYLE)
        self._hint = QLabel("")
        self._hint.setWordWrap(True)
        self._hint.setStyleSheet(_HINT_STYLE)

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        layout.addWidget(self._hint)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def render(self, state: RecognitionState) -> None:
        """Mirror a session snapshot; hide once there is nothing to show."""
        lines = overlay_lines(state)
        if not lines:
            self.hide_with_delay(400)
            return
        self._label.setStyleSheet(_ERROR_STYLE if state.phase == Phase.ERROR else _NORMAL_STYLE)
        self._hint.setText(
            "Şunları deneyin: " + ", ".join(state.suggestions) if state.suggestions else ""
        )
        self._hint.setVisible(bool(state.suggestions))
        self.set_text("\n".join(lines))

    def _center_top(self) -> None:
        """Position the window at the top center of the primary screen."""
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        y = geom.y() + 40
        self.move(x, y)

    def set_text(self, text: str) -> None:
        self._cancel_hide_timer()
        self._label.setText(text)
        self._center_top()
        self.show()

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None

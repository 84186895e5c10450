"""
Main Window - The primary application window.

This module provides the main window for AI Photo Edit: the preview
canvas, the Adjust / Presets / AI tabs, and the status bar used for
transient notifications. All editing goes through an EditSession; the
window only forwards user input and shows results.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Coroutine

from PySide6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QGridLayout,
    QSplitter,
    QTabWidget,
    QLabel,
    QSlider,
    QPushButton,
    QPlainTextEdit,
    QFileDialog,
    QInputDialog,
    QLineEdit,
)
from PySide6.QtCore import Qt, QSettings, QObject, QRunnable, QThreadPool, Signal
from PySide6.QtGui import QAction, QKeySequence

from ai_photo_edit.core.ai_edit import AIEditAdapter
from ai_photo_edit.core.session import EditSession, Notification, NotificationLevel
from ai_photo_edit.errors import EditorError
from ai_photo_edit.filters.filter_registry import ChannelSpec, list_channels, list_presets
from ai_photo_edit.providers import ProviderConfig, get_registry
from ai_photo_edit.ui.canvas import ImageCanvas

logger = logging.getLogger(__name__)


IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.webp *.gif *.bmp *.tif *.tiff)"
NOTIFICATION_MS = 3000


class WorkerSignals(QObject):
    done = Signal(object)  # SessionWorker


class SessionWorker(QRunnable):
    """Runs one session coroutine on the thread pool."""

    def __init__(
        self,
        coro_factory: Callable[[], Coroutine[Any, Any, Any]],
        on_finished: Callable[[Any], None],
    ):
        super().__init__()
        self._coro_factory = coro_factory
        self.on_finished = on_finished
        self.result: Any = None
        self.error: Exception | None = None
        self.signals = WorkerSignals()

    def run(self) -> None:
        try:
            self.result = asyncio.run(self._coro_factory())
        except EditorError as e:
            # Already surfaced through the session's notification callback
            self.error = e
        except Exception as e:
            logger.exception("Background operation failed")
            self.error = e
        self.signals.done.emit(self)


class NotificationBridge(QObject):
    """Moves session notifications onto the GUI thread."""
    notified = Signal(object)


class MainWindow(QMainWindow):
    """
    The main application window for AI Photo Edit.

    Contains:
    - Menu bar with File, View and AI menus
    - Central splitter with the preview canvas (left) and tool tabs (right)
    - Status bar for transient notifications
    """

    def __init__(self, session: EditSession | None = None, parent: QWidget | None = None):
        super().__init__(parent)

        self.setWindowTitle("AI Photo Edit")
        self.setMinimumSize(1000, 700)

        self._settings = QSettings("AIPhotoEdit", "AIPhotoEdit")

        self._bridge = NotificationBridge()
        self._bridge.notified.connect(self._show_notification)

        self._session = session or EditSession(adapter=AIEditAdapter.from_registry())
        self._session.set_notify_callback(self._bridge.notified.emit)

        self._sliders: dict[str, tuple[QSlider, QLabel, ChannelSpec]] = {}
        self._workers: set[SessionWorker] = set()

        self._setup_menu_bar()
        self._setup_central_widget()
        self.statusBar().showMessage("Ready")

        self._restore_state()
        self._update_actions()

    @property
    def session(self) -> EditSession:
        return self._session

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    def _setup_menu_bar(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")

        self._open_action = QAction("&Open Photo...", self)
        self._open_action.setShortcut(QKeySequence.StandardKey.Open)
        self._open_action.triggered.connect(self._on_open)
        file_menu.addAction(self._open_action)

        self._export_action = QAction("&Export PNG", self)
        self._export_action.setShortcut(QKeySequence("Ctrl+E"))
        self._export_action.triggered.connect(lambda: self._on_export())
        file_menu.addAction(self._export_action)

        export_to_action = QAction("Export &To...", self)
        export_to_action.triggered.connect(self._on_export_to)
        file_menu.addAction(export_to_action)
        self._export_to_action = export_to_action

        file_menu.addSeparator()

        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        view_menu = menu_bar.addMenu("&View")

        zoom_in = QAction("Zoom &In", self)
        zoom_in.setShortcut(QKeySequence.StandardKey.ZoomIn)
        zoom_in.triggered.connect(lambda: self._canvas.zoom_in())
        view_menu.addAction(zoom_in)

        zoom_out = QAction("Zoom &Out", self)
        zoom_out.setShortcut(QKeySequence.StandardKey.ZoomOut)
        zoom_out.triggered.connect(lambda: self._canvas.zoom_out())
        view_menu.addAction(zoom_out)

        fit = QAction("&Fit to Window", self)
        fit.setShortcut(QKeySequence("Ctrl+0"))
        fit.triggered.connect(lambda: self._canvas.fit_to_view())
        view_menu.addAction(fit)

        ai_menu = menu_bar.addMenu("&AI")

        key_action = QAction("Set Gemini API &Key...", self)
        key_action.triggered.connect(self._on_set_api_key)
        ai_menu.addAction(key_action)

    def _setup_central_widget(self) -> None:
        splitter = QSplitter(Qt.Orientation.Horizontal)

        self._canvas = ImageCanvas()
        splitter.addWidget(self._canvas)

        self._tabs = QTabWidget()
        self._tabs.addTab(self._build_adjust_tab(), "Adjust")
        self._tabs.addTab(self._build_presets_tab(), "Presets")
        self._tabs.addTab(self._build_ai_tab(), "AI")
        self._tabs.setMinimumWidth(280)
        splitter.addWidget(self._tabs)

        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

    def _build_adjust_tab(self) -> QWidget:
        tab = QWidget()
        grid = QGridLayout(tab)

        for row, spec in enumerate(list_channels()):
            label = QLabel(spec.label)
            slider = QSlider(Qt.Orientation.Horizontal)
            # Sliders are integer; scale by the channel step
            slider.setRange(int(spec.min_value / spec.step), int(spec.max_value / spec.step))
            slider.setValue(int(spec.identity / spec.step))
            value_label = QLabel()
            value_label.setMinimumWidth(52)
            slider.valueChanged.connect(
                lambda v, s=spec: self._on_slider_changed(s, v)
            )
            grid.addWidget(label, row, 0)
            grid.addWidget(slider, row, 1)
            grid.addWidget(value_label, row, 2)
            self._sliders[spec.name] = (slider, value_label, spec)
            self._set_value_label(spec, spec.identity)

        reset_button = QPushButton("Reset")
        reset_button.clicked.connect(self._on_reset_filters)
        grid.addWidget(reset_button, len(self._sliders), 0, 1, 3)
        grid.setRowStretch(len(self._sliders) + 1, 1)
        return tab

    def _build_presets_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)
        for preset in list_presets():
            button = QPushButton(preset.name)
            button.setToolTip(preset.description)
            button.clicked.connect(lambda _=False, p=preset: self._on_preset(p))
            layout.addWidget(button)
        layout.addStretch(1)
        return tab

    def _build_ai_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        layout.addWidget(QLabel("Describe the edit"))
        self._prompt_edit = QPlainTextEdit()
        self._prompt_edit.setPlaceholderText("e.g. Add a retro film grain and make the sky sunset orange")
        self._prompt_edit.textChanged.connect(self._update_actions)
        layout.addWidget(self._prompt_edit)

        row = QHBoxLayout()
        self._generate_button = QPushButton("Generate")
        self._generate_button.clicked.connect(self._on_generate)
        row.addStretch(1)
        row.addWidget(self._generate_button)
        layout.addLayout(row)

        self._ai_hint = QLabel("Adjustments are applied before the edit and reset afterwards.")
        self._ai_hint.setWordWrap(True)
        layout.addWidget(self._ai_hint)
        layout.addStretch(1)
        return tab

    # -------------------------------------------------------------------------
    # Session operations
    # -------------------------------------------------------------------------

    def _run(
        self,
        coro_factory: Callable[[], Coroutine[Any, Any, Any]],
        on_finished: Callable[[Any], None],
        busy_text: str = "",
    ) -> None:
        worker = SessionWorker(coro_factory, on_finished)
        worker.signals.done.connect(self._on_worker_done)
        self._workers.add(worker)
        self._canvas.set_busy(busy_text)
        QThreadPool.globalInstance().start(worker)
        self._update_actions()

    def _on_worker_done(self, worker: SessionWorker) -> None:
        self._workers.discard(worker)
        self._canvas.set_busy("")
        if worker.error is None:
            worker.on_finished(worker.result)
        elif not isinstance(worker.error, EditorError):
            self._show_notification(Notification(NotificationLevel.ERROR, str(worker.error)))
        self._update_actions()

    def open_path(self, path: Path) -> None:
        """Load an image file into the session."""
        self._settings.setValue("last_open_dir", str(path.parent))
        self._run(lambda: self._session.load_file(path), self._on_loaded)

    def _on_open(self) -> None:
        start_dir = self._settings.value("last_open_dir", str(Path.home()))
        filename, _ = QFileDialog.getOpenFileName(self, "Open Photo", start_dir, IMAGE_FILTER)
        if filename:
            self.open_path(Path(filename))

    def _on_loaded(self, image) -> None:
        self._sync_sliders()
        self._refresh_preview(keep_view=False)
        self.setWindowTitle(f"AI Photo Edit - {image.width}x{image.height}")

    def _on_export(self, directory: Path | None = None) -> None:
        if directory is None:
            saved = self._settings.value("export_dir", "")
            directory = Path(saved) if saved else None
        self._run(lambda: self._session.export(directory), self._on_exported)

    def _on_export_to(self) -> None:
        start_dir = self._settings.value("export_dir", str(self._session.settings.export_directory))
        chosen = QFileDialog.getExistingDirectory(self, "Export To", start_dir)
        if chosen:
            self._settings.setValue("export_dir", chosen)
            self._on_export(Path(chosen))

    def _on_exported(self, path: Path) -> None:
        logger.info("Saved %s", path)

    def _on_generate(self) -> None:
        instruction = self._prompt_edit.toPlainText()
        self._run(
            lambda: self._session.request_ai_edit(instruction),
            self._on_ai_finished,
            busy_text="Generating...",
        )

    def _on_ai_finished(self, image) -> None:
        if image is None:
            return
        self._prompt_edit.clear()
        self._sync_sliders()
        self._refresh_preview(keep_view=False)

    def _on_set_api_key(self) -> None:
        registry = get_registry()
        config = registry.get_config("gemini")
        key, ok = QInputDialog.getText(
            self, "Gemini API Key", "API key:", QLineEdit.EchoMode.Password, config.api_key
        )
        if not ok:
            return
        registry.set_config("gemini", ProviderConfig(
            api_key=key.strip(),
            enabled=config.enabled,
            base_url=config.base_url,
            default_model=config.default_model,
            extra=config.extra,
        ))
        registry.save_config()
        self._session.adapter = AIEditAdapter.from_registry()
        self._update_actions()
        self.statusBar().showMessage("API key saved", NOTIFICATION_MS)

    # -------------------------------------------------------------------------
    # Filters
    # -------------------------------------------------------------------------

    def _on_slider_changed(self, spec: ChannelSpec, slider_value: int) -> None:
        value = slider_value * spec.step
        try:
            self._session.set_channel(spec.name, value)
        except EditorError:
            return
        self._set_value_label(spec, value)
        self._refresh_preview()

    def _on_preset(self, preset) -> None:
        self._session.apply_preset(preset)
        self._sync_sliders()
        self._refresh_preview()

    def _on_reset_filters(self) -> None:
        self._session.reset_filters()
        self._sync_sliders()
        self._refresh_preview()

    def _sync_sliders(self) -> None:
        filters = self._session.filters
        for name, (slider, _, spec) in self._sliders.items():
            value = getattr(filters, name)
            slider.blockSignals(True)
            slider.setValue(int(round(value / spec.step)))
            slider.blockSignals(False)
            self._set_value_label(spec, value)

    def _set_value_label(self, spec: ChannelSpec, value: float) -> None:
        _, label, _ = self._sliders[spec.name]
        text = f"{value:g}"
        label.setText(f"{text}{spec.unit}")

    def _refresh_preview(self, keep_view: bool = True) -> None:
        base = self._session.base_image
        if base is None:
            return
        frame = self._session.render_preview()
        self._canvas.set_image_from_data(frame, natural_size=base.size, keep_view=keep_view)

    # -------------------------------------------------------------------------
    # Notifications and state
    # -------------------------------------------------------------------------

    def _show_notification(self, notification: Notification) -> None:
        prefix = "Error: " if notification.level is NotificationLevel.ERROR else ""
        self.statusBar().showMessage(f"{prefix}{notification.message}", NOTIFICATION_MS)

    def _update_actions(self) -> None:
        busy = bool(self._workers)
        has_image = self._session.has_image
        self._open_action.setEnabled(not busy)
        self._export_action.setEnabled(has_image and not busy)
        self._export_to_action.setEnabled(has_image and not busy)
        self._generate_button.setEnabled(
            has_image and not busy and bool(self._prompt_edit.toPlainText().strip())
        )
        adapter = self._session.adapter
        if adapter is None or not adapter.is_configured:
            self._ai_hint.setText("Set a Gemini API key (AI menu or GEMINI_API_KEY) to use AI edits.")
        else:
            self._ai_hint.setText("Adjustments are applied before the edit and reset afterwards.")

    def _restore_state(self) -> None:
        geometry = self._settings.value("geometry")
        if geometry:
            self.restoreGeometry(geometry)

    def closeEvent(self, event) -> None:
        self._settings.setValue("geometry", self.saveGeometry())
        self._session.close()
        super().closeEvent(event)

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from PySide6.QtCore import Qt, QSettings, QTimer
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QFileDialog, QHBoxLayout, QLineEdit, QListWidget, QListWidgetItem,
    QMainWindow, QPlainTextEdit, QPushButton, QSplitter, QVBoxLayout, QWidget,
)

from markdown_notes.core.documents import export_filename
from markdown_notes.core.errors import MalformedImport, PersistenceWriteFailure
from markdown_notes.core.models import Note
from markdown_notes.infrastructure.state_store import StateStore
from markdown_notes.logging_setup import get_app_logger
from markdown_notes.services.markdown_renderer import MarkdownRenderer, compute_preview_debounce_ms
from markdown_notes.services.notebook import NotebookService
from markdown_notes.settings import APP_NAME
from markdown_notes.ui import dialogs
from markdown_notes.ui.qt_utils import QtDebounceTimer, blocked_signals
from markdown_notes.ui.ui_state import UiStateStore

log = get_app_logger()

NOTE_ID_ROLE = Qt.UserRole

QT_THEMES = {
    "light": "",
    "dark": """
        QWidget { background: #161b22; color: #e6edf3; }
        QLineEdit, QPlainTextEdit, QListWidget { background: #0d1117; border: 1px solid #30363d; }
        QListWidget::item:selected { background: #1f6feb; }
        QPushButton { background: #21262d; border: 1px solid #30363d; padding: 4px 10px; }
        QPushButton:disabled { color: #6e7681; }
    """,
}


def _fmt_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


class NotesWindow(QMainWindow):
    def __init__(self, *, state_path: Path):
        super().__init__()
        self.setWindowTitle("Markdown Notes")

        self.service = NotebookService(
            store=StateStore(state_path),
            timer=QtDebounceTimer(self),
            on_note_flushed=self._on_note_flushed,
            on_persist_error=self._on_persist_error,
        )
        self.renderer = MarkdownRenderer()

        self._build_ui()
        self._build_menu()

        self._settings = QSettings(APP_NAME, APP_NAME)
        self._ui_state = UiStateStore(owner=self, settings=self._settings)
        self._ui_state.restore(splitter=self.splitter, editor_splitter=self.editor_splitter)
        self.splitter.splitterMoved.connect(lambda *_: self._ui_state.schedule_save())
        self.editor_splitter.splitterMoved.connect(lambda *_: self._ui_state.schedule_save())

        # Preview debounce (markdown is not rendered on every keystroke)
        self.preview_timer = QTimer(self)
        self.preview_timer.setSingleShot(True)
        self.preview_timer.timeout.connect(self._render_preview_from_editor)

        self.service.load()
        self._apply_theme(self.service.theme)
        self._apply_sidebar(self.service.sidebar_collapsed)
        self.render_note_list()
        self.load_active_note()

    # ───────────────────────── layout ─────────────────────────

    def _build_ui(self) -> None:
        self.new_btn = QPushButton("New note")
        self.theme_btn = QPushButton()
        self.hide_sidebar_btn = QPushButton("«")
        self.hide_sidebar_btn.setToolTip("Hide sidebar")
        self.search = QLineEdit()
        self.search.setPlaceholderText("Search notes…")
        self.search.setClearButtonEnabled(True)
        self.listw = QListWidget()
        self.import_btn = QPushButton("Import")
        self.export_btn = QPushButton("Export")

        top = QHBoxLayout()
        top.addWidget(self.new_btn, 1)
        top.addWidget(self.theme_btn)
        top.addWidget(self.hide_sidebar_btn)
        bottom = QHBoxLayout()
        bottom.addWidget(self.import_btn)
        bottom.addWidget(self.export_btn)

        self.sidebar = QWidget()
        side_layout = QVBoxLayout(self.sidebar)
        side_layout.setContentsMargins(8, 8, 8, 8)
        side_layout.addLayout(top)
        side_layout.addWidget(self.search)
        side_layout.addWidget(self.listw, 1)
        side_layout.addLayout(bottom)

        self.show_sidebar_btn = QPushButton("»")
        self.show_sidebar_btn.setToolTip("Show sidebar")
        self.title_input = QLineEdit()
        self.favorite_btn = QPushButton("☆")
        self.favorite_btn.setToolTip("Favorite")
        self.pdf_btn = QPushButton("PDF")
        self.pdf_btn.setToolTip("Export note as PDF")
        self.delete_btn = QPushButton("Delete")

        header = QHBoxLayout()
        header.addWidget(self.show_sidebar_btn)
        header.addWidget(self.title_input, 1)
        header.addWidget(self.favorite_btn)
        header.addWidget(self.pdf_btn)
        header.addWidget(self.delete_btn)

        self.editor = QPlainTextEdit()
        self.preview = QWebEngineView()
        self.editor_splitter = QSplitter(Qt.Horizontal)
        self.editor_splitter.addWidget(self.editor)
        self.editor_splitter.addWidget(self.preview)
        self.editor_splitter.setChildrenCollapsible(False)

        main = QWidget()
        main_layout = QVBoxLayout(main)
        main_layout.setContentsMargins(8, 8, 8, 8)
        main_layout.addLayout(header)
        main_layout.addWidget(self.editor_splitter, 1)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.addWidget(self.sidebar)
        self.splitter.addWidget(main)
        self.splitter.setStretchFactor(0, 1)
        self.splitter.setStretchFactor(1, 4)
        self.setCentralWidget(self.splitter)

        self.new_btn.clicked.connect(self.create_note)
        self.delete_btn.clicked.connect(self.delete_active_note)
        self.theme_btn.clicked.connect(self.toggle_theme)
        self.hide_sidebar_btn.clicked.connect(self.toggle_sidebar)
        self.show_sidebar_btn.clicked.connect(self.toggle_sidebar)
        self.favorite_btn.clicked.connect(self.toggle_favorite)
        self.pdf_btn.clicked.connect(self.export_active_note_pdf)
        self.import_btn.clicked.connect(self.import_notes)
        self.export_btn.clicked.connect(self.export_notes)
        self.search.textChanged.connect(self._on_search)
        self.listw.itemClicked.connect(self._on_item_clicked)
        self.title_input.textEdited.connect(self._on_title_edited)
        self.editor.textChanged.connect(self._on_text_changed)

    def _build_menu(self) -> None:
        filem = self.menuBar().addMenu("File")

        act_new = QAction("New note", self)
        act_new.setShortcut(QKeySequence.New)
        act_new.triggered.connect(self.create_note)

        act_save = QAction("Save now", self)
        act_save.setShortcut(QKeySequence.Save)
        act_save.triggered.connect(self.save_now)

        act_import = QAction("Import…", self)
        act_import.triggered.connect(self.import_notes)
        act_export = QAction("Export…", self)
        act_export.triggered.connect(self.export_notes)

        act_find = QAction("Search", self)
        act_find.setShortcut(QKeySequence.Find)
        act_find.triggered.connect(lambda: self.search.setFocus())

        filem.addAction(act_new)
        filem.addAction(act_save)
        filem.addSeparator()
        filem.addAction(act_import)
        filem.addAction(act_export)
        filem.addSeparator()
        filem.addAction(act_find)

    # ───────────────────────── list ─────────────────────────

    def render_note_list(self, notes: list[Note] | None = None) -> None:
        if notes is None:
            notes = self.service.search(self.search.text())
        active_id = self.service.repository.active_note_id
        with blocked_signals(self.listw):
            self.listw.clear()
            for note in notes:
                item = QListWidgetItem(self._item_text(note))
                item.setData(NOTE_ID_ROLE, note.id)
                self.listw.addItem(item)
                if note.id == active_id:
                    self.listw.setCurrentItem(item)
        self._update_controls()

    @staticmethod
    def _item_text(note: Note) -> str:
        star = "★ " if note.favorite else ""
        return f"{star}{note.title or 'Untitled'}\n{_fmt_ms(note.updated_at)}"

    def _find_item(self, note_id: str) -> QListWidgetItem | None:
        for i in range(self.listw.count()):
            item = self.listw.item(i)
            if item.data(NOTE_ID_ROLE) == note_id:
                return item
        return None

    def _update_note_in_list(self, note_id: str) -> None:
        note = self.service.repository.find(note_id)
        item = self._find_item(note_id)
        if note is not None and item is not None:
            item.setText(self._item_text(note))

    def _update_controls(self) -> None:
        note = self.service.active_note()
        enabled = note is not None
        for w in (self.title_input, self.editor, self.delete_btn, self.pdf_btn, self.favorite_btn):
            w.setEnabled(enabled)
        self.favorite_btn.setText("★" if note is not None and note.favorite else "☆")

    # ───────────────────────── editor ─────────────────────────

    def load_active_note(self) -> None:
        self.preview_timer.stop()
        note = self.service.active_note()
        with blocked_signals(self.title_input), blocked_signals(self.editor):
            if note is not None:
                self.title_input.setText(note.title)
                self.editor.setPlainText(note.content)
            else:
                self.title_input.clear()
                self.title_input.setPlaceholderText("Select or create a note")
                self.editor.clear()
        self._render_preview(note.content if note is not None else "")
        self._update_controls()

    def _on_title_edited(self, text: str) -> None:
        note_id = self.service.repository.active_note_id
        if note_id:
            self._run(self.service.edit_note, note_id, "title", text)

    def _on_text_changed(self) -> None:
        note_id = self.service.repository.active_note_id
        if not note_id:
            return
        text = self.editor.toPlainText()
        self.preview_timer.start(compute_preview_debounce_ms(len(text)))
        self._run(self.service.edit_note, note_id, "content", text)

    def _render_preview_from_editor(self) -> None:
        self._render_preview(self.editor.toPlainText())

    def _render_preview(self, text: str) -> None:
        self.preview.setHtml(self.renderer.render_page(text))

    # ───────────────────────── service callbacks ─────────────────────────

    def _on_note_flushed(self, note_id: str | None) -> None:
        if note_id:
            self._update_note_in_list(note_id)

    def _on_persist_error(self, exc: PersistenceWriteFailure) -> None:
        dialogs.show_error(
            self, "Save failed",
            f"{exc}\n\nYour edits are kept in memory; a recovery copy was attempted.",
        )

    # ───────────────────────── actions ─────────────────────────

    def _run(self, action, *args):
        """Run a discrete notebook action; persistence failures are shown, not raised."""
        try:
            return action(*args)
        except PersistenceWriteFailure as e:
            log.error("Action %s failed to persist: %s", getattr(action, "__name__", action), e)
            self._on_persist_error(e)
            return None

    def create_note(self) -> None:
        self._run(self.service.create_note)
        with blocked_signals(self.search):
            self.search.clear()
        self.render_note_list()
        self.load_active_note()
        self.title_input.setFocus()
        self.title_input.selectAll()

    def delete_active_note(self) -> None:
        note = self.service.active_note()
        if note is None:
            return
        if not dialogs.confirm_delete(self, note.title):
            return
        self._run(self.service.delete_note, note.id)
        self.render_note_list()
        self.load_active_note()

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        note_id = item.data(NOTE_ID_ROLE)
        if note_id == self.service.repository.active_note_id:
            return
        self._run(self.service.select_note, note_id)
        self.load_active_note()

    def _on_search(self, query: str) -> None:
        self.render_note_list(self.service.search(query))

    def toggle_favorite(self) -> None:
        note = self.service.active_note()
        if note is not None:
            self._run(self.service.toggle_favorite, note.id)
            self._update_note_in_list(note.id)
            self._update_controls()

    def toggle_theme(self) -> None:
        self._run(self.service.toggle_theme)
        self._apply_theme(self.service.theme)
        self._render_preview(self.editor.toPlainText())

    def _apply_theme(self, theme: str) -> None:
        self.setStyleSheet(QT_THEMES.get(theme, ""))
        self.renderer.theme = theme
        self.theme_btn.setText("☾" if theme == "light" else "☀")
        self.theme_btn.setToolTip("Dark theme" if theme == "light" else "Light theme")

    def toggle_sidebar(self) -> None:
        self._run(self.service.set_sidebar_collapsed, not self.service.sidebar_collapsed)
        self._apply_sidebar(self.service.sidebar_collapsed)

    def _apply_sidebar(self, collapsed: bool) -> None:
        self.sidebar.setVisible(not collapsed)
        self.show_sidebar_btn.setVisible(collapsed)

    def save_now(self) -> None:
        self._run(self.service.autosave.flush_now)

    # ───────────────────────── import / export ─────────────────────────

    def export_notes(self) -> None:
        default = str(Path.home() / export_filename())
        path, _ = QFileDialog.getSaveFileName(self, "Export notes", default, "JSON (*.json)")
        if not path:
            return
        try:
            self.service.export_to(Path(path))
        except OSError as e:
            log.exception("Export failed: %s", path)
            dialogs.show_error(self, "Export failed", str(e))

    def import_notes(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Import notes", str(Path.home()), "JSON (*.json)")
        if not path:
            return
        try:
            raw = Path(path).read_bytes()
            state = self.service.parse_import(raw)
        except OSError as e:
            log.warning("Import read failed: %s (%s)", path, e)
            dialogs.show_warning(self, "Import", f"Error reading backup file.\n\n{e}")
            return
        except MalformedImport as e:
            log.warning("Import rejected: %s (%s)", path, e)
            dialogs.show_warning(self, "Import", str(e))
            return

        if not dialogs.confirm_import(self, len(state.notes)):
            return

        self._run(self.service.apply_import, state)
        self._apply_theme(self.service.theme)
        self._apply_sidebar(self.service.sidebar_collapsed)
        with blocked_signals(self.search):
            self.search.clear()
        self.render_note_list()
        self.load_active_note()
        dialogs.show_info(self, "Import", "Notes imported successfully!")

    def export_active_note_pdf(self) -> None:
        note = self.service.active_note()
        if note is None:
            return
        default = str(Path.home() / f"{note.title or 'note'}.pdf")
        path, _ = QFileDialog.getSaveFileName(self, "Export note as PDF", default, "PDF (*.pdf)")
        if not path:
            return
        # render what is on screen now, not what the debounce will show later
        self.preview_timer.stop()
        self._render_preview_from_editor()
        self.preview.loadFinished.connect(
            lambda ok, p=path: self._print_pdf(p), type=Qt.ConnectionType.SingleShotConnection
        )

    def _print_pdf(self, path: str) -> None:
        self.preview.page().printToPdf(path)
        log.info("Note exported to PDF: %s", path)

    # ───────────────────────── Qt events ─────────────────────────

    def closeEvent(self, event):  # type: ignore[override]
        """Persist edits still waiting for the autosave timer."""
        self.preview_timer.stop()
        self._run(self.service.close)
        self._ui_state.save()
        super().closeEvent(event)

    def resizeEvent(self, event):  # type: ignore[override]
        super().resizeEvent(event)
        if hasattr(self, "_ui_state"):
            self._ui_state.schedule_save()

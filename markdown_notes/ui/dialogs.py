from __future__ import annotations

from PySide6.QtWidgets import QMessageBox, QWidget


def confirm(parent: QWidget, title: str, text: str) -> bool:
    answer = QMessageBox.question(
        parent,
        title,
        text,
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return answer == QMessageBox.Yes


def confirm_delete(parent: QWidget, note_title: str) -> bool:
    return confirm(parent, "Delete note", f'Are you sure you want to delete "{note_title}"?')


def confirm_import(parent: QWidget, notes_count: int) -> bool:
    return confirm(
        parent,
        "Import notes",
        f"This will overwrite your current notes with {notes_count} imported note(s). Are you sure?",
    )


def show_error(parent: QWidget, title: str, text: str) -> None:
    QMessageBox.critical(parent, title, text)


def show_warning(parent: QWidget, title: str, text: str) -> None:
    QMessageBox.warning(parent, title, text)


def show_info(parent: QWidget, title: str, text: str) -> None:
    QMessageBox.information(parent, title, text)

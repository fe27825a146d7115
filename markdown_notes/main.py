from __future__ import annotations

import argparse
import sys
from pathlib import Path

from markdown_notes.settings import STATE_PATH


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Markdown notes with live preview")
    p.add_argument(
        "--data-file",
        type=Path,
        default=STATE_PATH,
        help="Path to the notes state file (JSON)",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    from PySide6.QtWidgets import QApplication

    from markdown_notes.logging_setup import SESSION_ID, get_app_logger, install_global_exception_hooks
    from markdown_notes.ui.main_window import NotesWindow

    log = get_app_logger()
    install_global_exception_hooks(log)

    app = QApplication(sys.argv[:1])
    win = NotesWindow(state_path=args.data_file)
    win.show()
    log.info("Application started: data_file=%s sid=%s", args.data_file, SESSION_ID)
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())

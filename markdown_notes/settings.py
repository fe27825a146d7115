from __future__ import annotations
from pathlib import Path

APP_NAME = "markdown-notes"
LOGGER_NAME = "markdown_notes"

APP_DIR = Path.home() / f".{APP_NAME}"
LOG_DIR = APP_DIR / "logs"
LOG_PATH = LOG_DIR / f"{APP_NAME}.log"
RECOVERY_DIR = APP_DIR / "recovery"
STATE_PATH = APP_DIR / "state.json"

AUTOSAVE_DEBOUNCE_MS = 500

# Preview debounce grows with note size: 150..650ms
PREVIEW_DEBOUNCE_MS_MIN = 150
PREVIEW_DEBOUNCE_MS_MAX_ADD = 500
PREVIEW_DEBOUNCE_MS_CHARS_PER_STEP = 2000

DEFAULT_NOTE_TITLE = "Untitled Note"
DEFAULT_NOTE_CONTENT = "# New Note\n\nStart writing!"
DEFAULT_THEME = "light"
THEMES = ("light", "dark")

EXPORT_FILE_PREFIX = "markdown-notes-backup"

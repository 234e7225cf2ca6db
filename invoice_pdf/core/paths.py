from __future__ import annotations

import os
import sys
from pathlib import Path

# Overrides the default export folder (~/Documents/Invoices)
OUTPUT_DIR_ENV = "INVOICE_PDF_OUTPUT_DIR"


def _project_root() -> Path:
    """Bundled resources live under sys._MEIPASS when frozen, else at the project root."""
    meipass = getattr(sys, "_MEIPASS", None)
    if getattr(sys, "frozen", False) and meipass:
        return Path(meipass)
    return Path(__file__).resolve().parents[2]


def resource_path(rel: str | Path) -> Path:
    """Resolve a bundled resource such as 'assets/fonts/NotoSans-Regular.ttf'."""
    return _project_root() / Path(rel)


def settings_path() -> Path:
    """settings.json next to the frozen executable, or at the project root in dev."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent / "settings.json"
    return _project_root() / "settings.json"


def default_output_dir() -> Path:
    env = os.environ.get(OUTPUT_DIR_ENV, "").strip()
    if env:
        return Path(env).expanduser()
    return Path.home() / "Documents" / "Invoices"

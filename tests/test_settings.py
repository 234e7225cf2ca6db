from __future__ import annotations

import json
from pathlib import Path

from invoice_pdf.core.settings import Settings, load_settings, save_settings


def test_missing_file_writes_defaults(tmp_path: Path) -> None:
    p = tmp_path / "conf" / "settings.json"
    s = load_settings(p)
    assert s == Settings()
    assert p.exists()
    assert json.loads(p.read_text(encoding="utf-8"))["paper_format"] == "A4"


def test_round_trip(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    save_settings(Settings(paper_format="LETTER", currency="EUR", wrap_descriptions=False), p)
    s = load_settings(p)
    assert s.paper_format == "LETTER"
    assert s.currency == "EUR"
    assert s.wrap_descriptions is False
    assert not (tmp_path / "settings.json.tmp").exists()


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({"currency": "GBP", "theme": "dark"}), encoding="utf-8")
    s = load_settings(p)
    assert s.currency == "GBP"
    assert s.paper_format == "A4"


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    p.write_text("{not json", encoding="utf-8")
    assert load_settings(p) == Settings()
    # not overwritten
    assert p.read_text(encoding="utf-8") == "{not json"

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from sqlalchemy import text


# Daily sequences live in the caller's database; nothing is kept per process.

def _exec(db_session: Any, sql: str, params: dict | None = None):
	return db_session.execute(text(sql), params or {})


def _ensure_table(db_session: Any) -> None:
	"""Create the sequences table if it doesn't exist (SQLite-safe)."""
	sql = (
		"CREATE TABLE IF NOT EXISTS invoice_sequences ("
		" prefix TEXT PRIMARY KEY,"
		" last INTEGER NOT NULL"
		")"
	)
	_exec(db_session, sql)


def _day_key(prefix: str, on: Optional[date]) -> str:
	day = on or date.today()
	return f"{prefix}{day.strftime('%Y%m%d')}-"


def _format(key: str, n: int, width: int = 3) -> str:
	return f"{key}{n:0{width}d}"


def next_invoice_number(db_session: Any, on: Optional[date] = None, prefix: str = "INV-") -> str:
	"""
	Return the next number of the day like 'INV-20260105-001', persisted in the DB.

	Expects a SQLAlchemy Session or Connection with execute() and commit().
	"""
	key = _day_key(prefix, on)
	_ensure_table(db_session)

	updated = _exec(
		db_session,
		"UPDATE invoice_sequences SET last = last + 1 WHERE prefix = :p",
		{"p": key},
	)

	if updated.rowcount == 0:
		_exec(
			db_session,
			"INSERT INTO invoice_sequences(prefix, last) VALUES (:p, :val)",
			{"p": key, "val": 1},
		)
		current = 1
	else:
		row = _exec(
			db_session,
			"SELECT last FROM invoice_sequences WHERE prefix = :p",
			{"p": key},
		).fetchone()
		current = int(row[0])

	db_session.commit()
	return _format(key, current)


def peek_next_invoice_number(db_session: Any, on: Optional[date] = None, prefix: str = "INV-") -> str:
	"""Return the next number of the day without mutating the sequence."""
	key = _day_key(prefix, on)
	_ensure_table(db_session)

	row = _exec(
		db_session,
		"SELECT last FROM invoice_sequences WHERE prefix = :p",
		{"p": key},
	).fetchone()
	last = int(row[0]) if row and row[0] is not None else 0
	return _format(key, last + 1)

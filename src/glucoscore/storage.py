"""Persistencia SQLite para configuracion y puntajes diarios."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from glucoscore.consolidate import DAY_COLUMNS
from glucoscore.writer import SCORE_METRIC, ScoreWriter

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS day_scores (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject TEXT NOT NULL,
    day TEXT NOT NULL,
    metric TEXT NOT NULL,
    value REAL NOT NULL,
    written_at TEXT NOT NULL
);
"""


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la herramienta."""

    readings_root: str
    events_file: str
    export_dir: str
    subject: str
    glucose_field: str
    selected_fields: list[str]


class SQLiteStore(ScoreWriter):
    """Repositorio SQLite; guarda cada puntaje diario una sola vez."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            self._migrate(conn)
            conn.commit()

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """Drop duplicate day scores, then enforce one row per key."""
        removed = conn.execute(
            """
            DELETE FROM day_scores
            WHERE id NOT IN (
                SELECT MIN(id) FROM day_scores
                GROUP BY subject, day, metric
            )
            """
        ).rowcount
        if removed:
            logger.warning("Removed %d duplicate day scores", removed)
        conn.execute(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS idx_day_scores_key
            ON day_scores(subject, day, metric)
            """
        )

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        defaults = {
            "readings_root": "",
            "events_file": "",
            "export_dir": "",
            "subject": "default",
            "glucose_field": "mmol/L",
            "selected_fields": json.dumps(_default_fields()),
        }
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        merged = {**defaults, **values}
        return AppConfig(
            readings_root=merged["readings_root"],
            events_file=merged["events_file"],
            export_dir=merged["export_dir"],
            subject=merged["subject"],
            glucose_field=merged["glucose_field"],
            selected_fields=_parse_json_list(merged["selected_fields"]),
        )

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {
            "readings_root": config.readings_root,
            "events_file": config.events_file,
            "export_dir": config.export_dir,
            "subject": config.subject,
            "glucose_field": config.glucose_field,
            "selected_fields": json.dumps(config.selected_fields),
        }
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    def write_score(
        self,
        subject: str,
        day: date,
        value: float,
        metric: str = SCORE_METRIC,
    ) -> bool:
        """Insert the score unless ``(subject, day, metric)`` is already stored."""
        written_at = datetime.now().isoformat(timespec="seconds")
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO day_scores(
                    subject, day, metric, value, written_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (subject, day.isoformat(), metric, float(value), written_at),
            )
            conn.commit()
        inserted = cur.rowcount == 1
        if inserted:
            logger.info("Stored %s=%.4f for %s on %s", metric, value, subject, day)
        return inserted

    def load_scores(self, subject: str) -> pd.DataFrame:
        """Carga los puntajes guardados de un sujeto como DataFrame."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT day, metric, value, written_at
                FROM day_scores
                WHERE subject = ?
                ORDER BY day, metric
                """,
                (subject,),
            ).fetchall()

        out = pd.DataFrame([dict(row) for row in rows])
        if out.empty:
            return pd.DataFrame(columns=["day", "metric", "value", "written_at"])
        out["day"] = pd.to_datetime(out["day"], errors="coerce").dt.date
        return out


def _default_fields() -> list[str]:
    return list(DAY_COLUMNS)


def _parse_json_list(raw: str) -> list[str]:
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError:
        return _default_fields()
    if not isinstance(parsed, list):
        return _default_fields()
    out = [str(item) for item in parsed]
    return out or _default_fields()

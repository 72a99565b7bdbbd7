"""CLI: puntaje diario y por comida a partir de Accu-Chek + registro de eventos."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import pandas as pd
from dateutil import tz

from glucoscore.config import DEFAULT_CONFIG
from glucoscore.consolidate import (
    DAY_COLUMNS,
    closed_days,
    day_scores_frame,
    event_scores_frame,
    score_days,
)
from glucoscore.event import analyze_events
from glucoscore.excel_writer import ExcelLayout, write_scores_xlsx
from glucoscore.model import Event
from glucoscore.sources.accuchek import AccuChekPaths, AccuChekSource
from glucoscore.sources.events import EventLogPaths, EventLogSource
from glucoscore.storage import AppConfig, SQLiteStore
from glucoscore.units import detect_unit
from glucoscore.writer import persist_closed_days

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments.

    Path and subject options fall back to the configuration stored in the
    database when omitted.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Puntaje metabólico diario y por comida (Accu-Chek)."
    )
    parser.add_argument(
        "--db",
        default=str(Path.cwd() / "glucoscore.sqlite3"),
        help="Base SQLite (default: ./glucoscore.sqlite3).",
    )
    parser.add_argument("--readings-dir", help="Carpeta con accuchek_*.json.")
    parser.add_argument(
        "--events",
        help="CSV de comidas/insulina (default: lecturas con tag antes de comida).",
    )
    parser.add_argument("--out-dir", help="Directorio de salida del Excel.")
    parser.add_argument("--subject", help="Identificador del paciente.")
    parser.add_argument(
        "--field",
        choices=["mmol/L", "mg/dL"],
        help="Campo de glucosa a leer del JSON.",
    )
    parser.add_argument(
        "--fields",
        type=_parse_fields,
        help="Columnas de la hoja diaria, separadas por coma (default: todas).",
    )
    parser.add_argument(
        "--timezone",
        default=None,
        help="Zona horaria IANA (default: la del sistema).",
    )
    parser.add_argument(
        "--zone-hours",
        type=float,
        default=DEFAULT_CONFIG.zone_length_hours,
        help="Horas analizadas después de cada comida (default: 3).",
    )
    parser.add_argument(
        "--ambiguity-margin",
        type=float,
        default=None,
        help="Rechaza series cuyo promedio esté a menos de este margen de 30.",
    )
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Guarda las opciones de rutas/sujeto en la base.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args()


def configure_logging(level: str) -> None:
    """Send log records to stderr at ``level``."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_fields(raw: str) -> list[str]:
    fields = [f.strip() for f in raw.split(",") if f.strip()]
    unknown = [f for f in fields if f not in DAY_COLUMNS]
    if not fields:
        raise argparse.ArgumentTypeError("No day columns given")
    if unknown:
        raise argparse.ArgumentTypeError(
            f"Unknown day columns {unknown}; choose from {', '.join(DAY_COLUMNS)}"
        )
    return fields


def _merge_config(ns: argparse.Namespace, stored: AppConfig) -> AppConfig:
    return replace(
        stored,
        readings_root=ns.readings_dir or stored.readings_root,
        events_file=ns.events or stored.events_file,
        export_dir=ns.out_dir or stored.export_dir,
        subject=ns.subject or stored.subject,
        glucose_field=ns.field or stored.glucose_field,
        selected_fields=ns.fields or stored.selected_fields,
    )


def _filter_columns(df: pd.DataFrame, selected_fields: list[str]) -> pd.DataFrame:
    cols = [field for field in selected_fields if field in df.columns]
    if not cols:
        return df.copy()
    return df.loc[:, cols].copy()


def main() -> int:
    """Run the scoring CLI.

    Returns:
        Exit code (0 on success).
    """
    ns = parse_args()
    configure_logging(ns.log_level)
    local_tz = tz.gettz(ns.timezone) if ns.timezone else tz.tzlocal()
    if local_tz is None:
        raise ValueError(f"Unknown timezone {ns.timezone!r}")

    store = SQLiteStore(Path(ns.db).expanduser())
    config = _merge_config(ns, store.load_config())
    if ns.save_config:
        store.save_config(config)
    if not config.readings_root:
        raise ValueError("No readings directory given or stored")

    scoring = replace(
        DEFAULT_CONFIG,
        zone_length_hours=ns.zone_hours,
        ambiguity_margin=ns.ambiguity_margin,
    )

    acc = AccuChekSource(
        AccuChekPaths(root=Path(config.readings_root).expanduser()), local_tz
    )
    acc.validate()
    acc_file = acc.newest_json()
    points = acc.load_points(acc_file, field=config.glucose_field)

    events: list[Event]
    if config.events_file:
        log = EventLogSource(
            EventLogPaths(root=Path(config.events_file).expanduser()), local_tz
        )
        log.validate()
        events = log.load_events()
    else:
        events = acc.load_tag_events(acc_file)

    unit = detect_unit(points, scoring)
    day_scores = score_days(points, unit=unit, config=scoring)
    event_scores = analyze_events(points, events, unit=unit, config=scoring)

    now = datetime.now(tz=local_tz)
    closed = closed_days(day_scores, now.date())
    written = persist_closed_days(store, config.subject, closed, now.date())

    day_df = _filter_columns(day_scores_frame(day_scores), config.selected_fields)
    event_df = event_scores_frame(event_scores)
    out_dir = (
        Path(config.export_dir).expanduser()
        if config.export_dir
        else Path.cwd() / "salidas"
    )
    out_path = out_dir / f"puntaje_glucosa_{now.strftime('%Y-%m-%d_%H-%M-%S')}.xlsx"
    write_scores_xlsx(day_df, event_df, out_path, ExcelLayout())

    logger.info("Detected unit %s over %d readings", unit.value, len(points))
    print(f"OK: AccuChek file: {acc_file}")
    print(
        f"OK: Days scored: {len(day_scores)} "
        f"({len(closed)} closed, {len(written)} newly stored)"
    )
    print(f"OK: Events scored: {len(event_scores)} of {len(events)}")
    print(f"OK: Output: {out_path}")
    return 0

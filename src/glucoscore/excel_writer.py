"""Generacion de Excel formateado con puntajes diarios y por comida."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

_DIA_SEMANA: tuple[str, ...] = ("lun", "mar", "mie", "jue", "vie", "sab", "dom")

_HEADER_MAP: dict[str, str] = {
    "weekday": "Día",
    "date": "Fecha",
    "unit": "Unidad",
    "count": "Lecturas",
    "average": "Promedio",
    "standard_deviation": "Desvío",
    "variability_pct": "Variabilidad\n(%)",
    "percent_in_range": "En rango\n(%)",
    "below_count": "Bajo rango",
    "in_range_count": "En rango",
    "above_count": "Sobre rango",
    "avg_score": "Puntaje\npromedio",
    "composite_score": "Puntaje",
    "peak": "Pico",
    "delta": "Delta",
    "event_timestamp": "Fecha / Hora",
    "label": "Evento",
    "baseline_value": "Basal",
    "peak_value": "Pico",
    "peak_timestamp": "Hora pico",
    "time_to_baseline_minutes": "Minutos a\nbasal",
    "time_score": "Puntaje\ntiempo",
    "peak_score": "Puntaje\npico",
    "delta_score": "Puntaje\ndelta",
}

_WIDTHS: dict[str, int] = {
    "Día": 6,
    "Fecha": 12,
    "Fecha / Hora": 18,
    "Hora pico": 18,
    "Evento": 20,
    "Variabilidad\n(%)": 12,
    "En rango\n(%)": 10,
}

_NUMBER_FORMATS: dict[str, str] = {
    "Fecha": "dd/mm/yyyy",
    "Fecha / Hora": "dd/mm/yyyy hh:mm",
    "Hora pico": "dd/mm/yyyy hh:mm",
    "Promedio": "0.00",
    "Desvío": "0.00",
    "Variabilidad\n(%)": "0.0",
    "En rango\n(%)": "0.0",
    "Puntaje": "0.0",
    "Puntaje\npromedio": "0.0",
    "Pico": "0.00",
    "Delta": "0.00",
    "Basal": "0.00",
    "Minutos a\nbasal": "0",
}


@dataclass(frozen=True)
class ExcelLayout:
    """Sheet names for the score workbook."""

    day_sheet: str = "Puntaje diario"
    event_sheet: str = "Comidas"


def _weekday_label(i: object) -> str:
    """Convierte índice 0-6 (lunes-domingo) a etiqueta de 3 letras."""
    try:
        if i is None or (isinstance(i, float) and pd.isna(i)):
            return ""
        if isinstance(i, int | float):
            idx = int(i)
            return _DIA_SEMANA[idx] if 0 <= idx < 7 else ""
        return ""
    except (ValueError, TypeError):
        return ""


def _add_weekday_column(export_df: pd.DataFrame) -> pd.DataFrame:
    """Añade columna weekday (Día) a partir de date."""
    if "date" not in export_df.columns or export_df.empty:
        return export_df
    weekday_series = pd.to_datetime(export_df["date"]).dt.weekday
    export_df = export_df.copy()
    export_df["weekday"] = weekday_series.map(_weekday_label)
    cols = ["weekday"] + [c for c in export_df.columns if c != "weekday"]
    return export_df[cols]


def _naive(value: object) -> object:
    """Quita timezone (Excel no la admite)."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


def _strip_timezones(export_df: pd.DataFrame) -> pd.DataFrame:
    export_df = export_df.copy()
    for col in ("event_timestamp", "peak_timestamp"):
        if col in export_df.columns:
            export_df[col] = export_df[col].map(_naive).astype(object)
    return export_df


def write_scores_xlsx(
    day_df: pd.DataFrame,
    event_df: pd.DataFrame,
    out_path: Path,
    layout: ExcelLayout,
) -> None:
    """Write day and event scores to a formatted workbook.

    Args:
        day_df: Day scores (see ``consolidate.day_scores_frame``).
        event_df: Event scores (see ``consolidate.event_scores_frame``).
        out_path: Output path for the XLSX file.
        layout: Sheet names.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    day_export = _add_weekday_column(day_df).rename(columns=_HEADER_MAP)
    event_export = _strip_timezones(event_df).rename(columns=_HEADER_MAP)

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        day_export.to_excel(writer, index=False, sheet_name=layout.day_sheet)
        event_export.to_excel(writer, index=False, sheet_name=layout.event_sheet)
        _format_sheet(writer.book[layout.day_sheet])
        _format_sheet(writer.book[layout.event_sheet])


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Aplica alineación y borde a las filas de datos."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    for header, width in _WIDTHS.items():
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    for row in ws.iter_rows(min_row=2):
        for header, fmt in _NUMBER_FORMATS.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)

"""Tests for CLI entrypoints."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, cast

import pytest
from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from glucoscore import cli
from glucoscore.excel_writer import ExcelLayout
from glucoscore.storage import SQLiteStore


class _FixedDatetime(datetime):
    @classmethod
    def now(cls, tz: Any | None = None) -> _FixedDatetime:
        return cls(2025, 12, 16, 23, 59, 1, tzinfo=tz)


def _write_export(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    data = []
    for day in ("2025/12/15", "2025/12/16"):
        data.extend(
            [
                {
                    "timestamp": f"{day} 08:00",
                    "mg/dL": 95,
                    "mmol/L": 5.3,
                    "tag": "Antes comida",
                },
                {"timestamp": f"{day} 08:30", "mg/dL": 140, "mmol/L": 7.8},
                {"timestamp": f"{day} 09:30", "mg/dL": 95, "mmol/L": 5.2},
                {"timestamp": f"{day} 12:00", "mg/dL": 90, "mmol/L": 5.0},
            ]
        )
    path = root / "accuchek_2025-12-16.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def _argv(tmp_path: Path, *extra: str) -> list[str]:
    return [
        "prog",
        "--db",
        str(tmp_path / "db.sqlite3"),
        "--readings-dir",
        str(tmp_path / "acc"),
        "--out-dir",
        str(tmp_path / "out"),
        "--subject",
        "p1",
        "--timezone",
        "UTC",
        *extra,
    ]


def test_parse_args_custom_values(monkeypatch: pytest.MonkeyPatch) -> None:
    argv = ["prog", "--readings-dir", "/tmp/acc", "--zone-hours", "2.5"]
    monkeypatch.setattr("sys.argv", [*argv, "--field", "mg/dL"])
    ns = cli.parse_args()
    assert ns.readings_dir == "/tmp/acc"
    assert ns.zone_hours == 2.5
    assert ns.field == "mg/dL"
    assert ns.events is None
    assert ns.ambiguity_margin is None


def test_main_scores_and_stores_closed_days_once(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write_export(tmp_path / "acc")
    monkeypatch.setattr("sys.argv", _argv(tmp_path))
    monkeypatch.setattr(cli, "datetime", _FixedDatetime)

    assert cli.main() == 0
    out = capsys.readouterr().out
    assert "Days scored: 2 (1 closed, 1 newly stored)" in out
    assert "Events scored: 2 of 2" in out
    assert len(list((tmp_path / "out").glob("puntaje_glucosa_*.xlsx"))) == 1

    scores = SQLiteStore(tmp_path / "db.sqlite3").load_scores("p1")
    assert list(scores["day"]) == [date(2025, 12, 15)]
    assert 0 < scores.iloc[0]["value"] <= 1

    assert cli.main() == 0
    assert "(1 closed, 0 newly stored)" in capsys.readouterr().out


def test_main_reads_events_csv_and_saves_config(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write_export(tmp_path / "acc")
    events = tmp_path / "events.csv"
    events.write_text(
        "timestamp,label,kind\n2025-12-15 08:00,avena,meal\n", encoding="utf-8"
    )
    monkeypatch.setattr(
        "sys.argv",
        _argv(tmp_path, "--events", str(events), "--field", "mg/dL", "--save-config"),
    )
    monkeypatch.setattr(cli, "datetime", _FixedDatetime)

    assert cli.main() == 0
    assert "Events scored: 1 of 1" in capsys.readouterr().out

    stored = SQLiteStore(tmp_path / "db.sqlite3").load_config()
    assert stored.subject == "p1"
    assert stored.glucose_field == "mg/dL"
    assert stored.events_file == str(events)


def test_main_requires_readings_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr("sys.argv", ["prog", "--db", str(tmp_path / "db.sqlite3")])
    with pytest.raises(ValueError, match="No readings directory"):
        cli.main()


def test_main_propagates_validation_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr("sys.argv", _argv(tmp_path))
    with pytest.raises(FileNotFoundError):
        cli.main()


def _day_headers(out_dir: Path) -> list[str]:
    (out,) = out_dir.glob("puntaje_glucosa_*.xlsx")
    ws = cast(Worksheet, load_workbook(out)[ExcelLayout().day_sheet])
    return [str(cell.value) for cell in ws[1]]


def test_main_exports_every_day_column_by_default(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _write_export(tmp_path / "acc")
    monkeypatch.setattr("sys.argv", _argv(tmp_path))
    monkeypatch.setattr(cli, "datetime", _FixedDatetime)

    assert cli.main() == 0
    headers = _day_headers(tmp_path / "out")
    for header in ("Lecturas", "Desvío", "Bajo rango", "Sobre rango", "Unidad"):
        assert header in headers


def test_main_fields_option_is_applied_and_saved(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _write_export(tmp_path / "acc")
    monkeypatch.setattr(
        "sys.argv",
        _argv(tmp_path, "--fields", "date, composite_score", "--save-config"),
    )
    monkeypatch.setattr(cli, "datetime", _FixedDatetime)

    assert cli.main() == 0
    assert _day_headers(tmp_path / "out") == ["Día", "Fecha", "Puntaje"]
    stored = SQLiteStore(tmp_path / "db.sqlite3").load_config()
    assert stored.selected_fields == ["date", "composite_score"]


def test_parse_args_rejects_unknown_fields(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.argv", ["prog", "--fields", "date,bogus"])
    with pytest.raises(SystemExit):
        cli.parse_args()

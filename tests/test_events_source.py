from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from dateutil import tz

from glucoscore.model import EventKind
from glucoscore.sources.events import EventLogPaths, EventLogSource

_UTC = tz.gettz("UTC")


def _source(path: Path) -> EventLogSource:
    return EventLogSource(EventLogPaths(root=path), _UTC)


def test_load_events_parses_and_sorts(tmp_path: Path) -> None:
    p = tmp_path / "events.csv"
    p.write_text(
        "timestamp,label,kind\n"
        "2025-12-15 13:00,  Pasta ,meal\n"
        "2025-12-15 08:00,Avena,comida\n"
        "2025-12-15 12:55,rapida,insulina\n",
        encoding="utf-8",
    )
    events = _source(p).load_events()
    assert [e.label for e in events] == ["avena", "rapida", "pasta"]
    assert [e.kind for e in events] == [
        EventKind.MEAL,
        EventKind.INSULIN,
        EventKind.MEAL,
    ]
    assert events[0].timestamp == datetime(2025, 12, 15, 8, 0, tzinfo=_UTC)


def test_load_events_unique_keeps_first_label(tmp_path: Path) -> None:
    p = tmp_path / "events.csv"
    p.write_text(
        "Fecha,Comida\n"
        "2025-12-15 08:00,avena\n"
        "2025-12-16 08:00,AVENA\n"
        "2025-12-16 13:00,pasta\n",
        encoding="utf-8",
    )
    events = _source(p).load_events(unique=True)
    assert [e.label for e in events] == ["avena", "pasta"]
    assert events[0].timestamp.day == 15
    assert all(e.kind is EventKind.MEAL for e in events)


def test_load_events_drops_unparseable_rows(tmp_path: Path) -> None:
    p = tmp_path / "events.csv"
    p.write_text(
        "timestamp,label,kind\n"
        "not a date,pasta,meal\n"
        "2025-12-15 08:00,,meal\n"
        "2025-12-15 09:00,cafe,snack\n",
        encoding="utf-8",
    )
    events = _source(p).load_events()
    assert [e.label for e in events] == ["cafe"]
    assert events[0].kind is EventKind.MEAL


def test_load_events_keeps_explicit_offset(tmp_path: Path) -> None:
    p = tmp_path / "events.csv"
    p.write_text(
        "timestamp,label\n2025-12-15T08:00:00-03:00,avena\n", encoding="utf-8"
    )
    event = _source(p).load_events()[0]
    assert event.timestamp.utcoffset() is not None
    assert event.timestamp.utcoffset().total_seconds() == -3 * 3600


def test_load_events_requires_columns(tmp_path: Path) -> None:
    p = tmp_path / "events.csv"
    p.write_text("foo,bar\n1,2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="timestamp and label"):
        _source(p).load_events()


def test_validate_requires_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        _source(tmp_path / "missing.csv").validate()

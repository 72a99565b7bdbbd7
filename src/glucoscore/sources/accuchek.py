"""Lectura de exportaciones JSON de Accu-Chek como serie de glucosa."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any

from dateutil import tz

from glucoscore.model import Event, EventKind, GlucosePoint
from glucoscore.sources.base import DataSource, SourcePaths

logger = logging.getLogger(__name__)

GLUCOSE_FIELDS = ("mmol/L", "mg/dL")
MEAL_TAGS = ("antes comida", "before meal")


@dataclass(frozen=True)
class AccuChekPaths(SourcePaths):
    """Paths for Accu-Chek JSON exports."""

    # root: folder containing accuchek_*.json


class AccuChekSource(DataSource):
    """Accu-Chek JSON reading source."""

    def __init__(self, paths: AccuChekPaths, local_tz: tzinfo | None = None) -> None:
        """Create the source.

        Args:
            paths: Export directory.
            local_tz: Zone for naive export timestamps; the system zone if None.
        """
        super().__init__(paths)
        self._tz = local_tz or tz.tzlocal()

    def validate(self) -> None:
        """Validate that the Accu-Chek export directory exists."""
        if not self._paths.root.exists():
            raise FileNotFoundError(str(self._paths.root))

    def newest_json(self) -> Path:
        """Return newest accuchek_*.json by mtime."""
        files = sorted(
            self._paths.root.glob("accuchek_*.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        if not files:
            raise FileNotFoundError(f"No accuchek_*.json in {self._paths.root}")
        return files[0]

    def load_points(self, path: Path, field: str = "mmol/L") -> list[GlucosePoint]:
        """Parse an Accu-Chek JSON export into a chronological series.

        Args:
            path: Path to JSON file.
            field: Which value to read, ``"mmol/L"`` or ``"mg/dL"``.

        Returns:
            Glucose points sorted ascending by timestamp.

        Raises:
            ValueError: If ``field`` is unknown or the JSON is not a list.
        """
        if field not in GLUCOSE_FIELDS:
            raise ValueError(f"Unknown glucose field {field!r}")
        text = path.read_text(encoding="utf-8")
        raw = _extract_json_list(text)
        if not isinstance(raw, list):
            raise ValueError("Accu-Chek JSON must be a list")

        out: list[GlucosePoint] = []
        for item in raw:
            point = self._item_to_point(item, field)
            if point is not None:
                out.append(point)
        skipped = len(raw) - len(out)
        if skipped:
            logger.info("Skipped %d Accu-Chek items without %s", skipped, field)
        out.sort(key=lambda p: p.timestamp)
        return out

    def load_tag_events(
        self, path: Path, meal_tags: tuple[str, ...] = MEAL_TAGS
    ) -> list[Event]:
        """Meal events from readings tagged as taken before a meal.

        Tags are compared trimmed and lowercased; the event label is the
        normalized tag.
        """
        raw = _extract_json_list(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError("Accu-Chek JSON must be a list")

        out: list[Event] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            tag = _parse_tag(item)
            if tag is None or tag.lower() not in meal_tags:
                continue
            ts = _parse_timestamp(item.get("timestamp"), item.get("epoch"), self._tz)
            out.append(Event(timestamp=ts, label=tag.lower(), kind=EventKind.MEAL))
        out.sort(key=lambda e: e.timestamp)
        return out

    def _item_to_point(self, item: Any, field: str) -> GlucosePoint | None:
        """Convierte un item dict en GlucosePoint; None si falta el valor."""
        if not isinstance(item, dict):
            return None
        value = item.get(field)
        if value is None:
            return None
        ts = _parse_timestamp(item.get("timestamp"), item.get("epoch"), self._tz)
        return GlucosePoint(value=float(value), timestamp=ts)


def _parse_tag(item: dict[str, Any]) -> str | None:
    """Extrae y normaliza el tag de un ítem (vacío -> None)."""
    tag_val = item.get("tag")
    if tag_val is None:
        return None
    tag = str(tag_val).strip()
    return tag if tag else None


def _extract_json_list(text: str) -> Any:
    """Extract JSON array from text, tolerating leading non-JSON (e.g. log lines)."""
    start = text.find("[")
    if start >= 0:
        return json.loads(text[start:])
    return json.loads(text)


def _parse_timestamp(ts_str: Any, epoch: Any, local_tz: tzinfo) -> datetime:
    """Parses the timestamps to get the date and time."""
    if isinstance(ts_str, str) and ts_str.strip():
        dt = datetime.strptime(ts_str, "%Y/%m/%d %H:%M")
        return dt.replace(tzinfo=local_tz)

    if epoch is not None:
        return datetime.fromtimestamp(int(epoch), tz=local_tz)

    raise ValueError("Missing timestamp and epoch")

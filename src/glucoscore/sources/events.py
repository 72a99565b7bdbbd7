"""Lectura de registros de comidas e insulina desde CSV."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, tzinfo

import pandas as pd
from dateutil import tz

from glucoscore.model import Event, EventKind
from glucoscore.sources.base import DataSource, SourcePaths

logger = logging.getLogger(__name__)

_KIND_ALIASES: dict[str, EventKind] = {
    "meal": EventKind.MEAL,
    "food": EventKind.MEAL,
    "comida": EventKind.MEAL,
    "insulin": EventKind.INSULIN,
    "insulina": EventKind.INSULIN,
}


@dataclass(frozen=True)
class EventLogPaths(SourcePaths):
    """Path to the event log CSV."""

    # root: the CSV file itself


class EventLogSource(DataSource):
    """CSV event log with timestamp, label and optional kind columns."""

    def __init__(self, paths: EventLogPaths, local_tz: tzinfo | None = None) -> None:
        """Create the source.

        Args:
            paths: Location of the CSV file.
            local_tz: Zone for naive CSV timestamps; the system zone if None.
        """
        super().__init__(paths)
        self._tz = local_tz or tz.tzlocal()

    def validate(self) -> None:
        """Validate that the CSV exists."""
        if not self._paths.root.is_file():
            raise FileNotFoundError(str(self._paths.root))

    def load_events(self, unique: bool = False) -> list[Event]:
        """Load events sorted by timestamp.

        Labels are trimmed and lowercased. Rows without a parseable timestamp
        or label are dropped.

        Args:
            unique: Keep only the first event of each label.

        Raises:
            ValueError: If no timestamp or label column is found.
        """
        df = pd.read_csv(self._paths.root)
        df = df.rename(columns={c: str(c).strip() for c in df.columns})
        cols = list(df.columns)

        ts_col = _find_col(cols, [r"\btimestamp\b", r"\bdatetime\b", r"\bfecha"])
        label_col = _find_col(
            cols, [r"\blabel\b", r"\bname\b", r"\bfood", r"\bcomida"]
        )
        kind_col = _find_col(cols, [r"\bkind\b", r"\btype\b", r"\btipo\b"])
        if ts_col is None or label_col is None:
            raise ValueError(f"Event log needs timestamp and label columns: {cols}")

        out: list[Event] = []
        seen: set[str] = set()
        for _, row in df.iterrows():
            ts = self._parse_timestamp(row.get(ts_col))
            label = _normalize_label(row.get(label_col))
            if ts is None or not label:
                logger.debug("Dropping event row %s", dict(row))
                continue
            if unique and label in seen:
                continue
            seen.add(label)
            kind = _parse_kind(row.get(kind_col) if kind_col else None)
            out.append(Event(timestamp=ts, label=label, kind=kind))
        out.sort(key=lambda e: e.timestamp)
        return out

    def _parse_timestamp(self, value: object) -> datetime | None:
        parsed = pd.to_datetime(value, errors="coerce")
        if pd.isna(parsed):
            return None
        dt = parsed.to_pydatetime()
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self._tz)
        return dt


def _find_col(columns: list[str], patterns: list[str]) -> str | None:
    for pat in patterns:
        rx = re.compile(pat, re.IGNORECASE)
        for c in columns:
            if rx.search(c):
                return c
    return None


def _normalize_label(value: object) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip().lower()


def _parse_kind(value: object) -> EventKind:
    """Map a kind cell to EventKind; blank or unknown values count as meals."""
    if value is None or pd.isna(value):
        return EventKind.MEAL
    kind = _KIND_ALIASES.get(str(value).strip().lower())
    if kind is None:
        logger.warning("Unknown event kind %r; treating as meal", value)
        return EventKind.MEAL
    return kind

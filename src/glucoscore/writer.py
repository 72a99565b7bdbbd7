"""Contrato de persistencia de puntajes diarios (una vez por dia)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date

from glucoscore.model import DayScore

logger = logging.getLogger(__name__)

SCORE_METRIC = "score"


class ScoreWriter(ABC):
    """Sink for finalized day scores."""

    @abstractmethod
    def write_score(
        self,
        subject: str,
        day: date,
        value: float,
        metric: str = SCORE_METRIC,
    ) -> bool:
        """Persist ``value`` for ``(subject, day, metric)`` at most once.

        Returns:
            True if the value was written, False if the key already existed.
        """


def is_day_closed(day: date, today: date) -> bool:
    """A day is closed once it is strictly before the current day."""
    return day < today


def persist_closed_days(
    writer: ScoreWriter,
    subject: str,
    scores: Iterable[DayScore],
    today: date,
) -> list[date]:
    """Write each closed day's composite score, scaled to [0, 1].

    Days that are still open are skipped; days already stored are left
    untouched by the writer.

    Returns:
        Days written by this call.
    """
    written: list[date] = []
    for score in scores:
        if not is_day_closed(score.day, today):
            logger.info("Day %s still open; not persisting its score", score.day)
            continue
        if writer.write_score(subject, score.day, score.composite_score / 100):
            written.append(score.day)
        else:
            logger.debug("Score for %s/%s already stored", subject, score.day)
    return written

"""
Best-effort annotation of participant records with NHRL Statsbook data.

Annotation is additive: keys are only ever added to a copy of the record, and
any failed or empty lookup simply leaves the corresponding keys out.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional

from shared.errors import AnnotationUnavailable
from shared.schemas import as_int
from .clients import StatsClient

logger = logging.getLogger(__name__)

RECENT_FIGHTS_LIMIT = 5
RECENT_CHAMPIONS_LIMIT = 3

# Checked in order; the first hint found in the title wins
WEIGHT_CLASS_HINTS = (
    ('3lb', ('3lb', 'beetle')),
    ('12lb', ('12lb', 'ant')),
    ('30lb', ('30lb', 'hobby')),
)


def annotation_name(record: dict) -> Optional[str]:
    """The name a participant is most likely known by in the Statsbook."""
    for key in ('name', 'displayName', 'tag'):
        value = record.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def detect_weight_class(title: Optional[str]) -> Optional[str]:
    lowered = (title or '').lower()
    for weight_class, hints in WEIGHT_CLASS_HINTS:
        if any(hint in lowered for hint in hints):
            return weight_class
    return None


class StatsAnnotator:
    """
    Request-scoped annotator.

    Lookups are memoised for the lifetime of the instance so a bot that
    appears in several slots is only fetched once per request.
    """

    def __init__(self, stats: StatsClient, workers: int = 1):
        self.stats = stats
        self.workers = max(1, workers)
        self._cache: Dict[str, dict] = {}

    def _fetch(self, name: str) -> dict:
        annotations = {}

        try:
            rank = self.stats.get_rank(name)
        except AnnotationUnavailable as e:
            logger.debug(f"Rank lookup skipped for {name}: {e}")
        else:
            if rank is not None:
                annotations['nhrl_rank'] = rank

        try:
            fights = self.stats.get_fights(name)
        except AnnotationUnavailable as e:
            logger.debug(f"Fight lookup skipped for {name}: {e}")
        else:
            recent = fights[:RECENT_FIGHTS_LIMIT]
            if recent:
                annotations['nhrl_recent_fights'] = len(recent)
                if recent[0].get('date') is not None:
                    annotations['nhrl_last_fight_date'] = recent[0]['date']

        try:
            streak = self.stats.get_streak_stats(name)
        except AnnotationUnavailable as e:
            logger.debug(f"Streak lookup skipped for {name}: {e}")
        else:
            if streak is not None:
                annotations['nhrl_current_streak'] = {
                    'length': as_int(streak.get('current_streak')),
                    'type': streak.get('current_streak_type'),
                }

        return annotations

    def lookup(self, name: str) -> dict:
        if name not in self._cache:
            self._cache[name] = self._fetch(name)
        return dict(self._cache[name])

    def prefetch(self, names: Iterable[Optional[str]]):
        """Warm the cache for several names at once; results are keyed by name, so order is irrelevant."""
        pending = []
        for name in names:
            if name and name not in self._cache and name not in pending:
                pending.append(name)
        if not pending:
            return

        if self.workers == 1 or len(pending) == 1:
            for name in pending:
                self._cache[name] = self._fetch(name)
            return

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            for name, annotations in zip(pending, pool.map(self._fetch, pending)):
                self._cache[name] = annotations

    def annotate(self, record: dict) -> dict:
        enriched = dict(record)
        name = annotation_name(record)
        if not name:
            return enriched

        for key, value in self.lookup(name).items():
            enriched.setdefault(key, value)
        return enriched

    def recent_champions(self, weight_class: str) -> List[dict]:
        try:
            winners = self.stats.get_event_winners(weight_class)
        except AnnotationUnavailable as e:
            logger.debug(f"Event winners lookup skipped for {weight_class}: {e}")
            return []
        return winners[:RECENT_CHAMPIONS_LIMIT]

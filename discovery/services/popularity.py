"""
Popularity tracker - engagement counters, popularity and trending scores.

Tracking is best-effort: a failure while recording an event is logged and
swallowed so that it can never fail the user action that triggered it.
"""
import logging
import math
from collections import deque
from datetime import date, datetime, timedelta, timezone
from threading import Lock
from typing import Callable, Deque, Dict, List, Optional

from discovery.config import get_settings
from discovery.core.telemetry import TRACKING_EVENTS
from discovery.models.interfaces import AnalyticsRepository
from discovery.models.schemas import (
    AnalyticsRecord,
    AnalyticsSummary,
    BookmarkDirection,
    InteractionAction,
    TrendingItem,
    UserInteraction,
)
from discovery.repositories.memory import InMemoryAnalyticsRepository

logger = logging.getLogger(__name__)

VIEW_WEIGHT = 1
BOOKMARK_WEIGHT = 3
RECENCY_DECAY_PER_DAY = 0.1
MIN_RECENCY_FACTOR = 0.1
TREND_MOMENTUM = 0.5

SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def day_key(day: date) -> str:
    return day.isoformat()


def days_since(last_updated: datetime, now: datetime) -> int:
    """Whole days elapsed, never negative."""
    elapsed = (now - last_updated).total_seconds()
    return max(0, int(elapsed // SECONDS_PER_DAY))


def recency_factor(last_updated: datetime, now: datetime) -> float:
    return max(
        MIN_RECENCY_FACTOR,
        1 - days_since(last_updated, now) * RECENCY_DECAY_PER_DAY,
    )


def calculate_popularity_score(record: AnalyticsRecord, now: datetime) -> int:
    """
    Time-decayed engagement score.

    ``(views * 1 + bookmarks * 3) * max(0.1, 1 - days_since_last_update * 0.1)``
    rounded half up. Deterministic in the record and ``now``.
    """
    engagement = record.view_count * VIEW_WEIGHT + record.bookmark_count * BOOKMARK_WEIGHT
    return round_half_up(engagement * recency_factor(record.last_updated, now))


def calculate_trend_score(record: AnalyticsRecord, today: date) -> float:
    """Today's views plus half of the day-over-day change."""
    today_views = record.daily_views.get(day_key(today), 0)
    yesterday_views = record.daily_views.get(day_key(today - timedelta(days=1)), 0)
    return today_views + (today_views - yesterday_views) * TREND_MOMENTUM


class PopularityTracker:
    """
    Maintains per-item analytics records.

    Every mutation is an atomic read-modify-write under a per-item lock, so
    concurrent events for the same item never lose an increment. Events are
    not idempotent: replaying one counts it twice.
    """

    def __init__(
        self,
        repository: Optional[AnalyticsRepository] = None,
        clock: Callable[[], datetime] = utc_now,
        interaction_log_size: Optional[int] = None,
    ) -> None:
        size = (
            interaction_log_size
            if interaction_log_size is not None
            else get_settings().INTERACTION_LOG_SIZE
        )
        self._repository = repository or InMemoryAnalyticsRepository()
        self._clock = clock
        self._locks: Dict[str, Lock] = {}
        self._locks_guard = Lock()
        self._interactions: Deque[UserInteraction] = deque(maxlen=size)
        self._interactions_lock = Lock()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def record_view(
        self,
        item_id: str,
        session_duration: Optional[float] = None,
        user_id: Optional[str] = None,
    ) -> bool:
        """Count a view; the session duration adds to total read time."""

        def apply(record: AnalyticsRecord, now: datetime) -> None:
            if session_duration is not None and session_duration < 0:
                raise ValueError(f"Negative session duration: {session_duration}")
            record.view_count += 1
            record.total_read_time += session_duration or 0
            bucket = day_key(now.date())
            record.daily_views[bucket] = record.daily_views.get(bucket, 0) + 1

        return self._track(
            item_id, InteractionAction.VIEW, apply, user_id, session_duration
        )

    def record_bookmark(
        self,
        item_id: str,
        direction: BookmarkDirection,
        user_id: Optional[str] = None,
    ) -> bool:
        """Move the bookmark count by one; removal stops at zero."""
        adding = direction == BookmarkDirection.ADD

        def apply(record: AnalyticsRecord, now: datetime) -> None:
            if direction not in (BookmarkDirection.ADD, BookmarkDirection.REMOVE):
                raise ValueError(f"Unknown bookmark direction: {direction}")
            if adding:
                record.bookmark_count += 1
            else:
                record.bookmark_count = max(0, record.bookmark_count - 1)

        action = InteractionAction.BOOKMARK if adding else InteractionAction.UNBOOKMARK
        return self._track(item_id, action, apply, user_id)

    def record_completion(
        self,
        item_id: str,
        read_time: float,
        user_id: Optional[str] = None,
    ) -> bool:
        """Add a completed read of ``read_time`` seconds."""

        def apply(record: AnalyticsRecord, now: datetime) -> None:
            if read_time < 0:
                raise ValueError(f"Negative read time: {read_time}")
            record.total_read_time += read_time
            record.completion_count += 1

        return self._track(
            item_id, InteractionAction.COMPLETE_READING, apply, user_id, read_time
        )

    def _track(
        self,
        item_id: str,
        action: InteractionAction,
        apply: Callable[[AnalyticsRecord, datetime], None],
        user_id: Optional[str],
        duration: Optional[float] = None,
    ) -> bool:
        try:
            if not item_id:
                raise ValueError("item_id is required")

            with self._lock_for(item_id):
                now = self._clock()
                record = self._repository.get(item_id) or AnalyticsRecord(
                    item_id=item_id,
                    last_updated=now,
                )
                apply(record, now)
                record.last_updated = now
                self._refresh_derived(record, now)
                self._repository.save(record)

            if user_id:
                self._log_interaction(user_id, item_id, action, now, duration)

        except Exception:
            TRACKING_EVENTS.labels(action=action.value, outcome="failed").inc()
            logger.exception(
                f"Failed to record {action.value} event",
                extra={"item_id": item_id, "user_id": user_id},
            )
            return False

        TRACKING_EVENTS.labels(action=action.value, outcome="recorded").inc()
        return True

    @staticmethod
    def _refresh_derived(record: AnalyticsRecord, now: datetime) -> None:
        record.popularity_score = calculate_popularity_score(record, now)
        if record.view_count > 0:
            record.average_read_time = round_half_up(
                record.total_read_time / record.view_count
            )

    def _lock_for(self, item_id: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(item_id)
            if lock is None:
                lock = self._locks[item_id] = Lock()
            return lock

    def _log_interaction(
        self,
        user_id: str,
        item_id: str,
        action: InteractionAction,
        timestamp: datetime,
        duration: Optional[float],
    ) -> None:
        interaction = UserInteraction(
            user_id=user_id,
            item_id=item_id,
            action=action,
            timestamp=timestamp,
            session_duration=duration,
        )
        with self._interactions_lock:
            self._interactions.append(interaction)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_analytics(self, item_id: str) -> Optional[AnalyticsRecord]:
        return self._repository.get(item_id)

    def current_popularity(self, item_id: str) -> int:
        """Popularity re-evaluated at the current time (0 if untracked)."""
        record = self._repository.get(item_id)
        if record is None:
            return 0
        return calculate_popularity_score(record, self._clock())

    def get_trending(self, limit: int = 10) -> List[TrendingItem]:
        """
        Items ranked by short-window momentum.
        Ties are broken by current popularity.
        """
        now = self._clock()
        today = now.date()
        trending = [
            TrendingItem(
                item_id=record.item_id,
                trend_score=calculate_trend_score(record, today),
                view_count=record.view_count,
                popularity_score=calculate_popularity_score(record, now),
            )
            for record in self._repository.list_all()
        ]
        trending.sort(key=lambda t: (t.trend_score, t.popularity_score), reverse=True)
        return trending[:limit]

    def get_popular(self, limit: int = 10) -> List[AnalyticsRecord]:
        """Records ranked by popularity, decayed to the current time."""
        now = self._clock()
        records = self._repository.list_all()
        for record in records:
            record.popularity_score = calculate_popularity_score(record, now)
        records.sort(key=lambda r: r.popularity_score, reverse=True)
        return records[:limit]

    def popularity_signal(self) -> Dict[str, float]:
        """Item id -> current popularity normalised by the maximum, in [0, 1]."""
        now = self._clock()
        scores = {
            record.item_id: calculate_popularity_score(record, now)
            for record in self._repository.list_all()
        }
        top = max(scores.values(), default=0)
        if top <= 0:
            return {}
        return {item_id: score / top for item_id, score in scores.items()}

    def get_user_interactions(self, user_id: str, limit: int = 50) -> List[UserInteraction]:
        """Most recent interactions of a user, newest first."""
        with self._interactions_lock:
            matching = [i for i in reversed(self._interactions) if i.user_id == user_id]
        return matching[:limit]

    def get_summary(self) -> AnalyticsSummary:
        now = self._clock()
        records = self._repository.list_all()
        total_popularity = sum(calculate_popularity_score(r, now) for r in records)
        return AnalyticsSummary(
            total_views=sum(r.view_count for r in records),
            tracked_items=len(records),
            average_popularity=(
                round_half_up(total_popularity / len(records)) if records else 0
            ),
        )

"""Daily bucketing of sparse metric samples."""

from datetime import date, timedelta
from typing import Dict, Iterable, List

import structlog

from ..models.metric import Metric
from .timezone_utils import TimezoneResolver, ZoneLike, parse_date

logger = structlog.get_logger()


def date_range(start_date: str, end_date: str) -> List[str]:
    """List every calendar date from start to end inclusive as ``YYYY-MM-DD``.

    Stepping is plain date arithmetic and ignores timezones. An end before
    the start gives an empty list.
    """
    start = parse_date(start_date)
    end = parse_date(end_date)
    return [
        (start + timedelta(days=offset)).isoformat()
        for offset in range(day_count(start, end))
    ]


def day_count(start: date, end: date) -> int:
    """Number of calendar days in an inclusive range, zero if reversed."""
    return max((end - start).days + 1, 0)


class DailyAggregator:
    """Keeps the latest sample of each zone-local calendar day."""

    def __init__(self, resolver: TimezoneResolver):
        self.resolver = resolver

    def latest_per_day(self, samples: Iterable[Metric], zone: ZoneLike) -> Dict[str, Metric]:
        """Bucket samples by local date, keeping the greatest timestamp per bucket.

        On equal timestamps the sample seen first stays.
        """
        buckets: Dict[str, Metric] = {}
        for sample in samples:
            key = self.resolver.date_only(sample.timestamp, zone)
            existing = buckets.get(key)
            if existing is None or sample.timestamp > existing.timestamp:
                buckets[key] = sample

        logger.debug("Bucketed samples by local day", buckets=len(buckets), timezone=str(zone))
        return buckets

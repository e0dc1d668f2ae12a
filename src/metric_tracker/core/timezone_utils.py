"""Timezone utilities for the metric tracking service.

All metrics are stored as UTC epoch seconds. Callers supply and receive
wall-clock time in an IANA zone, and charts bucket samples by zone-local
calendar day. Offsets and DST rules come from a timezone provider
(``zoneinfo.ZoneInfo`` unless another callable is injected).

Local times that do not map to exactly one instant are resolved as follows:

- a wall-clock time that occurs twice (clocks set back) resolves to the
  earlier instant;
- a wall-clock time skipped by a transition (clocks set forward) is read
  with the offset in force before the transition, so it lands the length of
  the gap later.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Callable, Tuple, Union
from zoneinfo import ZoneInfo
import structlog

from ..errors import InvalidDateFormat, InvalidTimezone

logger = structlog.get_logger()

# Timezone constants
UTC_TZ = ZoneInfo("UTC")

IANA_PATTERN = re.compile(r"^[A-Za-z_]+/[A-Za-z_]+$")
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

TimezoneProvider = Callable[[str], tzinfo]


def is_valid_identifier(identifier: str) -> bool:
    """Check an identifier is ``UTC`` or of the form ``Area/Location``."""
    if not isinstance(identifier, str):
        return False
    return identifier == "UTC" or IANA_PATTERN.match(identifier) is not None


@dataclass(frozen=True)
class Timezone:
    """A validated timezone identifier. Equal when the identifiers are equal."""
    identifier: str

    def __post_init__(self):
        if not is_valid_identifier(self.identifier):
            raise InvalidTimezone(
                f"Invalid IANA timezone format: {self.identifier}",
                {"timezone": self.identifier},
            )

    def __str__(self) -> str:
        return self.identifier


ZoneLike = Union[str, Timezone]


def parse_datetime(text: str) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS`` or ISO-8601 text.

    The result is naive unless the text carries an offset or ``Z``.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidDateFormat(f"Invalid date format: {text}", {"date": text})
    text = text.strip()
    try:
        return datetime.strptime(text, DATETIME_FORMAT)
    except ValueError:
        pass
    iso_text = text[:-1] + "+00:00" if text[-1] in "Zz" else text
    try:
        return datetime.fromisoformat(iso_text)
    except ValueError:
        raise InvalidDateFormat(f"Invalid date format: {text}", {"date": text}) from None


def parse_date(text: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise InvalidDateFormat(f"Invalid date format: {text}", {"date": text}) from None


class TimezoneResolver:
    """Converts between UTC epoch seconds and zone-local wall-clock text."""

    def __init__(self, provider: TimezoneProvider = ZoneInfo):
        self._provider = provider

    def validate(self, identifier: str) -> bool:
        """Check the identifier's format. Does not consult the timezone database."""
        return is_valid_identifier(identifier)

    def resolve(self, zone: ZoneLike) -> tzinfo:
        """Look up the tzinfo for a zone.

        Raises:
            InvalidTimezone: malformed identifier, or one the provider does not know
        """
        tz = zone if isinstance(zone, Timezone) else Timezone(zone)
        try:
            return self._provider(tz.identifier)
        except (KeyError, ValueError, OSError) as e:
            # ZoneInfoNotFoundError is a KeyError
            raise InvalidTimezone(
                f"Invalid IANA timezone: {tz.identifier}",
                {"timezone": tz.identifier},
            ) from e

    def to_utc(self, text: str, zone: ZoneLike) -> int:
        """Convert datetime text to UTC epoch seconds, floored to whole seconds.

        Text without an offset is wall-clock time in ``zone``. Text with an
        offset or ``Z`` is already an absolute instant.
        """
        tz = self.resolve(zone)
        parsed = parse_datetime(text)
        try:
            if parsed.tzinfo is None:
                instant = self._localize(parsed, tz)
            else:
                instant = parsed
            return math.floor(instant.timestamp())
        except (OverflowError, OSError) as e:
            # Shifting by the zone offset left the datetime range
            raise InvalidDateFormat(
                f"Date out of range: {text}",
                {"date": text, "timezone": str(zone)},
            ) from e

    def from_utc(self, timestamp: int, zone: ZoneLike, fmt: str = DATETIME_FORMAT) -> str:
        """Render UTC epoch seconds as wall-clock text in ``zone``."""
        tz = self.resolve(zone)
        try:
            utc_dt = datetime.fromtimestamp(timestamp, tz=UTC_TZ)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidDateFormat(
                f"Timestamp out of range: {timestamp}",
                {"timestamp": timestamp},
            ) from e
        return utc_dt.astimezone(tz).strftime(fmt)

    def date_only(self, timestamp: int, zone: ZoneLike) -> str:
        """Get the zone-local calendar date of an instant as ``YYYY-MM-DD``."""
        return self.from_utc(timestamp, zone, DATE_FORMAT)

    def day_boundaries(self, day: str, zone: ZoneLike) -> Tuple[int, int]:
        """Get the first and last second of a zone-local calendar day.

        Args:
            day: Calendar date as ``YYYY-MM-DD``
            zone: Timezone the day is experienced in

        Returns:
            Tuple of (day_start_utc, day_end_utc) epoch seconds
        """
        return (
            self.to_utc(f"{day} 00:00:00", zone),
            self.to_utc(f"{day} 23:59:59", zone),
        )

    @staticmethod
    def _localize(naive: datetime, tz: tzinfo) -> datetime:
        candidates = [
            naive.replace(tzinfo=tz, fold=fold).astimezone(UTC_TZ)
            for fold in (0, 1)
        ]
        valid = [c for c in candidates if c.astimezone(tz).replace(tzinfo=None) == naive]

        if valid:
            if len(set(valid)) > 1:
                logger.debug(
                    "Ambiguous local time resolved to earlier instant",
                    local_time=naive.isoformat(),
                    timezone=str(tz),
                )
            return min(valid)

        logger.debug(
            "Nonexistent local time shifted past transition",
            local_time=naive.isoformat(),
            timezone=str(tz),
        )
        return max(candidates)

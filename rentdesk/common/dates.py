"""
Date-range arithmetic shared by reservations, availability checks and reports.

All ranges are closed: a reservation from the 1st to the 5th occupies the
vehicle on both the 1st and the 5th. Whether a return and a pickup on the
same day collide is a business policy, selected with ``inclusive``:

- ``inclusive=True``: any shared day is a conflict.
- ``inclusive=False``: a range that ends on the day another one starts does
  not conflict with it (same-day turnover), provided the first one started
  earlier. Identical ranges and ranges nested inside another still conflict.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, Optional


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Range start {self.start} is after its end {self.end}")

    @classmethod
    def from_optional(cls, start: date, end: Optional[date]) -> "DateRange":
        return cls(start, end if end is not None else start)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def overlaps(self, other: "DateRange", *, inclusive: bool = True) -> bool:
        return overlaps(self.start, self.end, other.start, other.end, inclusive=inclusive)

    def intersection(self, other: "DateRange") -> Optional["DateRange"]:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start > end:
            return None
        return DateRange(start, end)

    def iter_days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)


def overlaps(
    a_start: date,
    a_end: Optional[date],
    b_start: date,
    b_end: Optional[date],
    *,
    inclusive: bool = True,
) -> bool:
    """Return True when the closed ranges [a_start, a_end] and [b_start, b_end] collide.

    A missing end date is treated as equal to its start date.
    """
    if a_end is None:
        a_end = a_start
    if b_end is None:
        b_end = b_start

    if not (a_start <= b_end and b_start <= a_end):
        return False
    if inclusive:
        return True

    a_hands_over = a_end == b_start and a_start < b_start
    b_hands_over = b_end == a_start and b_start < a_start
    return not (a_hands_over or b_hands_over)


def parse_iso_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string, also accepting a full ISO timestamp."""
    value = value.strip()
    if "T" in value:
        value = value.split("T", 1)[0]
    return date.fromisoformat(value)

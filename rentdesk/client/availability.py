"""
Client-side double-booking guard.

``ensure_available`` must be awaited before a reservation is submitted. It
asks the server for conflicting reservations and refuses to continue when
there are any. When the check itself fails the ``ApiError`` propagates: no
answer is never treated as "available".
"""

import logging
import uuid
from collections.abc import Iterable
from datetime import date
from typing import Any, Optional

from rentdesk.client.api import RentDeskClient
from rentdesk.common.dates import overlaps, parse_iso_date
from rentdesk.config import settings

logger = logging.getLogger(__name__)


class BookingConflictError(Exception):
    def __init__(self, vehicle_id: Any, conflicts: list[dict]):
        self.vehicle_id = vehicle_id
        self.conflicts = conflicts
        super().__init__(
            f"Vehicle is already reserved: conflict with {len(conflicts)} existing reservation(s)"
        )


def _as_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return parse_iso_date(value)


def scan_conflicts(
    reservations: Iterable[dict],
    vehicle_id: Any,
    start: date,
    end: Optional[date],
    exclude_id: Any = None,
    inclusive: Optional[bool] = None,
) -> list[dict]:
    """Reservations of ``vehicle_id`` in an already-fetched list that collide with [start, end].

    Cancelled reservations and ``exclude_id`` are skipped. A missing end date,
    on either side, counts as a single day.
    """
    if inclusive is None:
        inclusive = settings.same_day_turnover_is_conflict
    vehicle_id = str(vehicle_id)
    exclude_id = str(exclude_id) if exclude_id is not None else None

    conflicts = []
    for reservation in reservations:
        if str(reservation.get("vehicle_id")) != vehicle_id:
            continue
        if exclude_id is not None and str(reservation.get("id")) == exclude_id:
            continue
        if reservation.get("status") == "cancelled":
            continue
        other_start = _as_date(reservation.get("start_date"))
        if other_start is None:
            continue
        if overlaps(start, end, other_start, _as_date(reservation.get("end_date")), inclusive=inclusive):
            conflicts.append(reservation)
    return conflicts


async def ensure_available(
    client: RentDeskClient,
    vehicle_id: uuid.UUID,
    start: date,
    end: Optional[date] = None,
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    conflicts = await client.check_availability(vehicle_id, start, end, exclude_id)
    if conflicts:
        logger.info("Vehicle %s has %d conflicting reservation(s)", vehicle_id, len(conflicts))
        raise BookingConflictError(vehicle_id, conflicts)


async def book(client: RentDeskClient, payload: dict) -> dict:
    """Check availability, then create the reservation."""
    start = _as_date(payload["start_date"])
    end = _as_date(payload.get("end_date"))
    await ensure_available(client, payload["vehicle_id"], start, end)
    return await client.create_reservation(payload)

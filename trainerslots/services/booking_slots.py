"""
Application services for listing and managing a trainer's bookable slots.

The service coordinates fetching availability, bookings and admin overrides
via a backend client adapter and delegates slot derivation to the
domain-level ``SlotCalculator``. The backend dependency is a simple protocol,
so tests can swap in stubs or the bundled mock client.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional, Protocol, Sequence, Union

import pendulum

from ..domain.exceptions import SelectionLimitError
from ..domain.models import AvailabilityDay, BookedSlot, Booking, SlotOverride, SlotStatus, TimeSlot
from ..domain.slot_calculator import SlotCalculator, cascading_overrides, is_date_available
from ..domain.time_utils import WEEKDAY_NAMES, date_to_local_string, parse_date, parse_time

logger = logging.getLogger(__name__)


class BackendClientProtocol(Protocol):
    """Protocol describing the backend client behaviour needed by the service."""

    def get_availability(self, trainer_id: str) -> List[AvailabilityDay]:
        """Return the trainer's weekly availability."""

    def set_availability(self, trainer_id: str, days: Sequence[AvailabilityDay]) -> None:
        """Replace the trainer's weekly availability."""

    def get_bookings(self, trainer_id: str) -> List[Booking]:
        """Return all bookings recorded against the trainer."""

    def get_slot_overrides(self, trainer_id: str) -> List[SlotOverride]:
        """Return admin slot overrides for the trainer."""

    def save_slot_overrides(self, trainer_id: str, overrides: Sequence[SlotOverride]) -> None:
        """Upsert slot overrides for the trainer."""

    def set_slot_overrides_active(
        self,
        trainer_id: str,
        date_string: str,
        is_active: bool,
        duration: Optional[int] = None,
    ) -> int:
        """Set every override on a date to ``is_active``; return how many changed."""

    def replace_slot_overrides(
        self,
        trainer_id: str,
        date_string: str,
        overrides: Sequence[SlotOverride],
    ) -> None:
        """Replace all overrides on a date."""


class BookingSlotService:
    """
    Orchestrates availability retrieval and slot derivation.
    """

    def __init__(
        self,
        backend_client: BackendClientProtocol,
        slot_calculator: SlotCalculator,
        timezone: str = "Europe/Berlin",
    ) -> None:
        self._backend_client = backend_client
        self._slot_calculator = slot_calculator
        self._timezone = timezone

    def get_availability(self, *, trainer_id: str) -> List[AvailabilityDay]:
        """Return the trainer's weekly availability as stored."""
        return self._fetch_availability(trainer_id)

    def slots_for_date(
        self,
        *,
        trainer_id: str,
        date_string: str,
        duration: int,
    ) -> List[SlotStatus]:
        """
        Derive the slots for one date, marked with overrides and bookings.
        """
        parse_date(date_string)
        availability = self._fetch_availability(trainer_id)

        return self._slot_calculator.slot_statuses(
            date_string,
            availability,
            duration,
            overrides=self._backend_client.get_slot_overrides(trainer_id),
            bookings=self._backend_client.get_bookings(trainer_id),
        )

    def slots_for_week(
        self,
        *,
        trainer_id: str,
        start_date: str,
        duration: int,
        days: int = 7,
    ) -> Dict[str, List[SlotStatus]]:
        """
        Derive slots for ``days`` consecutive calendar days starting at ``start_date``.

        Backend data is fetched once and reused for every day.
        """
        if days <= 0:
            raise ValueError(f"days must be positive, got {days}")

        start = parse_date(start_date)
        availability = self._fetch_availability(trainer_id)
        overrides = self._backend_client.get_slot_overrides(trainer_id)
        bookings = self._backend_client.get_bookings(trainer_id)

        week: Dict[str, List[SlotStatus]] = {}
        for offset in range(days):
            date_string = date_to_local_string(start.add(days=offset))
            week[date_string] = self._slot_calculator.slot_statuses(
                date_string,
                availability,
                duration,
                overrides=overrides,
                bookings=bookings,
            )

        return week

    def is_date_bookable(
        self,
        *,
        trainer_id: str,
        date_string: str,
        today: Optional[Union[str, date]] = None,
    ) -> bool:
        """
        Past dates are never bookable; otherwise the weekday must be active.
        """
        requested = parse_date(date_string)
        if today is None:
            reference = pendulum.today(self._timezone).date()
        elif isinstance(today, str):
            reference = parse_date(today)
        else:
            reference = today

        if requested < reference:
            return False

        return is_date_available(date_string, self._backend_client.get_availability(trainer_id))

    def replace_availability(self, *, trainer_id: str, days: Sequence[AvailabilityDay]) -> None:
        """
        Replace a trainer's availability wholesale after validating it.

        Raises:
            ValueError: If a day name is unknown or appears twice
        """
        seen: set[str] = set()
        for day in days:
            if day.day not in WEEKDAY_NAMES:
                raise ValueError(f"Unknown weekday name: {day.day!r}")
            if day.day in seen:
                raise ValueError(f"Duplicate availability entry for {day.day}")
            seen.add(day.day)
            self._warn_on_overlapping_windows(trainer_id, day)

        self._backend_client.set_availability(trainer_id, list(days))

    def set_slot_active(
        self,
        *,
        trainer_id: str,
        date_string: str,
        start_time: str,
        end_time: str,
        duration: int,
        is_active: bool,
    ) -> List[SlotOverride]:
        """
        Enable or disable a single derived slot on one date.

        Disabling also disables the overlapping slots of the other duration.
        Returns every override that was saved.
        """
        parse_date(date_string)
        parse_time(start_time)
        parse_time(end_time)
        self._slot_calculator.validate_duration(duration)

        override = SlotOverride(
            date=date_string,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            is_active=is_active,
        )
        overrides = [override, *cascading_overrides(override)]

        self._backend_client.save_slot_overrides(trainer_id, overrides)
        logger.info(
            "Slot %s %s-%s (%d min) for trainer %s set %s",
            date_string,
            start_time,
            end_time,
            duration,
            trainer_id,
            "active" if is_active else "inactive",
        )
        return overrides

    def set_all_slots_for_date(
        self,
        *,
        trainer_id: str,
        date_string: str,
        is_active: bool,
        duration: Optional[int] = None,
    ) -> int:
        """
        Enable or disable every stored override on a date.

        Only overrides that already exist are touched. With ``duration`` set,
        only overrides of that duration change. Returns the number updated.
        """
        parse_date(date_string)
        if duration is not None:
            self._slot_calculator.validate_duration(duration)

        updated = self._backend_client.set_slot_overrides_active(
            trainer_id, date_string, is_active, duration
        )
        logger.info(
            "%d slot(s) on %s for trainer %s set %s",
            updated,
            date_string,
            trainer_id,
            "active" if is_active else "inactive",
        )
        return updated

    def replace_slots_for_date(
        self,
        *,
        trainer_id: str,
        date_string: str,
        overrides: Sequence[SlotOverride],
    ) -> List[SlotOverride]:
        """
        Replace the overrides stored for one date with ``overrides``.

        Stored overrides of that date that are not in the new list are removed.

        Raises:
            ValueError: If an override belongs to another date, has an
                unsupported duration or appears twice
        """
        parse_date(date_string)

        replacement: List[SlotOverride] = []
        for override in overrides:
            if override.date != date_string:
                raise ValueError(
                    f"Override {override.start_time}-{override.end_time} is for {override.date}, not {date_string}"
                )
            self._slot_calculator.validate_duration(override.duration)
            if any(existing.same_slot(override) for existing in replacement):
                raise ValueError(
                    f"Duplicate override {override.start_time}-{override.end_time} ({override.duration} min)"
                )
            replacement.append(override)

        self._backend_client.replace_slot_overrides(trainer_id, date_string, replacement)
        logger.info("Replaced slot overrides on %s for trainer %s: %d", date_string, trainer_id, len(replacement))
        return replacement

    @staticmethod
    def toggle_selection(
        selected: Sequence[BookedSlot],
        *,
        date_string: str,
        slot: TimeSlot,
        max_per_week: int,
    ) -> List[BookedSlot]:
        """
        Add a slot to a user's selection, or remove it if already selected.

        Raises:
            SelectionLimitError: If adding would exceed ``max_per_week``
        """
        candidate = BookedSlot(date=date_string, start_time=slot.start_time, end_time=slot.end_time)

        if candidate in selected:
            return [s for s in selected if s != candidate]

        if len(selected) >= max_per_week:
            plural = "s" if max_per_week > 1 else ""
            raise SelectionLimitError(
                f"You can only select {max_per_week} session{plural} per week."
            )

        return [*selected, candidate]

    def _fetch_availability(self, trainer_id: str) -> List[AvailabilityDay]:
        availability = self._backend_client.get_availability(trainer_id)
        for day in availability:
            self._warn_on_overlapping_windows(trainer_id, day)
        return availability

    @staticmethod
    def _warn_on_overlapping_windows(trainer_id: str, day: AvailabilityDay) -> None:
        # Overlapping windows are passed through and can yield overlapping slots
        windows = day.windows
        for i, first in enumerate(windows):
            for second in windows[i + 1:]:
                if first.overlaps(second):
                    logger.warning(
                        "Trainer %s has overlapping availability windows on %s: %s and %s",
                        trainer_id,
                        day.day,
                        first,
                        second,
                    )

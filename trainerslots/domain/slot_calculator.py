"""
Core business logic for deriving bookable slots from weekly availability.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O). Every function here is stateless and safe to call from
any number of request contexts at once.
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .models import (
    AvailabilityDay,
    AvailabilityWindow,
    Booking,
    SlotOverride,
    SlotStatus,
    TimeSlot,
    slots_overlap,
)
from .time_utils import format_time_12_hour, get_day_name, minutes_to_time, time_to_minutes

WindowLike = Union[AvailabilityWindow, Mapping[str, Any]]

SUPPORTED_DURATIONS = (30, 60)


def align_start(start_minutes: int, duration: int) -> int:
    """
    Round a window start up to the next clean grid mark for ``duration``.

    30-minute slots snap to :00 or :30, 60-minute slots snap to :00. More
    generally a duration that divides the hour snaps to multiples of itself and
    a whole number of hours snaps to the hour. Any other duration starts
    exactly where the window opens.
    """
    if 60 % duration == 0:
        step = duration
    elif duration % 60 == 0:
        step = 60
    else:
        return start_minutes

    return -(-start_minutes // step) * step


def _as_window(window: WindowLike) -> AvailabilityWindow:
    if isinstance(window, AvailabilityWindow):
        return window
    return AvailabilityWindow.from_dict(window)


def generate_time_slots(windows: Iterable[WindowLike], duration: int) -> List[TimeSlot]:
    """
    Slice availability windows into fixed-length slots.

    Each window is handled independently and in input order. The start is
    aligned first (see ``align_start``), then slots are emitted back to back
    while they still fit before the window closes. A window that is too short
    after alignment contributes nothing. Overlapping windows are not merged,
    so they can produce overlapping slots.

    Example (30 min):
    Window: 07:10 - 08:00
    Result: [07:30-08:00]

    Raises:
        ValueError: If duration is not a positive integer
        MalformedTimeInput: If a window holds an invalid time
    """
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise ValueError(f"Slot duration must be a positive number of minutes, got {duration!r}")

    slots: List[TimeSlot] = []

    for raw_window in windows:
        window = _as_window(raw_window)
        window_end = window.end_minutes()
        current_start = align_start(window.start_minutes(), duration)

        while current_start + duration <= window_end:
            start_time = minutes_to_time(current_start)
            end_time = minutes_to_time(current_start + duration)
            slots.append(
                TimeSlot(
                    start_time=start_time,
                    end_time=end_time,
                    display_start=format_time_12_hour(start_time),
                    display_end=format_time_12_hour(end_time),
                )
            )
            current_start += duration

    return slots


def find_day_availability(
    date_string: str,
    availability_days: Iterable[AvailabilityDay],
) -> Optional[AvailabilityDay]:
    """Return the active availability entry for the weekday of ``date_string``."""
    day_name = get_day_name(date_string)
    for day in availability_days:
        if day.day == day_name and day.is_active:
            return day
    return None


def is_date_available(date_string: str, availability_days: Iterable[Any]) -> bool:
    """
    True iff some entry matches the date's weekday and is active.

    Only the day flag is checked. A day whose windows are all too short to hold
    a slot still counts as available.

    Entries may be ``AvailabilityDay`` objects or ``{day, isActive}`` records.
    A record without ``isActive`` counts as active, as in ``AvailabilityDay.from_dict``.
    """
    day_name = get_day_name(date_string)
    for entry in availability_days:
        if isinstance(entry, Mapping):
            day, is_active = entry.get("day"), entry.get("isActive")
            if is_active is None:
                is_active = True
        else:
            day, is_active = entry.day, entry.is_active
        if day == day_name and is_active:
            return True
    return False


def cascading_overrides(override: SlotOverride) -> List[SlotOverride]:
    """
    Overrides of the other duration that a disabling override implies.

    Disabling a 30-minute slot also disables the 60-minute slot of the hour it
    sits in; disabling a 60-minute slot disables both of its 30-minute halves.
    Enabling never cascades.

    Example:
    Disable 09:30-10:00 (30) -> disable 09:00-10:00 (60)
    Disable 09:00-10:00 (60) -> disable 09:00-09:30 (30), 09:30-10:00 (30)
    """
    if override.is_active:
        return []

    start = time_to_minutes(override.start_time)
    end = time_to_minutes(override.end_time)
    spans: List[Tuple[int, int, int]] = []

    if override.duration == 30:
        hour_start = (start // 60) * 60
        hour_end = hour_start + 60
        if end <= hour_end:
            spans.append((hour_start, hour_end, 60))
    elif override.duration == 60:
        spans.append((start, start + 30, 30))
        spans.append((start + 30, end, 30))

    return [
        SlotOverride(
            date=override.date,
            start_time=minutes_to_time(span_start),
            end_time=minutes_to_time(span_end),
            duration=span_duration,
            is_active=False,
        )
        for span_start, span_end, span_duration in spans
    ]


class SlotCalculator:
    """
    Derives per-date slot listings from a trainer's weekly availability.

    Algorithm:
    1. Find the active availability entry for the date's weekday
    2. Slice its windows into aligned slots of the session duration
    3. Apply admin overrides matching date, times and duration
    4. Mark slots that overlap a confirmed booking on the same date
    """

    def __init__(self, allowed_durations: Optional[Sequence[int]] = SUPPORTED_DURATIONS):
        self.allowed_durations = tuple(allowed_durations) if allowed_durations else None

    def validate_duration(self, duration: int) -> int:
        """Ensure duration is one the calculator is configured for."""
        if self.allowed_durations is not None and duration not in self.allowed_durations:
            allowed = ", ".join(str(d) for d in self.allowed_durations)
            raise ValueError(f"Unsupported session duration {duration}; expected one of: {allowed}")
        return duration

    @staticmethod
    def duration_between(start_time: str, end_time: str) -> int:
        """
        Minutes from ``start_time`` to ``end_time``.

        Raises:
            ValueError: If the end is not after the start
        """
        duration = time_to_minutes(end_time) - time_to_minutes(start_time)
        if duration <= 0:
            raise ValueError(f"Slot end {end_time} must be after start {start_time}")
        return duration

    def slots_for_date(
        self,
        date_string: str,
        availability_days: Sequence[AvailabilityDay],
        duration: int,
    ) -> List[TimeSlot]:
        """Generate raw slots for a date, empty when the weekday is inactive."""
        self.validate_duration(duration)
        day = find_day_availability(date_string, availability_days)
        if day is None:
            return []
        return generate_time_slots(day.windows, duration)

    def slot_statuses(
        self,
        date_string: str,
        availability_days: Sequence[AvailabilityDay],
        duration: int,
        overrides: Sequence[SlotOverride] = (),
        bookings: Sequence[Booking] = (),
    ) -> List[SlotStatus]:
        """
        Generate slots for a date and merge in overrides and bookings.

        Slots without an override default to active.
        """
        slots = self.slots_for_date(date_string, availability_days, duration)

        statuses: List[SlotStatus] = []
        for slot in slots:
            override = self._find_override(date_string, slot, duration, overrides)
            statuses.append(
                SlotStatus(
                    slot=slot,
                    is_active=override.is_active if override else True,
                    has_override=override is not None,
                    is_booked=self.is_slot_booked(date_string, slot, bookings),
                )
            )
        return statuses

    @staticmethod
    def is_slot_booked(date_string: str, slot: TimeSlot, bookings: Sequence[Booking]) -> bool:
        """Check whether a slot overlaps any confirmed booking on the same date."""
        for booking in bookings:
            if not booking.is_confirmed():
                continue
            for booked in booking.slots:
                if booked.date != date_string:
                    continue
                if slots_overlap(slot.start_time, slot.end_time, booked.start_time, booked.end_time):
                    return True
        return False

    @staticmethod
    def _find_override(
        date_string: str,
        slot: TimeSlot,
        duration: int,
        overrides: Sequence[SlotOverride],
    ) -> Optional[SlotOverride]:
        # Last matching override wins
        match: Optional[SlotOverride] = None
        for override in overrides:
            if override.matches(date_string, slot, duration):
                match = override
        return match

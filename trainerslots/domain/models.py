"""
Domain models for trainer availability, derived slots and bookings.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .time_utils import parse_date, parse_time, time_to_minutes


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    An open interval ``[from, to)`` within a day, both in 24-hour ``HH:MM``.

    ``from_time < to_time`` is expected but not enforced; an inverted window
    simply yields no slots.
    """
    from_time: str
    to_time: str

    def __post_init__(self):
        parse_time(self.from_time)
        parse_time(self.to_time)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AvailabilityWindow":
        """Build a window from a backend ``{"from": ..., "to": ...}`` record."""
        return cls(from_time=data["from"], to_time=data["to"])

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.from_time, "to": self.to_time}

    def start_minutes(self) -> int:
        return time_to_minutes(self.from_time)

    def end_minutes(self) -> int:
        return time_to_minutes(self.to_time)

    def overlaps(self, other: "AvailabilityWindow") -> bool:
        """Check if this window overlaps with another."""
        return (
            self.start_minutes() < other.end_minutes()
            and self.end_minutes() > other.start_minutes()
        )

    def __str__(self) -> str:
        return f"{self.from_time} - {self.to_time}"


@dataclass
class AvailabilityDay:
    """
    A trainer's recurring availability for one weekday.

    Owned by a trainer and replaced wholesale whenever availability changes.
    """
    day: str  # "Monday" ... "Sunday"
    windows: List[AvailabilityWindow] = field(default_factory=list)
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AvailabilityDay":
        """
        Build from a persistence record ``{day, timeSlots: [{from, to}], isActive}``.

        A missing ``isActive`` counts as active.
        """
        is_active = data.get("isActive")
        return cls(
            day=data["day"],
            windows=[AvailabilityWindow.from_dict(w) for w in data.get("timeSlots", [])],
            is_active=True if is_active is None else bool(is_active),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "timeSlots": [w.to_dict() for w in self.windows],
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class TimeSlot:
    """
    A concrete bookable interval derived from an availability window.

    Carries both the 24-hour machine form and the 12-hour display form.
    """
    start_time: str
    end_time: str
    display_start: str
    display_end: str

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return time_to_minutes(self.end_time) - time_to_minutes(self.start_time)

    def overlaps(self, other: "TimeSlot") -> bool:
        """Check if this slot overlaps with another."""
        return slots_overlap(self.start_time, self.end_time, other.start_time, other.end_time)

    def key(self) -> str:
        return f"{self.start_time}-{self.end_time}"

    def format_display(self) -> str:
        """Format: 7:30 AM – 8:00 AM (30 min)"""
        return f"{self.display_start} – {self.display_end} ({self.duration_minutes()} min)"


@dataclass(frozen=True)
class BookedSlot:
    """A slot that was persisted as part of a booking."""
    date: str  # YYYY-MM-DD
    start_time: str
    end_time: str

    def __post_init__(self):
        parse_date(self.date)
        parse_time(self.start_time)
        parse_time(self.end_time)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BookedSlot":
        return cls(date=data["date"], start_time=data["startTime"], end_time=data["endTime"])


@dataclass
class Booking:
    """
    A user's booking against a trainer.

    Only ``confirmed`` bookings block slots; pending and cancelled ones do not.
    """
    booking_id: str
    status: str  # "pending", "confirmed", "cancelled", "completed"
    slots: List[BookedSlot] = field(default_factory=list)

    CONFIRMED = "confirmed"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Booking":
        return cls(
            booking_id=str(data.get("_id") or data.get("id") or ""),
            status=str(data.get("status", "")).lower(),
            slots=[BookedSlot.from_dict(s) for s in data.get("slots", [])],
        )

    def is_confirmed(self) -> bool:
        return self.status == self.CONFIRMED


@dataclass(frozen=True)
class SlotOverride:
    """
    An admin override enabling or disabling one derived slot on one date.

    Overrides are keyed by date, start, end and duration, so disabling a
    60-minute slot does not by itself hide the 30-minute slots on that date.
    """
    date: str
    start_time: str
    end_time: str
    duration: int
    is_active: bool

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SlotOverride":
        return cls(
            date=data["date"],
            start_time=data["startTime"],
            end_time=data["endTime"],
            duration=int(data["duration"]),
            is_active=bool(data.get("isActive", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "isActive": self.is_active,
        }

    def same_slot(self, other: "SlotOverride") -> bool:
        return (
            self.date == other.date
            and self.start_time == other.start_time
            and self.end_time == other.end_time
            and self.duration == other.duration
        )

    def matches(self, date_string: str, slot: TimeSlot, duration: int) -> bool:
        return (
            self.date == date_string
            and self.start_time == slot.start_time
            and self.end_time == slot.end_time
            and self.duration == duration
        )


@dataclass(frozen=True)
class SlotStatus:
    """A derived slot merged with admin overrides and existing bookings."""
    slot: TimeSlot
    is_active: bool = True
    has_override: bool = False
    is_booked: bool = False

    @property
    def is_bookable(self) -> bool:
        return self.is_active and not self.is_booked


def slots_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Check whether two ``HH:MM`` intervals overlap (touching ends do not)."""
    return (
        time_to_minutes(start1) < time_to_minutes(end2)
        and time_to_minutes(end1) > time_to_minutes(start2)
    )

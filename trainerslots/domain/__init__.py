"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import InvalidDateError, MalformedTimeInput, TrainerSlotsError
from .models import AvailabilityDay, AvailabilityWindow, Booking, SlotOverride, SlotStatus, TimeSlot
from .slot_calculator import SlotCalculator, generate_time_slots, is_date_available
from .time_utils import convert_to_24_hour, date_to_local_string, format_time_12_hour, get_day_name

__all__ = [
    "AvailabilityDay",
    "AvailabilityWindow",
    "Booking",
    "InvalidDateError",
    "MalformedTimeInput",
    "SlotCalculator",
    "SlotOverride",
    "SlotStatus",
    "TimeSlot",
    "TrainerSlotsError",
    "convert_to_24_hour",
    "date_to_local_string",
    "format_time_12_hour",
    "generate_time_slots",
    "get_day_name",
    "is_date_available",
]

"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_slots import BackendClientProtocol, BookingSlotService

__all__ = ["BackendClientProtocol", "BookingSlotService"]

"""
Mock backend client for running without a live booking backend.
"""

import copy
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..domain.exceptions import BackendAPIError
from ..domain.models import AvailabilityDay, Booking, SlotOverride

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_backend_data.json"


class MockBackendClient:
    """
    Mock client that simulates the backend REST responses.

    Loads trainer availability, bookings and slot overrides from a JSON file
    (``mock_backend_data.json`` by default). Writes are kept in memory unless
    ``persist`` is set, in which case they are written back to the data file.
    The bundled fixture is never written to.
    """

    def __init__(self, data_file: Optional[Path] = None, persist: bool = False):
        """
        Initialize the mock client.

        Args:
            data_file: Optional path to a JSON fixture; defaults to the bundled one
            persist: Write changes back to ``data_file``

        Raises:
            ValueError: If ``persist`` is requested for the bundled fixture
        """
        self.data_file = Path(data_file) if data_file else DEFAULT_DATA_FILE
        if persist and self.data_file.resolve() == DEFAULT_DATA_FILE.resolve():
            raise ValueError(
                "The bundled mock data is read-only; set mock_data_file in the config to save changes"
            )
        self.persist = persist
        self._load_data()

    def _load_data(self) -> None:
        """Load mock trainer data from JSON file."""
        if not self.data_file.exists():
            raise FileNotFoundError(f"Mock data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise BackendAPIError(f"Invalid mock data in {self.data_file}: {exc}") from exc

        self._data: Dict[str, Any] = data
        self.trainers: Dict[str, Dict[str, Any]] = copy.deepcopy(data.get("trainers", {}))

    def _trainer(self, trainer_id: str) -> Dict[str, Any]:
        try:
            return self.trainers[trainer_id]
        except KeyError:
            raise BackendAPIError(f"Unknown trainer: {trainer_id}") from None

    def trainer_ids(self) -> List[str]:
        return sorted(self.trainers)

    def get_availability(self, trainer_id: str) -> List[AvailabilityDay]:
        records = self._trainer(trainer_id).get("availability", [])
        return [AvailabilityDay.from_dict(record) for record in records]

    def set_availability(self, trainer_id: str, days: Sequence[AvailabilityDay]) -> None:
        trainer = self._trainer(trainer_id)
        trainer["availability"] = [day.to_dict() for day in days]
        logger.debug("Mock availability replaced for %s", trainer_id)
        self._save_data()

    def get_bookings(self, trainer_id: str) -> List[Booking]:
        records = self._trainer(trainer_id).get("bookings", [])
        return [Booking.from_dict(record) for record in records]

    def get_slot_overrides(self, trainer_id: str) -> List[SlotOverride]:
        records = self._trainer(trainer_id).get("slotOverrides", [])
        return [SlotOverride.from_dict(record) for record in records]

    def save_slot_overrides(self, trainer_id: str, overrides: Sequence[SlotOverride]) -> None:
        """Upsert overrides, replacing any stored entry for the same slot."""
        trainer = self._trainer(trainer_id)
        stored = [SlotOverride.from_dict(record) for record in trainer.get("slotOverrides", [])]

        for override in overrides:
            stored = [existing for existing in stored if not existing.same_slot(override)]
            stored.append(override)

        trainer["slotOverrides"] = [override.to_dict() for override in stored]
        logger.debug("Mock slot overrides saved for %s: %d", trainer_id, len(overrides))
        self._save_data()

    def set_slot_overrides_active(
        self,
        trainer_id: str,
        date_string: str,
        is_active: bool,
        duration: Optional[int] = None,
    ) -> int:
        """Set every stored override on a date (optionally one duration) to ``is_active``."""
        trainer = self._trainer(trainer_id)
        stored = [SlotOverride.from_dict(record) for record in trainer.get("slotOverrides", [])]

        updated = 0
        for i, override in enumerate(stored):
            if override.date != date_string:
                continue
            if duration is not None and override.duration != duration:
                continue
            stored[i] = replace(override, is_active=is_active)
            updated += 1

        trainer["slotOverrides"] = [override.to_dict() for override in stored]
        logger.debug("Mock slot overrides on %s for %s updated: %d", date_string, trainer_id, updated)
        self._save_data()
        return updated

    def replace_slot_overrides(
        self,
        trainer_id: str,
        date_string: str,
        overrides: Sequence[SlotOverride],
    ) -> None:
        """Replace all stored overrides on a date with ``overrides``."""
        trainer = self._trainer(trainer_id)
        kept = [
            record for record in trainer.get("slotOverrides", [])
            if record.get("date") != date_string
        ]
        trainer["slotOverrides"] = kept + [override.to_dict() for override in overrides]
        logger.debug("Mock slot overrides on %s for %s replaced: %d", date_string, trainer_id, len(overrides))
        self._save_data()

    def _save_data(self) -> None:
        if not self.persist:
            return

        self._data["trainers"] = self.trainers
        with open(self.data_file, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2)
            f.write("\n")
        logger.debug("Mock data written to %s", self.data_file)

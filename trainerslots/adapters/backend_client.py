"""
HTTP client for the booking backend's trainer availability endpoints.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..domain.exceptions import BackendAPIError
from ..domain.models import AvailabilityDay, Booking, SlotOverride

logger = logging.getLogger(__name__)


class BackendClient:
    """
    Client for the persistence backend's REST surface.

    Endpoints (relative to ``base_url``):
    - GET /trainers/{id}/availability   -> [{day, timeSlots, isActive}]
    - PUT /trainers/{id}/availability   <- {availability: [...]}
    - GET /trainers/{id}/bookings       -> [{_id, status, slots}]
    - GET /trainers/{id}/slot-overrides -> [{date, startTime, endTime, duration, isActive}]
    - POST /trainers/{id}/slot-overrides <- {overrides: [...]}
    - PATCH /trainers/{id}/slot-overrides/{date} <- {isActive, duration?} -> {updated}
    - PUT /trainers/{id}/slot-overrides/{date} <- {overrides: [...]}
    """

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the backend client.

        Args:
            base_url: Root URL of the backend API
            api_token: Optional bearer token sent with every request
            timeout: Request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"

    def get_availability(self, trainer_id: str) -> List[AvailabilityDay]:
        """
        Fetch a trainer's weekly availability.

        Raises:
            BackendAPIError: If the request fails
        """
        records = self._get(f"/trainers/{trainer_id}/availability")
        return self._parse_records(records, AvailabilityDay.from_dict, "availability")

    def set_availability(self, trainer_id: str, days: Sequence[AvailabilityDay]) -> None:
        """
        Replace a trainer's availability wholesale.

        Raises:
            BackendAPIError: If the request fails
        """
        url = f"{self.base_url}/trainers/{trainer_id}/availability"
        payload = {"availability": [day.to_dict() for day in days]}

        try:
            response = self.session.put(url, headers=self.headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise BackendAPIError(f"Failed to update availability for trainer {trainer_id}: {e}") from e

        logger.info("Replaced availability for trainer %s (%d days)", trainer_id, len(days))

    def get_bookings(self, trainer_id: str) -> List[Booking]:
        """Fetch all bookings recorded against a trainer."""
        records = self._get(f"/trainers/{trainer_id}/bookings")
        return self._parse_records(records, Booking.from_dict, "booking")

    def get_slot_overrides(self, trainer_id: str) -> List[SlotOverride]:
        """Fetch admin slot overrides for a trainer."""
        records = self._get(f"/trainers/{trainer_id}/slot-overrides")
        return self._parse_records(records, SlotOverride.from_dict, "slot override")

    def save_slot_overrides(self, trainer_id: str, overrides: Sequence[SlotOverride]) -> None:
        """
        Upsert slot overrides (keyed by date, times and duration).

        Raises:
            BackendAPIError: If the request fails
        """
        url = f"{self.base_url}/trainers/{trainer_id}/slot-overrides"
        payload = {"overrides": [override.to_dict() for override in overrides]}

        try:
            response = self.session.post(url, headers=self.headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise BackendAPIError(f"Failed to save slot overrides for trainer {trainer_id}: {e}") from e

        logger.info("Saved %d slot override(s) for trainer %s", len(overrides), trainer_id)

    def set_slot_overrides_active(
        self,
        trainer_id: str,
        date_string: str,
        is_active: bool,
        duration: Optional[int] = None,
    ) -> int:
        """
        Set every override on a date, optionally only one duration, to ``is_active``.

        Returns:
            Number of overrides the backend updated

        Raises:
            BackendAPIError: If the request fails
        """
        url = f"{self.base_url}/trainers/{trainer_id}/slot-overrides/{date_string}"
        payload: Dict[str, Any] = {"isActive": is_active}
        if duration is not None:
            payload["duration"] = duration

        try:
            response = self.session.patch(url, headers=self.headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise BackendAPIError(f"Failed to update slot overrides for trainer {trainer_id}: {e}") from e
        except ValueError as e:
            raise BackendAPIError(f"Backend returned invalid JSON for {url}: {e}") from e

        updated = data.get("updated", 0) if isinstance(data, dict) else 0
        logger.info("Updated %d slot override(s) on %s for trainer %s", updated, date_string, trainer_id)
        return updated

    def replace_slot_overrides(
        self,
        trainer_id: str,
        date_string: str,
        overrides: Sequence[SlotOverride],
    ) -> None:
        """
        Replace all overrides on a date; stored ones missing from ``overrides`` are deleted.

        Raises:
            BackendAPIError: If the request fails
        """
        url = f"{self.base_url}/trainers/{trainer_id}/slot-overrides/{date_string}"
        payload = {"overrides": [override.to_dict() for override in overrides]}

        try:
            response = self.session.put(url, headers=self.headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise BackendAPIError(f"Failed to replace slot overrides for trainer {trainer_id}: {e}") from e

        logger.info("Replaced slot overrides on %s for trainer %s (%d)", date_string, trainer_id, len(overrides))

    def _get(self, path: str) -> List[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise BackendAPIError(f"Failed to fetch {path} from backend: {e}") from e
        except ValueError as e:
            raise BackendAPIError(f"Backend returned invalid JSON for {path}: {e}") from e

        # Some deployments wrap collections as {"value": [...]}
        if isinstance(data, dict):
            data = data.get("value", [])

        if not isinstance(data, list):
            raise BackendAPIError(f"Expected a list from {path}, got {type(data).__name__}")

        return data

    @staticmethod
    def _parse_records(records, factory, kind: str) -> list:
        parsed = []
        for record in records:
            try:
                parsed.append(factory(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed %s record %r: %s", kind, record, e)
                continue
        return parsed

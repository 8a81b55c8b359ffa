"""
Tests for the HTTP backend client.
"""

from unittest.mock import MagicMock

import pytest
import requests

from trainerslots.adapters.backend_client import BackendClient
from trainerslots.domain.exceptions import BackendAPIError
from trainerslots.domain.models import AvailabilityDay, AvailabilityWindow, SlotOverride


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def _client(session) -> BackendClient:
    return BackendClient(base_url="https://api.example.com/", api_token="secret", session=session)


class TestBackendClient:
    """Tests for BackendClient."""

    def test_get_availability_parses_records(self):
        session = MagicMock()
        session.get.return_value = _response(
            [
                {"day": "Monday", "timeSlots": [{"from": "09:00", "to": "11:00"}], "isActive": True},
                {"day": "Friday", "timeSlots": []},
            ]
        )

        days = _client(session).get_availability("t1")

        assert days == [
            AvailabilityDay(day="Monday", windows=[AvailabilityWindow("09:00", "11:00")]),
            AvailabilityDay(day="Friday"),
        ]
        url = session.get.call_args.args[0]
        assert url == "https://api.example.com/trainers/t1/availability"
        headers = session.get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer secret"
        assert session.get.call_args.kwargs["timeout"] == 30

    def test_no_token_means_no_auth_header(self):
        client = BackendClient(base_url="https://api.example.com", session=MagicMock())
        assert "Authorization" not in client.headers

    def test_wrapped_collection_is_unwrapped(self):
        session = MagicMock()
        session.get.return_value = _response(
            {"value": [{"date": "2024-01-03", "startTime": "06:00", "endTime": "06:30", "duration": 30, "isActive": False}]}
        )

        overrides = _client(session).get_slot_overrides("t1")

        assert overrides == [SlotOverride("2024-01-03", "06:00", "06:30", 30, is_active=False)]

    def test_malformed_records_are_skipped(self, caplog):
        """Test that one bad record does not hide the rest."""
        session = MagicMock()
        session.get.return_value = _response(
            [
                {"day": "Monday", "timeSlots": [{"from": "9am", "to": "11:00"}]},
                {"timeSlots": []},
                {"day": "Tuesday", "timeSlots": [{"from": "09:00", "to": "10:00"}]},
            ]
        )

        days = _client(session).get_availability("t1")

        assert [day.day for day in days] == ["Tuesday"]
        assert "Skipping malformed availability record" in caplog.text

    def test_request_failure_raises_backend_error(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(BackendAPIError, match="Failed to fetch"):
            _client(session).get_bookings("t1")

    def test_http_error_raises_backend_error(self):
        session = MagicMock()
        response = _response([])
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500 Server Error")
        session.get.return_value = response

        with pytest.raises(BackendAPIError):
            _client(session).get_availability("t1")

    def test_non_list_payload_raises(self):
        session = MagicMock()
        session.get.return_value = _response("oops")

        with pytest.raises(BackendAPIError, match="Expected a list"):
            _client(session).get_availability("t1")

    def test_set_availability_sends_backend_shape(self):
        session = MagicMock()
        session.put.return_value = _response(None)

        _client(session).set_availability(
            "t1", [AvailabilityDay(day="Monday", windows=[AvailabilityWindow("09:00", "10:00")])]
        )

        assert session.put.call_args.kwargs["json"] == {
            "availability": [{"day": "Monday", "timeSlots": [{"from": "09:00", "to": "10:00"}], "isActive": True}]
        }

    def test_save_slot_overrides_failure(self):
        session = MagicMock()
        session.post.side_effect = requests.exceptions.Timeout("timed out")

        with pytest.raises(BackendAPIError, match="Failed to save slot overrides"):
            _client(session).save_slot_overrides(
                "t1", [SlotOverride("2024-01-03", "06:00", "06:30", 30, is_active=False)]
            )

    def test_set_slot_overrides_active_with_duration(self):
        session = MagicMock()
        session.patch.return_value = _response({"updated": 3})

        updated = _client(session).set_slot_overrides_active("t1", "2024-01-03", False, duration=30)

        assert updated == 3
        assert session.patch.call_args.args[0] == "https://api.example.com/trainers/t1/slot-overrides/2024-01-03"
        assert session.patch.call_args.kwargs["json"] == {"isActive": False, "duration": 30}

    def test_set_slot_overrides_active_all_durations(self):
        session = MagicMock()
        session.patch.return_value = _response({"updated": 0})

        _client(session).set_slot_overrides_active("t1", "2024-01-03", True)

        assert session.patch.call_args.kwargs["json"] == {"isActive": True}

    def test_replace_slot_overrides_sends_full_list(self):
        session = MagicMock()
        session.put.return_value = _response(None)

        _client(session).replace_slot_overrides(
            "t1", "2024-01-03", [SlotOverride("2024-01-03", "08:00", "09:00", 60, is_active=False)]
        )

        assert session.put.call_args.args[0] == "https://api.example.com/trainers/t1/slot-overrides/2024-01-03"
        assert session.put.call_args.kwargs["json"] == {
            "overrides": [
                {"date": "2024-01-03", "startTime": "08:00", "endTime": "09:00", "duration": 60, "isActive": False}
            ]
        }

    def test_replace_slot_overrides_failure(self):
        session = MagicMock()
        session.put.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(BackendAPIError, match="Failed to replace slot overrides"):
            _client(session).replace_slot_overrides("t1", "2024-01-03", [])

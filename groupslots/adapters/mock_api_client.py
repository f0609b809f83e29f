"""
Mock schedule/group client for running without a backend.
"""

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..domain.exceptions import ScheduleAPIError
from ..domain.models import Group, ScheduleEntry, start_of_day
from .api_client import DEFAULT_EXCLUDED_STATUSES, parse_group_response, parse_schedule_items

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_schedule_data.json"


class MockApiClient:
    """
    Mock client that serves groups and schedules from a JSON file.

    The file holds ``groups`` in the backend's group detail format and a flat
    list of ``schedules``, each tagged with the ``userId`` it belongs to.
    """

    def __init__(
        self,
        data_file: Path | None = None,
        excluded_statuses: Sequence[str] = DEFAULT_EXCLUDED_STATUSES,
        data: Dict[str, Any] | None = None,
    ):
        """
        Initialize the mock client.

        Args:
            data_file: JSON file to load, defaults to the bundled sample
            excluded_statuses: Schedule statuses that do not count as busy
            data: Already loaded data, takes precedence over ``data_file``
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.excluded_statuses = tuple(excluded_statuses)
        self.data = data if data is not None else self._load_data()

    def _load_data(self) -> Dict[str, Any]:
        """Load mock data from the JSON file."""
        if not self.data_file.exists():
            return {"groups": [], "schedules": []}

        with open(self.data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def get_group(self, group_id: str) -> Group:
        for group in self.data.get("groups", []):
            if str(group.get("groupId")) == str(group_id):
                return parse_group_response(group)

        raise ScheduleAPIError(f"Group {group_id} not found")

    def get_schedules(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
    ) -> List[ScheduleEntry]:
        """
        Return the user's schedule entries that touch [start_date, end_date].
        """
        window_start = start_of_day(start_date, timezone)
        window_end = start_of_day(end_date, timezone).add(days=1)

        user_items = [
            item for item in self.data.get("schedules", [])
            if str(item.get("userId")) == str(user_id)
        ]
        entries = parse_schedule_items(user_items, timezone, self.excluded_statuses)

        # Inverted entries are kept so they are reported, not hidden
        return [
            entry for entry in entries
            if entry.start >= entry.end or (entry.start < window_end and entry.end > window_start)
        ]

"""
REST client for the schedule-lookup and group-membership services.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import ScheduleAPIError
from ..domain.models import Group, Participant, ScheduleEntry, get_timezone

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_STATUSES = ("CANCELED",)


class ScheduleApiClient:
    """
    Client for the calendar backend.

    Uses ``GET /v1/groups/{groupId}`` for membership and
    ``GET /v1/users/{userId}/schedules`` for each member's schedule entries.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        timeout: float = 30,
        excluded_statuses: Sequence[str] = DEFAULT_EXCLUDED_STATUSES,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Backend base URL, e.g. http://localhost:8080/api
            access_token: Optional bearer token
            timeout: Request timeout in seconds
            excluded_statuses: Schedule statuses that do not count as busy
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.excluded_statuses = {status.upper() for status in excluded_statuses}
        self.headers = {"Content-Type": "application/json"}
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"

    def get_group(self, group_id: str) -> Group:
        """
        Fetch a group and its members.

        Raises:
            ScheduleAPIError: If the request fails or the response is malformed
        """
        data = self._get(f"/v1/groups/{group_id}")
        return parse_group_response(data)

    def get_schedules(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
    ) -> List[ScheduleEntry]:
        """
        Fetch one user's schedule entries for an inclusive date range.

        Raises:
            ScheduleAPIError: If the request fails
        """
        data = self._get(
            f"/v1/users/{user_id}/schedules",
            params={
                "startDate": start_date.isoformat(),
                "endDate": end_date.isoformat(),
            },
            participant_id=user_id,
        )

        if not isinstance(data, list):
            raise ScheduleAPIError(
                f"Expected a list of schedules for user {user_id}", participant_id=user_id
            )

        return parse_schedule_items(data, timezone, self.excluded_statuses)

    def _get(
        self,
        path: str,
        params: Optional[Dict[str, str]] = None,
        participant_id: str | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"

        try:
            response = requests.get(
                url,
                headers=self.headers,
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise ScheduleAPIError(
                f"Request to {url} failed: {e}", participant_id=participant_id
            ) from e
        except ValueError as e:
            raise ScheduleAPIError(
                f"Response from {url} is not valid JSON: {e}", participant_id=participant_id
            ) from e


def parse_group_response(data: Dict[str, Any]) -> Group:
    """
    Parse a group detail response into our domain model.

    Response format:
    {
        "groupId": 1,
        "name": "Capstone",
        "members": [
            {"memberId": 10, "role": "OWNER",
             "user": {"cognitoSub": "abc", "name": "Alice", "email": "..."}}
        ]
    }
    """
    try:
        members = [
            Participant(id=str(member["user"]["cognitoSub"]), name=member["user"].get("name", ""))
            for member in data.get("members", [])
        ]
        return Group(id=str(data["groupId"]), name=data.get("name", ""), members=members)
    except (KeyError, TypeError, AttributeError) as exc:
        raise ScheduleAPIError(f"Malformed group response: {exc}") from exc


def parse_schedule_items(
    items: Iterable[Dict[str, Any]],
    timezone: str,
    excluded_statuses: Iterable[str] = DEFAULT_EXCLUDED_STATUSES,
) -> List[ScheduleEntry]:
    """
    Parse schedule responses into ScheduleEntry objects.

    Entries with an excluded status are dropped. Entries whose timestamps
    cannot be parsed are logged and skipped; entries with start >= end are
    kept so the calculator can reject them.
    """
    excluded = {status.upper() for status in excluded_statuses}
    entries: List[ScheduleEntry] = []

    for item in items:
        status = (item.get("status") or "").upper()
        if status in excluded:
            continue

        try:
            start = _parse_datetime(item["startTime"], timezone)
            end = _parse_datetime(item["endTime"], timezone)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            logger.warning("Could not parse schedule item %s: %s", item.get("scheduleId"), e)
            continue

        entries.append(
            ScheduleEntry(start=start, end=end, title=item.get("title") or "", status=status or None)
        )

    return entries


def _parse_datetime(datetime_str: str, timezone: str) -> DateTime:
    """
    Parse a datetime string to a pendulum DateTime in the specified timezone.

    The backend sends local date-times without offset; those are read as
    local time in ``timezone``.
    """
    tz = get_timezone(timezone)
    dt = pendulum.parse(datetime_str, tz=tz)

    if isinstance(dt, DateTime):
        return dt.in_timezone(tz)

    raise ValueError(f"Could not parse datetime: {datetime_str}")

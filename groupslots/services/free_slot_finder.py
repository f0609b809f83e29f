"""
Application services for finding common free time of a group.

The service coordinates fetching group members and their schedules via a
client adapter and delegates the actual availability calculation to the
domain-level ``FreeSlotCalculator``. The calendar dependency is described by
a simple protocol so tests can plug in a stub.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from ..domain.exceptions import InvalidConstraints, ScheduleAPIError
from ..domain.models import Group, Participant, ScheduleEntry, SearchConstraints
from ..domain.slot_calculator import FreeSlotCalculator
from ..schemas import FreeSlotRequest, FreeSlotResponse, parse_request

logger = logging.getLogger(__name__)

FETCH_FAILURE_POLICIES = ("abort", "exclude")


class ScheduleClientProtocol(Protocol):
    """Protocol describing the collaborator behaviour needed by the service."""

    def get_group(self, group_id: str) -> Group:
        """Return the group with its members."""

    def get_schedules(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        timezone: str,
    ) -> List[ScheduleEntry]:
        """Return one user's schedule entries for an inclusive date range."""


class FreeSlotFinderService:
    """
    Orchestrates member lookup, schedule retrieval and slot calculation.

    Schedules of all members are fetched in parallel; the calculation only
    starts once every fetch has finished. ``fetch_failure_policy`` decides
    what happens when one member's fetch fails: ``"abort"`` fails the query,
    ``"exclude"`` drops that member and reports it in the response.
    """

    def __init__(
        self,
        schedule_client: ScheduleClientProtocol,
        calculator: Optional[FreeSlotCalculator] = None,
        fetch_failure_policy: str = "abort",
    ) -> None:
        if fetch_failure_policy not in FETCH_FAILURE_POLICIES:
            raise ValueError(
                f"fetch_failure_policy must be one of {FETCH_FAILURE_POLICIES}, "
                f"got '{fetch_failure_policy}'"
            )
        self._schedule_client = schedule_client
        self._calculator = calculator or FreeSlotCalculator()
        self._fetch_failure_policy = fetch_failure_policy

    async def find_free_slots(self, request: FreeSlotRequest) -> FreeSlotResponse:
        """
        Resolve participants, fetch their schedules and compute free slots.

        Inline participants in the request are used as-is; otherwise the
        group's members are fetched.
        """
        constraints = request.to_constraints()
        group: Optional[Group] = None
        excluded: List[str] = []

        if request.participants:
            participants = request.to_participants()
        elif request.group_id is not None:
            group, members = self.resolve_participants(request.group_id, request.user_ids)
            participants, excluded = await self.fetch_participants(members, constraints)
        else:
            raise InvalidConstraints("A request needs either participants or a groupId")

        result = self._calculator.find_free_slots(participants, constraints)
        result.group_id = group.id if group else request.group_id
        result.group_name = group.name if group else None
        result.excluded_participant_ids = excluded

        return FreeSlotResponse.from_result(result)

    def resolve_participants(
        self,
        group_id: str,
        user_ids: Optional[Sequence[str]] = None,
    ) -> Tuple[Group, List[Participant]]:
        """
        Fetch the group and select the members taking part.

        Args:
            group_id: Group to look up
            user_ids: Optional member ids or names; all members when omitted

        Raises:
            InvalidConstraints: If a requested member is not in the group
        """
        group = self._schedule_client.get_group(group_id)

        if not user_ids:
            return group, list(group.members)

        selected: List[Participant] = []
        unknown: List[str] = []

        for identifier in user_ids:
            member = group.find_member(identifier)
            if member is None:
                unknown.append(identifier)
            elif member not in selected:
                selected.append(member)

        if unknown:
            missing = ", ".join(sorted(set(unknown)))
            raise InvalidConstraints(f"Not a member of group {group.id}: {missing}")

        return group, selected

    async def fetch_participants(
        self,
        members: Sequence[Participant],
        constraints: SearchConstraints,
    ) -> Tuple[List[Participant], List[str]]:
        """
        Fetch schedules for all members in parallel.

        Returns:
            The participants with schedules, and the ids of excluded members
        """
        results = await asyncio.gather(
            *(
                asyncio.to_thread(
                    self._schedule_client.get_schedules,
                    member.id,
                    constraints.start_date,
                    constraints.end_date,
                    constraints.timezone,
                )
                for member in members
            ),
            return_exceptions=True,
        )

        participants: List[Participant] = []
        excluded: List[str] = []

        for member, outcome in zip(members, results):
            if isinstance(outcome, ScheduleAPIError):
                if outcome.participant_id is None:
                    outcome.participant_id = member.id
                if self._fetch_failure_policy == "abort":
                    raise outcome
                logger.warning(
                    "Excluding %s (%s) from the query: %s",
                    member.display_name(),
                    member.id,
                    outcome,
                )
                excluded.append(member.id)
                continue
            if isinstance(outcome, BaseException):
                raise outcome

            participants.append(
                Participant(id=member.id, name=member.name, schedules=list(outcome))
            )

        return participants, excluded


def compute_free_slots(
    payload: Mapping[str, Any],
    calculator: Optional[FreeSlotCalculator] = None,
) -> Dict[str, Any]:
    """
    Compute free slots for a request document with inline participants.

    This is the pure library entry point: no I/O, no collaborators.

    Args:
        payload: Request document using the wire field names
        calculator: Optional calculator instance

    Returns:
        Response document using the wire field names

    Raises:
        InvalidConstraints: If the request or its constraints are malformed
        InvalidInterval: If a busy schedule does not start before it ends
    """
    request = parse_request(payload)
    constraints = request.to_constraints()
    participants = request.to_participants()

    result = (calculator or FreeSlotCalculator()).find_free_slots(participants, constraints)
    result.group_id = request.group_id

    return FreeSlotResponse.from_result(result).to_payload()

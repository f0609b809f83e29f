"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .free_slot_finder import FreeSlotFinderService, ScheduleClientProtocol, compute_free_slots

__all__ = ["FreeSlotFinderService", "ScheduleClientProtocol", "compute_free_slots"]

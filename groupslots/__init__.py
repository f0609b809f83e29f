"""
groupslots - find the time ranges in which every member of a group is free.
"""

from .services.free_slot_finder import compute_free_slots

__version__ = "0.1.0"

__all__ = ["compute_free_slots", "__version__"]

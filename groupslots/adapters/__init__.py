"""
Adapters layer - External integrations (schedule and group services).
"""

from .api_client import ScheduleApiClient
from .mock_api_client import MockApiClient

__all__ = ["ScheduleApiClient", "MockApiClient"]

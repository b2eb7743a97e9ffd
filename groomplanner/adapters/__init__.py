"""
Adapters layer - Booking store implementations (memory, JSON file, REST API).
"""

from .booking_api_client import BookingApiClient
from .json_store import JsonFileStore
from .memory_store import InMemoryStore

__all__ = ["BookingApiClient", "InMemoryStore", "JsonFileStore"]

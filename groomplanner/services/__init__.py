"""
Service layer helpers that orchestrate the booking store and domain logic.
"""

from .reconciler import AuxiliaryHoursReconciler, BookingStoreProtocol
from .travel_times import TravelTimeLookup, TravelTimeTable

__all__ = [
    "AuxiliaryHoursReconciler",
    "BookingStoreProtocol",
    "TravelTimeLookup",
    "TravelTimeTable",
]

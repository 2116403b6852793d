"""
Unit conversion utilities for the Aid Station Planner.
Distances are computed in kilometers and reported in miles; elevations are
stored in meters and reported in feet.
"""

from typing import Optional


class UnitConverter:
    """Handles conversions between metric and imperial systems."""

    # Conversion factors
    KM_TO_MILES = 0.621371
    METERS_TO_FEET = 3.28084

    @staticmethod
    def km_to_miles(km: Optional[float]) -> Optional[float]:
        """Convert kilometers to miles."""
        return km * UnitConverter.KM_TO_MILES if km is not None else None

    @staticmethod
    def meters_to_feet(meters: Optional[float]) -> Optional[float]:
        """Convert meters to feet."""
        return meters * UnitConverter.METERS_TO_FEET if meters is not None else None

    @staticmethod
    def format_distance(distance_miles: Optional[float]) -> str:
        """Format distance in miles."""
        if distance_miles is None:
            return "N/A"
        return f"{distance_miles:.1f} miles"

    @staticmethod
    def format_elevation(elevation_ft: Optional[float]) -> str:
        """Format elevation in feet."""
        if elevation_ft is None:
            return "N/A"
        return f"{elevation_ft:.0f} ft"

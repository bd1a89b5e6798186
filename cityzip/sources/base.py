"""Base class for postal code reference data providers."""
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional


class PostalCodeSource(ABC):
    """Base class for postal code data providers."""

    @abstractmethod
    def fetch_postal_codes(self) -> List[Dict[str, Any]]:
        """
        Fetch every postal code from the source.

        Returns:
            List of rows, each with keys:
            - postal_code: Postal code as a string
            - city: City name as the source spells it
            - latitude: Latitude or None
            - longitude: Longitude or None
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get provider name."""
        pass

    @staticmethod
    def normalize_row(
        postal_code: Any,
        city: Any,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Normalize a source row to the standard format.

        Returns:
            Row dict, or None if the postal code or city is missing
        """
        code = str(postal_code).strip() if postal_code is not None else ""
        name = str(city).strip() if city is not None else ""
        if not code or not name:
            return None
        return {
            "postal_code": code,
            "city": name,
            "latitude": float(latitude) if latitude is not None else None,
            "longitude": float(longitude) if longitude is not None else None,
        }

"""Base class for reference stores the resolver reads from."""
from abc import ABC, abstractmethod
from typing import List, Optional

from cityzip.core.models import PostalRecord


class ReferenceStore(ABC):
    """Read-only access to postal records and city aliases."""

    @abstractmethod
    def find_by_normalized_city(self, normalized: str) -> List[PostalRecord]:
        """
        Find postal records for a normalized city name.

        Matches records whose normalized city equals the key. Only when there
        are none, matches records whose normalized base city equals it
        ("kobenhavn" -> every "kobenhavn x" district). Ordered by postal code.

        Args:
            normalized: Normalized city name

        Returns:
            List of PostalRecord (empty if the city is unknown)
        """
        pass

    @abstractmethod
    def find_alias(self, normalized: str) -> Optional[str]:
        """
        Resolve a normalized alias to the normalized city it stands for.

        Args:
            normalized: Normalized alias

        Returns:
            Target normalized city or None
        """
        pass

    @abstractmethod
    def find_aliases_for(self, normalized_city: str) -> List[str]:
        """Get all aliases pointing at a normalized city."""
        pass

    @abstractmethod
    def known_cities(self) -> List[str]:
        """Get every normalized city and base city name in the store."""
        pass

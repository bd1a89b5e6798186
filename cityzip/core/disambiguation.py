"""Tie-break policy for cities that map to several postal codes."""
from typing import List, Mapping, Optional, Sequence, Tuple

from cityzip.core.models import PostalRecord
from cityzip.utils.logging import log_structured


class DisambiguationPolicy:
    """
    Picks one postal record out of several candidates for the same city.

    Order of rules:
    1. Per-city preferred codes, in list order (e.g. central Copenhagen).
    2. Highest weight.
    3. Lowest postal code, compared as fixed-width strings.
    """

    def __init__(self, preferred_codes: Optional[Mapping[str, Sequence[str]]] = None):
        """
        Initialize policy.

        Args:
            preferred_codes: Mapping of normalized city to ranked postal codes
        """
        self.preferred_codes = preferred_codes or {}

    def rank(self, candidates: Sequence[PostalRecord]) -> List[PostalRecord]:
        """Order candidates by weight descending, then postal code ascending."""
        return sorted(candidates, key=_sort_key)

    def preferred(self, normalized_city: str, candidates: Sequence[PostalRecord]) -> Optional[PostalRecord]:
        """Return the first preferred code for the city that is among the candidates."""
        by_code = {}
        for record in candidates:
            by_code.setdefault(record.postal_code, record)

        for code in self.preferred_codes.get(normalized_city, ()):
            if code in by_code:
                return by_code[code]
        return None

    def choose(self, normalized_city: str, candidates: Sequence[PostalRecord]) -> Optional[PostalRecord]:
        """
        Choose the best candidate.

        Args:
            normalized_city: Normalized (alias-resolved) city key
            candidates: Postal records for the city, in store order

        Returns:
            Chosen PostalRecord, or None if there are no candidates
        """
        if not candidates:
            return None

        override = self.preferred(normalized_city, candidates)
        if override is not None:
            return override

        ranked = self.rank(candidates)
        if len(ranked) > 1 and _sort_key(ranked[0]) == _sort_key(ranked[1]):
            # Same code and weight twice: the reference data has duplicates
            log_structured(
                "warning",
                "Duplicate postal records for city",
                city=normalized_city,
                postal_code=ranked[0].postal_code,
                weight=ranked[0].weight,
            )
        return ranked[0]


def _sort_key(record: PostalRecord) -> Tuple[int, str]:
    return -record.weight, record.postal_code

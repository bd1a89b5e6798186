"""Weight tiers assigned to postal codes at import time."""
from typing import Any, Mapping, Optional, Sequence

from cityzip.core.rules import LocationRules, DEFAULT_RULES


class WeightTable:
    """
    Declarative postal code weights.

    Each tier names a normalized city, optionally a list of its codes, and a
    weight. The first tier matching a record wins; records matching no tier
    get the default weight. Adding a major city is a data change only.
    """

    def __init__(self, tiers: Sequence[Mapping[str, Any]], default_weight: int = 1):
        self.tiers = tuple(tiers)
        self.default_weight = default_weight

    @classmethod
    def from_rules(cls, rules: Optional[LocationRules] = None) -> "WeightTable":
        rules = rules or DEFAULT_RULES
        return cls(rules.weight_tiers, rules.default_weight)

    def weight_for(self, postal_code: str, normalized_city: str, normalized_base_city: Optional[str] = None) -> int:
        """
        Calculate the weight of a postal code.

        Args:
            postal_code: Postal code
            normalized_city: Normalized city of the record ("kobenhavn k")
            normalized_base_city: Normalized city without district ("kobenhavn")

        Returns:
            Weight (higher = preferred)
        """
        cities = {normalized_city}
        if normalized_base_city:
            cities.add(normalized_base_city)

        for tier in self.tiers:
            if tier["city"] not in cities:
                continue
            codes = tier.get("codes")
            if codes and postal_code not in codes:
                continue
            return tier["weight"]

        return self.default_weight

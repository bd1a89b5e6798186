"""City to postal code resolution engine."""
from typing import List, Optional

from cityzip.core.config import SUGGESTION_THRESHOLD, SUGGESTION_LIMIT
from cityzip.core.disambiguation import DisambiguationPolicy
from cityzip.core.extraction import CityExtractor
from cityzip.core.fuzzy import fuzzy_match
from cityzip.core.models import CityInfo, PostalRecord, ResolutionResult
from cityzip.core.normalization import normalize_city
from cityzip.core.reference_store import ReferenceStore
from cityzip.core.rules import LocationRules, DEFAULT_RULES


class Resolver:
    """Main resolution engine."""

    def __init__(self, store: ReferenceStore, rules: Optional[LocationRules] = None):
        """
        Initialize resolver.

        Args:
            store: Reference store (DuckDBStore or ReferenceSnapshot)
            rules: Location rules (defaults to the built-in Danish rules)
        """
        self.store = store
        self.rules = rules or DEFAULT_RULES
        self.extractor = CityExtractor(self.rules)
        self.policy = DisambiguationPolicy(self.rules.preferred_codes)

    def normalize(self, city_name: Optional[str]) -> str:
        return normalize_city(city_name, self.rules.folding_table)

    def resolve(self, city_name: Optional[str], context_hint: Optional[str] = None) -> ResolutionResult:
        """
        Resolve a city name to its canonical name and best postal code.

        Resolution order:
        1. Normalize, then follow an alias if one exists
        2. Look up all postal records for the city
        3. One candidate wins outright
        4. Several candidates: a context postal code (e.g. the company's)
           wins if it is one of them, else the disambiguation policy decides

        Never raises for malformed input; a ReferenceStoreError from the store
        is propagated.

        Args:
            city_name: Raw city name
            context_hint: Optional postal code known from a related entity

        Returns:
            ResolutionResult (best_code is None when unresolved)
        """
        normalized = self.normalize(city_name)
        if not normalized:
            return ResolutionResult(input=city_name, normalized=normalized)

        used_alias = False
        target = self.store.find_alias(normalized)
        if target:
            normalized = target
            used_alias = True

        candidates = self.store.find_by_normalized_city(normalized)
        if not candidates:
            return ResolutionResult(input=city_name, normalized=normalized, used_alias=used_alias)

        codes = tuple(sorted({r.postal_code for r in candidates}))
        used_context = False

        if len(candidates) == 1:
            best = candidates[0]
        elif context_hint is not None and context_hint in codes:
            best = next(r for r in candidates if r.postal_code == context_hint)
            used_context = True
        else:
            best = self.policy.choose(normalized, candidates)

        return ResolutionResult(
            input=city_name,
            normalized=normalized,
            resolved_city=self._canonical_city(normalized, candidates),
            candidate_codes=codes,
            best_code=best.postal_code,
            used_alias=used_alias,
            used_context=used_context,
        )

    def resolve_location(self, location: Optional[str], context_hint: Optional[str] = None) -> ResolutionResult:
        """
        Extract the city from a free-form location and resolve it.

        Args:
            location: Raw location string, e.g. "2100 København Ø"
            context_hint: Optional postal code known from a related entity

        Returns:
            ResolutionResult with input set to the raw location
        """
        city = self.extractor.extract(location)
        if city is None:
            return ResolutionResult(input=location, normalized="")

        result = self.resolve(city, context_hint)
        return ResolutionResult(
            input=location,
            normalized=result.normalized,
            resolved_city=result.resolved_city,
            candidate_codes=result.candidate_codes,
            best_code=result.best_code,
            used_alias=result.used_alias,
            used_context=result.used_context,
            extracted_city=city,
        )

    @staticmethod
    def _canonical_city(normalized: str, candidates: List[PostalRecord]) -> str:
        # An exact city match names the city; otherwise the key matched a base city
        for record in candidates:
            if record.normalized_city == normalized:
                return record.canonical_city
        for record in candidates:
            if record.normalized_base_city == normalized and record.base_city:
                return record.base_city
        return candidates[0].canonical_city

    def zips_for(self, city_name: str) -> List[PostalRecord]:
        """Get all postal records for a city name, following aliases."""
        normalized = self.normalize(city_name)
        target = self.store.find_alias(normalized)
        return self.store.find_by_normalized_city(target or normalized)

    def best_zip(self, city_name: str, context_hint: Optional[str] = None) -> Optional[str]:
        """Get the best postal code for a city name, or None."""
        return self.resolve(city_name, context_hint).best_code

    def is_known_city(self, city_name: str) -> bool:
        """Check if a city name is recognized."""
        return bool(self.zips_for(city_name))

    def city_info(self, city_name: str) -> CityInfo:
        """
        Get city information including all aliases and ZIP codes.

        Args:
            city_name: Raw city name

        Returns:
            CityInfo
        """
        result = self.resolve(city_name)
        normalized = self.normalize(city_name)
        return CityInfo(
            input=city_name,
            normalized=normalized,
            target_city=result.normalized,
            is_alias=result.used_alias,
            zip_codes=list(result.candidate_codes),
            aliases=self.store.find_aliases_for(result.normalized) if result.normalized else [],
            best_zip=result.best_code,
        )

    def suggest(
        self,
        city_name: str,
        threshold: float = SUGGESTION_THRESHOLD,
        limit: int = SUGGESTION_LIMIT
    ) -> List[str]:
        """
        Suggest known city names close to an unresolved city name.

        Args:
            city_name: Raw city name
            threshold: Minimum similarity score (0-1)
            limit: Maximum number of suggestions

        Returns:
            Normalized city names, best first
        """
        matches = fuzzy_match(city_name, self.store.known_cities(), threshold, limit)
        return [match for match, _, _ in matches]

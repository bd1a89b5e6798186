"""Immutable in-memory reference data for parallel resolution."""
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from cityzip.core.models import PostalRecord, CityAlias
from cityzip.core.reference_store import ReferenceStore


class ReferenceSnapshot(ReferenceStore):
    """
    Read-only index over postal records and aliases.

    Built once and never mutated, so any number of threads can resolve
    against it. A refresh builds a new snapshot and swaps the reference.
    Records keep the order they were given in; lookups return them sorted by
    postal code with that order breaking ties.
    """

    def __init__(self, records: Iterable[PostalRecord], aliases: Iterable[CityAlias] = ()):
        by_city: Dict[str, List[PostalRecord]] = {}
        by_base: Dict[str, List[PostalRecord]] = {}
        for record in records:
            by_city.setdefault(record.normalized_city, []).append(record)
            if record.normalized_base_city:
                by_base.setdefault(record.normalized_base_city, []).append(record)

        self._by_city = _freeze_groups(by_city)
        self._by_base = _freeze_groups(by_base)

        alias_map: Dict[str, str] = {}
        for a in aliases:
            alias_map[a.alias] = a.normalized_city
        self._aliases: Mapping[str, str] = MappingProxyType(alias_map)

    @classmethod
    def from_store(cls, store) -> "ReferenceSnapshot":
        """
        Load every record and alias from a DuckDBStore.

        Args:
            store: DuckDBStore instance

        Returns:
            ReferenceSnapshot
        """
        return cls(store.all_records(), store.all_aliases())

    def find_by_normalized_city(self, normalized: str) -> List[PostalRecord]:
        if not normalized:
            return []
        return list(self._by_city.get(normalized) or self._by_base.get(normalized, ()))

    def find_alias(self, normalized: str) -> Optional[str]:
        if not normalized:
            return None
        return self._aliases.get(normalized)

    def find_aliases_for(self, normalized_city: str) -> List[str]:
        return sorted(alias for alias, city in self._aliases.items() if city == normalized_city)

    def known_cities(self) -> List[str]:
        return sorted(set(self._by_city) | set(self._by_base))

    def __len__(self) -> int:
        return len({r.postal_code for group in self._by_city.values() for r in group})


def _freeze_groups(groups: Dict[str, List[PostalRecord]]) -> Mapping[str, Tuple[PostalRecord, ...]]:
    return MappingProxyType({
        key: tuple(sorted(group, key=lambda r: r.postal_code))
        for key, group in groups.items()
    })

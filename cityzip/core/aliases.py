"""Generate city aliases from postal reference data."""
import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from cityzip.core.errors import RulesError
from cityzip.core.models import CityAlias
from cityzip.core.normalization import normalize_city
from cityzip.core.rules import LocationRules, DEFAULT_RULES


class AliasSeeder:
    """
    Builds the alias table.

    Generated aliases come from every known normalized city, using the
    variation suffixes and city variations in the rules; manual aliases come
    from the rules and an optional JSON file. Every alias key is
    normalized the same way the resolver normalizes its input, and aliases
    that equal their own target are skipped.
    """

    def __init__(self, rules: Optional[LocationRules] = None):
        self.rules = rules or DEFAULT_RULES

    def normalize(self, text: str) -> str:
        return normalize_city(text, self.rules.folding_table)

    def generate_variations_for(self, city_norm: str) -> List[str]:
        """
        Generate common variations for a normalized city name.

        Args:
            city_norm: Normalized city name

        Returns:
            Normalized aliases, without the city itself
        """
        variations = [city_norm + suffix for suffix in self.rules.alias_variation_suffixes]
        variations.extend(self.rules.city_variations.get(city_norm, ()))

        result = []
        for variation in variations:
            alias = self.normalize(variation)
            if alias and alias != city_norm and alias not in result:
                result.append(alias)
        return result

    def generate(self, known_cities: Iterable[str]) -> List[CityAlias]:
        """
        Generate aliases for every known city.

        A generated alias never shadows a real city name.

        Args:
            known_cities: Normalized city names from the reference store

        Returns:
            List of CityAlias
        """
        cities = sorted(set(known_cities))
        city_set = set(cities)
        aliases: Dict[str, str] = {}
        for city in cities:
            for alias in self.generate_variations_for(city):
                if alias in city_set:
                    continue
                aliases.setdefault(alias, city)
        return [CityAlias(alias=a, normalized_city=c) for a, c in aliases.items()]

    def manual(self, extra: Optional[Mapping[str, str]] = None) -> List[CityAlias]:
        """
        Normalize manual aliases from the rules plus any extra mapping.

        Args:
            extra: Additional alias -> city mapping (raw spelling allowed)

        Returns:
            List of CityAlias
        """
        mapping = dict(self.rules.manual_aliases)
        mapping.update(extra or {})

        result = []
        for alias, city in mapping.items():
            normalized_alias = self.normalize(alias)
            normalized_target = self.normalize(city)
            if normalized_alias and normalized_target and normalized_alias != normalized_target:
                result.append(CityAlias(alias=normalized_alias, normalized_city=normalized_target))
        return result

    def seed(self, store, extra: Optional[Mapping[str, str]] = None) -> Dict[str, int]:
        """
        Write generated and manual aliases to a store.

        Manual aliases are written last so they override generated ones.

        Args:
            store: DuckDBStore instance
            extra: Additional manual aliases

        Returns:
            Counts of generated and manual aliases
        """
        generated = self.generate(store.known_cities())
        manual = self.manual(extra)
        store.upsert_aliases(generated)
        store.upsert_aliases(manual)
        return {"generated": len(generated), "manual": len(manual)}


def load_manual_aliases(path: Path) -> Dict[str, str]:
    """
    Load manual aliases from a JSON object file.

    Args:
        path: Path to a JSON file mapping alias to city

    Returns:
        Dictionary alias -> city
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise RulesError(f"Could not read manual aliases from {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RulesError(f"Manual aliases file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
        raise RulesError(f"Manual aliases file {path} must map alias strings to city strings")
    return data

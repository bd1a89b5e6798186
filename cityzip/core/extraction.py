"""Extract a bare city name from free-form job posting locations."""
import re
from typing import Optional

from cityzip.core.rules import LocationRules, DEFAULT_RULES


POSTAL_PREFIX = re.compile(r"^\d{4}\s+(.+)$")
PARENTHESIZED = re.compile(r"\s*\(.*?\)\s*")
WHITESPACE = re.compile(r"\s+")


class CityExtractor:
    """
    Rule-driven city extractor.

    Handles the location shapes seen in scraped postings, e.g.
    "Taastrup, Region Hovedstaden, Danmark", "2100 København Ø",
    "Aalborg, Denmark" or "Rødovre Kommune, Region Hovedstaden, Danmark".
    """

    def __init__(self, rules: Optional[LocationRules] = None):
        """
        Initialize extractor.

        Args:
            rules: Location rules (defaults to the built-in Danish rules)
        """
        self.rules = rules or DEFAULT_RULES

    def extract(self, location: Optional[str]) -> Optional[str]:
        """
        Extract the best-guess city from a location string.

        Args:
            location: Raw location string

        Returns:
            City name, or None for empty, foreign or non-city input
        """
        if not location or not location.strip():
            return None

        location = location.strip()
        if self.is_rejected(location):
            return None

        match = POSTAL_PREFIX.match(location)
        if match:
            city = match.group(1)
        else:
            city = self.strip_country(location)

        # First part before the first comma
        city = city.split(",", 1)[0]

        # Drop parentheses if any
        city = PARENTHESIZED.sub(" ", city)
        city = WHITESPACE.sub(" ", city).strip()

        city = self.clean_city_name(city)
        city = self.strip_district(city).strip()

        return city or None

    def is_rejected(self, location: str) -> bool:
        """Check whether a location points outside the supported country."""
        if self.rules.rejection_regex and self.rules.rejection_regex.search(location):
            return True
        return any(p.search(location) for p in self.rules.rejection_pattern_regexes)

    def strip_country(self, location: str) -> str:
        """Remove a trailing country marker such as ", Danmark"."""
        if self.rules.country_regex is None:
            return location
        return self.rules.country_regex.sub("", location)

    def clean_city_name(self, city: str) -> str:
        """
        Map municipality names to their city and remove municipality suffixes.

        Args:
            city: City candidate without commas or parentheses

        Returns:
            Cleaned city name
        """
        # "Københavns Kommune" -> "København"
        identity = self.rules.identity_mappings.get(city.lower())
        if identity is not None:
            return identity

        if self.rules.municipality_regex is not None:
            city = self.rules.municipality_regex.sub("", city).strip()

        return self.rules.municipality_mappings.get(city.lower(), city)

    def strip_district(self, city: str) -> str:
        """Remove a district suffix: "København Ø" -> "København"."""
        if self.rules.district_regex is None:
            return city
        match = self.rules.district_regex.match(city)
        if match:
            return match.group(1).strip()
        return city


def extract_city(location: Optional[str], rules: Optional[LocationRules] = None) -> Optional[str]:
    """
    Extract a city name from a free-form location string.

    Args:
        location: Raw location string
        rules: Optional location rules

    Returns:
        City name or None
    """
    return CityExtractor(rules).extract(location)

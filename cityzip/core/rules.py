"""Location rules: the injected configuration consumed by extraction and resolution."""
import json
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Pattern, Tuple

from cityzip.core.errors import RulesError


# Danish letters folded to ASCII for lookup keys
DEFAULT_FOLDING_TABLE = {
    "æ": "ae",
    "ø": "o",
    "å": "aa",
}

# Locations containing one of these words are outside Denmark
DEFAULT_REJECTION_MARKERS = (
    "Sverige",
    "Sweden",
    "Norge",
    "Norway",
    "Deutschland",
    "Germany",
)

# A bare region is not a city
DEFAULT_REJECTION_PATTERNS = (
    r"^Region\s+",
)

DEFAULT_COUNTRY_MARKERS = (
    "Danmark",
    "Denmark",
    "DK",
)

DEFAULT_MUNICIPALITY_SUFFIXES = (
    "Kommune",
    "og omegn",
)

# "København K", "Aarhus C", "Odense SØ", "Aalborg Øst"
DEFAULT_DISTRICT_SUFFIX_PATTERN = r"^(.+?)\s+(?:[KVCNSMØ]|SV|NV|SØ|NØ|Øst|Vest|Nord|Syd|Centrum)$"

# Municipality self-references mapped straight to the city
DEFAULT_IDENTITY_MAPPINGS = {
    "københavns kommune": "København",
}

# Municipality names that differ from the postal city name
DEFAULT_MUNICIPALITY_MAPPINGS = {
    "brønshøj-husum": "Brønshøj",
    "høje-taastrup": "Taastrup",
    "højetaastrup": "Taastrup",
    "lyngby-taarbæk": "Lyngby",
    "kongens lyngby enghave": "Lyngby",
    "greve strand": "Greve",
}

# Ranked postal codes consulted first when a city has many codes
DEFAULT_PREFERRED_CODES = {
    "kobenhavn": ("1150", "1151", "1152", "1153", "1154", "1155", "1156", "1157", "1158", "1159", "1160"),
}

# First matching tier wins; a tier without codes applies to every code of the city
DEFAULT_WEIGHT_TIERS = (
    {"city": "kobenhavn", "codes": ["1150", "1151", "1152"], "weight": 100},
    {"city": "aarhus", "codes": ["8000"], "weight": 75},
    {"city": "odense", "codes": ["5000"], "weight": 75},
    {"city": "aalborg", "codes": ["9000"], "weight": 75},
    {"city": "esbjerg", "codes": ["6700"], "weight": 75},
    {"city": "randers", "codes": ["8900"], "weight": 75},
    {"city": "kolding", "codes": ["6000"], "weight": 75},
    {"city": "horsens", "codes": ["8700"], "weight": 75},
    {"city": "vejle", "codes": ["7100"], "weight": 75},
    {"city": "roskilde", "codes": ["4000"], "weight": 75},
    {"city": "herning", "codes": ["7400"], "weight": 75},
    {"city": "kobenhavn", "codes": None, "weight": 50},
)

DEFAULT_WEIGHT = 1

# Suffixes people append to a city name, turned into generated aliases
DEFAULT_ALIAS_VARIATION_SUFFIXES = (" c", " centrum", " by")

# Colloquial and English names for specific cities
DEFAULT_CITY_VARIATIONS = {
    "kobenhavn": ("kbh", "copenhagen", "cph", "kbh k", "copenhagen k"),
    "aarhus": ("århus", "arhus"),
    "aalborg": ("ålborg", "alborg"),
}

# Curated aliases that cannot be derived from the postal table
DEFAULT_MANUAL_ALIASES = {
    "lyngby": "kongens lyngby",
    "rødovre kommune": "rodovre",
    "ballerup kommune": "ballerup",
}


def _freeze_mapping(value: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value))


@dataclass(frozen=True)
class LocationRules:
    """
    Immutable rule tables for city extraction and ZIP disambiguation.

    Passed into the extractor, resolver and importer at construction time so
    the tables can be swapped without code changes.
    """
    folding_table: Mapping[str, str] = field(default_factory=lambda: DEFAULT_FOLDING_TABLE)
    rejection_markers: Tuple[str, ...] = DEFAULT_REJECTION_MARKERS
    rejection_patterns: Tuple[str, ...] = DEFAULT_REJECTION_PATTERNS
    country_markers: Tuple[str, ...] = DEFAULT_COUNTRY_MARKERS
    municipality_suffixes: Tuple[str, ...] = DEFAULT_MUNICIPALITY_SUFFIXES
    district_suffix_pattern: str = DEFAULT_DISTRICT_SUFFIX_PATTERN
    identity_mappings: Mapping[str, str] = field(default_factory=lambda: DEFAULT_IDENTITY_MAPPINGS)
    municipality_mappings: Mapping[str, str] = field(default_factory=lambda: DEFAULT_MUNICIPALITY_MAPPINGS)
    preferred_codes: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: DEFAULT_PREFERRED_CODES)
    weight_tiers: Tuple[Mapping[str, Any], ...] = DEFAULT_WEIGHT_TIERS
    default_weight: int = DEFAULT_WEIGHT
    manual_aliases: Mapping[str, str] = field(default_factory=lambda: DEFAULT_MANUAL_ALIASES)
    alias_variation_suffixes: Tuple[str, ...] = DEFAULT_ALIAS_VARIATION_SUFFIXES
    city_variations: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: DEFAULT_CITY_VARIATIONS)

    # Compiled patterns, derived from the fields above
    rejection_regex: Optional[Pattern] = field(default=None, init=False, repr=False, compare=False)
    rejection_pattern_regexes: Tuple[Pattern, ...] = field(default=(), init=False, repr=False, compare=False)
    country_regex: Optional[Pattern] = field(default=None, init=False, repr=False, compare=False)
    municipality_regex: Optional[Pattern] = field(default=None, init=False, repr=False, compare=False)
    district_regex: Optional[Pattern] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        # Keys are compared lowercased
        object.__setattr__(self, "folding_table", _freeze_mapping(self.folding_table))
        object.__setattr__(self, "identity_mappings", _freeze_mapping(
            {k.lower(): v for k, v in self.identity_mappings.items()}
        ))
        object.__setattr__(self, "municipality_mappings", _freeze_mapping(
            {k.lower(): v for k, v in self.municipality_mappings.items()}
        ))
        object.__setattr__(self, "preferred_codes", _freeze_mapping(
            {city: tuple(str(code) for code in codes) for city, codes in self.preferred_codes.items()}
        ))
        object.__setattr__(self, "manual_aliases", _freeze_mapping(self.manual_aliases))
        object.__setattr__(self, "city_variations", _freeze_mapping(
            {city: tuple(names) for city, names in self.city_variations.items()}
        ))
        object.__setattr__(self, "alias_variation_suffixes", tuple(self.alias_variation_suffixes))
        object.__setattr__(self, "rejection_markers", tuple(self.rejection_markers))
        object.__setattr__(self, "rejection_patterns", tuple(self.rejection_patterns))
        object.__setattr__(self, "country_markers", tuple(self.country_markers))
        object.__setattr__(self, "municipality_suffixes", tuple(self.municipality_suffixes))
        object.__setattr__(self, "weight_tiers", tuple(self._validate_tier(t) for t in self.weight_tiers))

        try:
            object.__setattr__(self, "rejection_regex", _alternation(
                self.rejection_markers, r"\b(?:{})\b"
            ))
            object.__setattr__(self, "rejection_pattern_regexes", tuple(
                re.compile(p, re.IGNORECASE) for p in self.rejection_patterns
            ))
            object.__setattr__(self, "country_regex", _alternation(
                self.country_markers, r",?\s*\b(?:{})\s*$"
            ))
            object.__setattr__(self, "municipality_regex", _alternation(
                self.municipality_suffixes, r"\s+(?:{})$"
            ))
            if self.district_suffix_pattern:
                object.__setattr__(self, "district_regex", re.compile(
                    self.district_suffix_pattern, re.IGNORECASE
                ))
        except re.error as e:
            raise RulesError(f"Invalid pattern in location rules: {e}") from e

        if self.district_regex is not None and self.district_regex.groups < 1:
            raise RulesError("district_suffix_pattern must capture the bare city in group 1")

    @staticmethod
    def _validate_tier(tier: Mapping[str, Any]) -> Mapping[str, Any]:
        if "city" not in tier or "weight" not in tier:
            raise RulesError(f"Weight tier needs 'city' and 'weight': {dict(tier)}")
        try:
            weight = int(tier["weight"])
        except (TypeError, ValueError) as e:
            raise RulesError(f"Weight tier has a non-integer weight: {dict(tier)}") from e
        codes = tier.get("codes")
        return _freeze_mapping({
            "city": tier["city"],
            "codes": tuple(str(c) for c in codes) if codes else None,
            "weight": weight,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocationRules":
        """
        Build rules from a plain dictionary, falling back to defaults.

        Args:
            data: Mapping of rule field names to values

        Returns:
            LocationRules instance
        """
        allowed = {f.name for f in fields(cls) if f.init}
        unknown = set(data) - allowed
        if unknown:
            raise RulesError(f"Unknown location rule keys: {', '.join(sorted(unknown))}")

        kwargs = {}
        for key, value in data.items():
            if isinstance(value, list) and key != "weight_tiers":
                value = tuple(value)
            kwargs[key] = value
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: Path) -> "LocationRules":
        """
        Load rules from a JSON file.

        Args:
            path: Path to JSON file

        Returns:
            LocationRules instance
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise RulesError(f"Could not read location rules from {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise RulesError(f"Location rules file {path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RulesError(f"Location rules file {path} must contain a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        result = {}
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            if isinstance(value, Mapping):
                value = {k: list(v) if isinstance(v, tuple) else v for k, v in value.items()}
            elif f.name == "weight_tiers":
                value = [
                    {"city": t["city"], "codes": list(t["codes"]) if t["codes"] else None, "weight": t["weight"]}
                    for t in value
                ]
            elif isinstance(value, tuple):
                value = list(value)
            result[f.name] = value
        return result


def _alternation(words: Tuple[str, ...], template: str) -> Optional[Pattern]:
    if not words:
        return None
    alternatives = "|".join(re.escape(w) for w in words)
    return re.compile(template.format(alternatives), re.IGNORECASE)


DEFAULT_RULES = LocationRules()


def load_rules(path: Optional[Path] = None) -> LocationRules:
    """
    Load location rules from a JSON file, or return the built-in defaults.

    Args:
        path: Optional rules file; defaults to RULES_PATH from the environment

    Returns:
        LocationRules instance
    """
    from cityzip.core.config import RULES_PATH

    path = path or RULES_PATH
    if path is None:
        return DEFAULT_RULES
    return LocationRules.from_json(path)

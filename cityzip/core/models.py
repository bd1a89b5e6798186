"""Data models for postal reference data and resolution results."""
import json
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple


@dataclass(frozen=True)
class PostalRecord:
    """A postal code and the city it belongs to."""
    postal_code: str
    canonical_city: str
    normalized_city: str
    weight: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    base_city: Optional[str] = None
    normalized_base_city: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "postal_code": self.postal_code,
            "canonical_city": self.canonical_city,
            "normalized_city": self.normalized_city,
            "weight": self.weight,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "base_city": self.base_city,
            "normalized_base_city": self.normalized_base_city,
        }


@dataclass(frozen=True)
class CityAlias:
    """Alternate spelling of a city, pointing at its normalized name."""
    alias: str
    normalized_city: str


@dataclass(frozen=True)
class ResolutionResult:
    """Result of resolving a city name to a postal code."""
    input: Optional[str]
    normalized: str
    resolved_city: Optional[str] = None
    candidate_codes: Tuple[str, ...] = ()
    best_code: Optional[str] = None
    used_alias: bool = False
    used_context: bool = False
    extracted_city: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.best_code is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "input": self.input,
            "normalized": self.normalized,
            "resolved_city": self.resolved_city,
            "candidate_codes": list(self.candidate_codes),
            "best_code": self.best_code,
            "used_alias": self.used_alias,
            "used_context": self.used_context,
            "extracted_city": self.extracted_city,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False)


@dataclass
class CityInfo:
    """Everything the reference data knows about a city name."""
    input: str
    normalized: str
    target_city: str
    is_alias: bool
    zip_codes: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    best_zip: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input": self.input,
            "normalized": self.normalized,
            "target_city": self.target_city,
            "is_alias": self.is_alias,
            "zip_codes": self.zip_codes,
            "aliases": self.aliases,
            "best_zip": self.best_zip,
        }

"""Import postal codes from a reference source into the store."""
from typing import Any, Dict, List, Mapping, Optional

from cityzip.core.extraction import CityExtractor
from cityzip.core.models import PostalRecord
from cityzip.core.normalization import normalize_city
from cityzip.core.rules import LocationRules, DEFAULT_RULES
from cityzip.core.weights import WeightTable
from cityzip.utils.logging import log_structured
from cityzip.utils.timing import Timer


class ZipCodeImporter:
    """Builds postal records from source rows and upserts them."""

    def __init__(self, store, rules: Optional[LocationRules] = None):
        """
        Initialize importer.

        Args:
            store: DuckDBStore instance
            rules: Location rules used for normalization and weights
        """
        self.store = store
        self.rules = rules or DEFAULT_RULES
        self.extractor = CityExtractor(self.rules)
        self.weights = WeightTable.from_rules(self.rules)

    def build_record(self, row: Mapping[str, Any]) -> PostalRecord:
        """
        Build a postal record from a normalized source row.

        Args:
            row: Dict with postal_code, city, latitude, longitude

        Returns:
            PostalRecord with normalized names and weight
        """
        city = row["city"]
        normalized = normalize_city(city, self.rules.folding_table)

        base_city = self.extractor.strip_district(city)
        normalized_base = normalize_city(base_city, self.rules.folding_table)
        if normalized_base == normalized or not normalized_base:
            base_city, normalized_base = None, None

        return PostalRecord(
            postal_code=row["postal_code"],
            canonical_city=city,
            normalized_city=normalized,
            weight=self.weights.weight_for(row["postal_code"], normalized, normalized_base),
            latitude=row.get("latitude"),
            longitude=row.get("longitude"),
            base_city=base_city,
            normalized_base_city=normalized_base,
        )

    def build_records(self, rows: List[Mapping[str, Any]]) -> List[PostalRecord]:
        return [self.build_record(row) for row in rows]

    def run(self, source, dry_run: bool = False) -> Dict[str, Any]:
        """
        Fetch postal codes from a source and upsert them.

        Args:
            source: PostalCodeSource instance
            dry_run: Build records without writing them

        Returns:
            Summary with fetched, imported, updated counts and the records
        """
        with Timer("import", source=source.get_name()) as timer:
            rows = source.fetch_postal_codes()
            timer.fields["rows"] = len(rows)
            log_structured("info", "Retrieved postal codes", source=source.get_name(), count=len(rows))

            records = self.build_records(rows)
            imported, updated = 0, 0
            if not dry_run:
                imported, updated = self.store.upsert_postal_records(records)

        log_structured(
            "info",
            "Postal code import completed",
            source=source.get_name(),
            dry_run=dry_run,
            imported=imported,
            updated=updated,
        )
        return {
            "fetched": len(rows),
            "imported": imported,
            "updated": updated,
            "records": records,
        }

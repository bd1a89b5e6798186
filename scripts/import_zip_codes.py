#!/usr/bin/env python3
"""CLI script to import Danish postal codes into DuckDB."""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cityzip.core.config import DUCKDB_PATH, LOG_LEVEL
from cityzip.core.duckdb_store import DuckDBStore
from cityzip.core.errors import CityZipError
from cityzip.core.importer import ZipCodeImporter
from cityzip.core.rules import load_rules
from cityzip.sources.csv_provider import CSVProvider
from cityzip.sources.dawa import DawaProvider
from cityzip.utils.error_tracking import setup_error_tracking, capture_exception
from cityzip.utils.logging import setup_logging, log_error


def main() -> int:
    parser = argparse.ArgumentParser(description="Import postal codes from DAWA or a CSV file")
    parser.add_argument("--source", choices=["dawa", "csv"], default="dawa",
                       help="Postal code source (default: dawa)")
    parser.add_argument("--csv-path", type=Path, help="CSV file (required for --source csv)")
    parser.add_argument("--code-field", default="postnr", help="CSV postal code column (default: postnr)")
    parser.add_argument("--city-field", default="city", help="CSV city column (default: city)")
    parser.add_argument("--rules", type=Path, help="Location rules JSON file")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                       help="DuckDB database path")
    parser.add_argument("--dry-run", action="store_true", help="Run without making changes")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking()

    if args.source == "csv":
        if not args.csv_path:
            parser.error("--csv-path is required for --source csv")
        source = CSVProvider(args.csv_path, code_field=args.code_field, city_field=args.city_field)
    else:
        source = DawaProvider()

    if args.dry_run:
        print("Running in dry-run mode - no changes will be made")

    try:
        rules = load_rules(args.rules)
        db_store = DuckDBStore(args.db_path)
        try:
            summary = ZipCodeImporter(db_store, rules).run(source, dry_run=args.dry_run)
        finally:
            db_store.close()
    except CityZipError as e:
        log_error(e, {"script": "import_zip_codes", "source": args.source})
        capture_exception(e)
        print(f"Error importing ZIP codes: {e}", file=sys.stderr)
        return 1

    print(f"Retrieved {summary['fetched']} ZIP codes from {source.get_name()}")
    if args.dry_run:
        for record in summary["records"]:
            print(f"Would import: {record.postal_code} - {record.canonical_city} "
                  f"(normalized: {record.normalized_city}, weight: {record.weight})")
        print(f"Dry run completed - would process {summary['fetched']} ZIP codes")
    else:
        print(f"✅ Import completed: {summary['imported']} new, {summary['updated']} updated ZIP codes")
    return 0


if __name__ == "__main__":
    sys.exit(main())

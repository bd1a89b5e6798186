#!/usr/bin/env python3
"""CLI script to backfill city and ZIP codes for job postings in a CSV export."""
import argparse
import sys
from pathlib import Path

import pandas as pd

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cityzip.core.backfill import BackfillJob
from cityzip.core.config import DUCKDB_PATH, LOG_LEVEL, BACKFILL_CHUNK_SIZE, BACKFILL_WORKERS
from cityzip.core.duckdb_store import DuckDBStore
from cityzip.core.errors import CityZipError
from cityzip.core.resolver import Resolver
from cityzip.core.rules import load_rules
from cityzip.core.snapshot import ReferenceSnapshot
from cityzip.utils.error_tracking import setup_error_tracking, capture_exception
from cityzip.utils.logging import setup_logging, log_error


def main() -> int:
    parser = argparse.ArgumentParser(description="Infer and fill job zipcode and city from the location string")
    parser.add_argument("file", type=Path, help="Job postings CSV (job_id, location, company_zip, zipcode, city)")
    parser.add_argument("--output", type=Path, help="Output CSV (default: overwrite input)")
    parser.add_argument("--dry-run", action="store_true", help="Do not write anything")
    parser.add_argument("--limit", type=int, default=0, help="Limit number of rows processed")
    parser.add_argument("--chunk", type=int, default=BACKFILL_CHUNK_SIZE, help="Chunk size")
    parser.add_argument("--workers", type=int, default=BACKFILL_WORKERS, help="Worker threads")
    parser.add_argument("--city", help="Only process rows where the parsed city equals this (debug)")
    parser.add_argument("--debug", action="store_true", help="Log suggestions for unresolved cities")
    parser.add_argument("--rules", type=Path, help="Location rules JSON file")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                       help="DuckDB database path")

    args = parser.parse_args()
    setup_logging("DEBUG" if args.debug else LOG_LEVEL)
    setup_error_tracking()

    if not args.file.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        return 1

    df = pd.read_csv(args.file, dtype={"zipcode": str, "company_zip": str, "city": str})
    print(f"Loaded {len(df)} job postings from {args.file}")

    try:
        rules = load_rules(args.rules)
        db_store = DuckDBStore(args.db_path, read_only=True)
        try:
            snapshot = ReferenceSnapshot.from_store(db_store)
        finally:
            db_store.close()
    except CityZipError as e:
        log_error(e, {"script": "backfill_zip", "db_path": str(args.db_path)})
        capture_exception(e)
        print(f"Error loading reference data: {e}", file=sys.stderr)
        return 1

    print(f"Loaded {len(snapshot)} postal codes")

    job = BackfillJob(
        Resolver(snapshot, rules),
        chunk_size=args.chunk,
        workers=args.workers,
        debug=args.debug,
        show_progress=True,
    )
    report = job.run(df, dry_run=args.dry_run, limit=args.limit, only_city=args.city)
    stats = report.stats

    print("\n📊 Backfill Summary:")
    print(f"Total processed: {stats.processed}")
    print(f"Successfully updated: {stats.updated}")
    print(f"Missing city in location: {stats.missing_city}")
    print(f"No ZIP for city: {stats.missing_zip}")
    print(f"Resolved via company ZIP: {stats.used_context}")
    print(f"Success rate: {stats.success_rate}%")

    if args.dry_run:
        print("🔍 This was a dry run. Remove --dry-run to apply changes.")
        return 0

    output = args.output or args.file
    report.frame.to_csv(output, index=False)
    print(f"✅ City and ZIP code backfill written to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

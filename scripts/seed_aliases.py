#!/usr/bin/env python3
"""CLI script to seed city aliases from the imported postal codes."""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cityzip.core.aliases import AliasSeeder, load_manual_aliases
from cityzip.core.config import DUCKDB_PATH, LOG_LEVEL, MANUAL_ALIASES_PATH
from cityzip.core.duckdb_store import DuckDBStore
from cityzip.core.errors import CityZipError
from cityzip.core.rules import load_rules
from cityzip.utils.error_tracking import setup_error_tracking, capture_exception
from cityzip.utils.logging import setup_logging, log_error


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed city aliases")
    parser.add_argument("--aliases-file", type=Path, default=MANUAL_ALIASES_PATH,
                       help="JSON file with manual aliases ({\"alias\": \"city\"})")
    parser.add_argument("--rules", type=Path, help="Location rules JSON file")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                       help="DuckDB database path")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking()

    print("Generating city aliases from zip codes data...")
    try:
        rules = load_rules(args.rules)
        extra = load_manual_aliases(args.aliases_file) if args.aliases_file else None
        db_store = DuckDBStore(args.db_path)
        try:
            counts = AliasSeeder(rules).seed(db_store, extra)
        finally:
            db_store.close()
    except CityZipError as e:
        log_error(e, {"script": "seed_aliases"})
        capture_exception(e)
        print(f"Error seeding aliases: {e}", file=sys.stderr)
        return 1

    total = counts["generated"] + counts["manual"]
    print(f"✅ City aliases seeded: {counts['generated']} auto + {counts['manual']} manual = {total} total aliases")
    return 0


if __name__ == "__main__":
    sys.exit(main())

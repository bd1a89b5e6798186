#!/usr/bin/env python3
"""CLI script to resolve a city name or location to its postal code."""
import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cityzip.core.config import DUCKDB_PATH, LOG_LEVEL
from cityzip.core.duckdb_store import DuckDBStore
from cityzip.core.errors import CityZipError
from cityzip.core.resolver import Resolver
from cityzip.core.rules import load_rules
from cityzip.utils.error_tracking import setup_error_tracking, capture_exception
from cityzip.utils.logging import setup_logging, log_error


def build_output(resolver: Resolver, text: str, location: bool = False,
                 context: Optional[str] = None, info: bool = False) -> Dict[str, Any]:
    """
    Resolve text and add suggestions when nothing was found.

    Suggestions are based on the extracted city when a location was given.
    """
    if info:
        output = resolver.city_info(text).to_dict()
    elif location:
        output = resolver.resolve_location(text, context).to_dict()
    else:
        output = resolver.resolve(text, context).to_dict()

    if output.get("best_code") is None and output.get("best_zip") is None:
        output["suggestions"] = resolver.suggest(output.get("extracted_city") or text)
    return output


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve a city to its best postal code")
    parser.add_argument("text", help="City name, or a free-form location with --location")
    parser.add_argument("--location", action="store_true",
                       help="Treat text as a job location and extract the city first")
    parser.add_argument("--context", help="Known postal code of a related entity (e.g. the company)")
    parser.add_argument("--info", action="store_true", help="Show zip codes and aliases for the city")
    parser.add_argument("--rules", type=Path, help="Location rules JSON file")
    parser.add_argument("--db-path", type=Path, default=DUCKDB_PATH,
                       help="DuckDB database path")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking()

    try:
        rules = load_rules(args.rules)
        db_store = DuckDBStore(args.db_path, read_only=True)
        try:
            output = build_output(Resolver(db_store, rules), args.text, args.location, args.context, args.info)
        finally:
            db_store.close()
    except CityZipError as e:
        log_error(e, {"script": "resolve_city", "text": args.text})
        capture_exception(e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

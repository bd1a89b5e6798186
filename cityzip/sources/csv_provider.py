"""CSV-based postal code provider."""
import pandas as pd
from pathlib import Path
from typing import List, Dict, Any
from cityzip.core.errors import SourceError
from cityzip.sources.base import PostalCodeSource


class CSVProvider(PostalCodeSource):
    """CSV-based postal code provider."""

    def __init__(
        self,
        csv_path: Path,
        code_field: str = "postnr",
        city_field: str = "city",
        lat_field: str = "lat",
        lon_field: str = "lon"
    ):
        """
        Initialize CSV provider.

        Args:
            csv_path: Path to CSV file
            code_field: Postal code field name
            city_field: City name field name
            lat_field: Latitude field name (optional column)
            lon_field: Longitude field name (optional column)
        """
        self.csv_path = Path(csv_path)
        self.code_field = code_field
        self.city_field = city_field
        self.lat_field = lat_field
        self.lon_field = lon_field

    def fetch_postal_codes(self) -> List[Dict[str, Any]]:
        """Load postal codes from the CSV file."""
        if not self.csv_path.exists():
            raise SourceError(f"CSV file not found: {self.csv_path}")

        try:
            # Leading zeros are significant, keep codes as strings
            df = pd.read_csv(self.csv_path, dtype={self.code_field: str, self.city_field: str})
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise SourceError(f"Could not parse CSV file {self.csv_path}: {e}") from e

        missing = [f for f in (self.code_field, self.city_field) if f not in df.columns]
        if missing:
            raise SourceError(f"CSV missing required fields: {', '.join(missing)}")

        has_coords = self.lat_field in df.columns and self.lon_field in df.columns

        rows = []
        for _, record in df.iterrows():
            code = record[self.code_field]
            city = record[self.city_field]
            if pd.isna(code) or pd.isna(city):
                continue

            lat, lon = None, None
            if has_coords:
                lat = record[self.lat_field] if pd.notna(record[self.lat_field]) else None
                lon = record[self.lon_field] if pd.notna(record[self.lon_field]) else None

            row = self.normalize_row(code, city, lat, lon)
            if row:
                rows.append(row)

        return rows

    def get_name(self) -> str:
        """Get provider name."""
        return "CSV"

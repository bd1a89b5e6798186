"""Danish Address Web API (DAWA) postal code provider."""
import requests
from typing import List, Dict, Any, Optional
from cityzip.core.config import DAWA_POSTNUMRE_URL, DAWA_TIMEOUT
from cityzip.core.errors import SourceError
from cityzip.sources.base import PostalCodeSource


class DawaProvider(PostalCodeSource):
    """Postal codes from api.dataforsyningen.dk/postnumre."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: int = DAWA_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize DAWA provider.

        Args:
            url: Postnumre endpoint (defaults to DAWA_POSTNUMRE_URL)
            timeout: Request timeout in seconds
            session: Optional requests session
        """
        self.url = url or DAWA_POSTNUMRE_URL
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_postal_codes(self) -> List[Dict[str, Any]]:
        """Fetch all postal codes from DAWA."""
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise SourceError(f"Failed to fetch postal codes from DAWA: {e}") from e
        except ValueError as e:
            raise SourceError(f"DAWA returned invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise SourceError("DAWA response is not a list of postal codes")

        rows = []
        for item in data:
            # visueltcenter is [lon, lat]
            lon, lat = None, None
            center = item.get("visueltcenter")
            if isinstance(center, list) and len(center) >= 2:
                lon, lat = center[0], center[1]

            row = self.normalize_row(item.get("nr"), item.get("navn"), lat, lon)
            if row:
                rows.append(row)

        return rows

    def get_name(self) -> str:
        """Get provider name."""
        return "DAWA"

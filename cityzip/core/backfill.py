"""Batch backfill of city and postal code for job postings."""
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from tqdm import tqdm

from cityzip.core.config import BACKFILL_CHUNK_SIZE, BACKFILL_WORKERS
from cityzip.core.resolver import Resolver
from cityzip.utils.logging import log_structured
from cityzip.utils.timing import Timer


@dataclass
class BackfillStats:
    """Counters for one chunk of work, merged after the workers finish."""
    processed: int = 0
    updated: int = 0
    missing_city: int = 0
    missing_zip: int = 0
    used_context: int = 0
    used_alias: int = 0

    def merge(self, other: "BackfillStats") -> "BackfillStats":
        return BackfillStats(
            processed=self.processed + other.processed,
            updated=self.updated + other.updated,
            missing_city=self.missing_city + other.missing_city,
            missing_zip=self.missing_zip + other.missing_zip,
            used_context=self.used_context + other.used_context,
            used_alias=self.used_alias + other.used_alias,
        )

    @property
    def skipped(self) -> int:
        return self.missing_city + self.missing_zip

    @property
    def success_rate(self) -> float:
        if self.processed == 0:
            return 0.0
        return round(self.updated / self.processed * 100, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "missing_city": self.missing_city,
            "missing_zip": self.missing_zip,
            "used_context": self.used_context,
            "used_alias": self.used_alias,
            "success_rate": self.success_rate,
        }


@dataclass
class BackfillReport:
    """Outcome of a backfill run."""
    stats: BackfillStats
    updates: List[Dict[str, Any]] = field(default_factory=list)
    frame: Optional[pd.DataFrame] = None


def _blank(value: Any) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return value is None or bool(pd.isna(value))


class BackfillJob:
    """
    Fills in missing city and zipcode on job postings.

    Expects a DataFrame with columns job_id, location and optionally
    company_zip, zipcode and city. Chunks are resolved in a thread pool; the
    resolver must therefore read from a thread-safe store such as a
    ReferenceSnapshot.
    """

    def __init__(
        self,
        resolver: Resolver,
        chunk_size: int = BACKFILL_CHUNK_SIZE,
        workers: int = BACKFILL_WORKERS,
        debug: bool = False,
        show_progress: bool = False
    ):
        """
        Initialize backfill job.

        Args:
            resolver: Resolver over a thread-safe reference store
            chunk_size: Number of jobs per work unit
            workers: Number of worker threads
            debug: Log suggestions for unresolved cities
            show_progress: Show a tqdm progress bar
        """
        self.resolver = resolver
        self.chunk_size = max(1, chunk_size)
        self.workers = max(1, workers)
        self.debug = debug
        self.show_progress = show_progress

    def select_rows(
        self,
        df: pd.DataFrame,
        limit: Optional[int] = None,
        only_city: Optional[str] = None
    ) -> pd.DataFrame:
        """
        Select job postings missing a zipcode or a city.

        Args:
            df: Job postings
            limit: Maximum number of rows (None or 0 = no limit)
            only_city: Only rows whose extracted city equals this (case-insensitive)

        Returns:
            Filtered DataFrame, original index preserved
        """
        zipcode = df["zipcode"] if "zipcode" in df.columns else pd.Series(None, index=df.index, dtype=object)
        city = df["city"] if "city" in df.columns else pd.Series(None, index=df.index, dtype=object)
        mask = (zipcode.map(_blank) | city.map(_blank)).astype(bool)
        selected = df[mask]

        if only_city:
            wanted = only_city.strip().lower()
            extracted = selected["location"].map(
                lambda loc: (self.resolver.extractor.extract(loc if isinstance(loc, str) else None) or "").lower()
            )
            selected = selected[(extracted == wanted).astype(bool)]

        if limit:
            selected = selected.head(limit)
        return selected

    def process_chunk(self, rows: List[Tuple[Any, Any, Any, Any]]) -> Tuple[BackfillStats, List[Dict[str, Any]]]:
        """
        Resolve one chunk of jobs with local counters.

        Args:
            rows: Tuples (index, job_id, location, company_zip)

        Returns:
            Tuple (stats, updates)
        """
        stats = BackfillStats()
        updates = []

        for index, job_id, location, company_zip in rows:
            stats.processed += 1
            location = location if isinstance(location, str) else None
            context = None if _blank(company_zip) else str(company_zip).strip()

            result = self.resolver.resolve_location(location, context)

            if result.extracted_city is None:
                stats.missing_city += 1
                log_structured("debug", "No city found in location", job_id=job_id, location=location)
                continue

            if not result.resolved:
                stats.missing_zip += 1
                fields = {"job_id": job_id, "city": result.extracted_city, "location": location}
                if self.debug:
                    fields["suggestions"] = self.resolver.suggest(result.extracted_city)
                log_structured("warning", "No ZIP found for job", **fields)
                continue

            stats.updated += 1
            stats.used_context += int(result.used_context)
            stats.used_alias += int(result.used_alias)
            updates.append({
                "index": index,
                "job_id": job_id,
                "city": result.extracted_city,
                "zipcode": result.best_code,
                "used_context": result.used_context,
                "candidates": list(result.candidate_codes),
            })
            log_structured(
                "debug",
                "Resolved job location",
                job_id=job_id,
                city=result.extracted_city,
                zipcode=result.best_code,
                context=context,
            )

        return stats, updates

    def _chunks(self, selected: pd.DataFrame) -> List[List[Tuple[Any, Any, Any, Any]]]:
        company_zip = selected["company_zip"] if "company_zip" in selected.columns else pd.Series(None, index=selected.index, dtype=object)
        rows = list(zip(selected.index, selected["job_id"], selected["location"], company_zip))
        return [rows[i:i + self.chunk_size] for i in range(0, len(rows), self.chunk_size)]

    def run(
        self,
        df: pd.DataFrame,
        dry_run: bool = False,
        limit: Optional[int] = None,
        only_city: Optional[str] = None
    ) -> BackfillReport:
        """
        Backfill city and zipcode for job postings.

        Args:
            df: Job postings
            dry_run: Compute updates without applying them
            limit: Maximum number of jobs to process
            only_city: Only process jobs whose extracted city equals this

        Returns:
            BackfillReport; frame is an updated copy of df (unchanged on dry run)
        """
        selected = self.select_rows(df, limit, only_city)
        log_structured("info", "Starting city and ZIP code backfill", jobs=len(selected), dry_run=dry_run)

        stats = BackfillStats()
        updates: List[Dict[str, Any]] = []

        with Timer("backfill", jobs=len(selected), workers=self.workers):
            chunks = self._chunks(selected)
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [executor.submit(self.process_chunk, chunk) for chunk in chunks]
                for future in tqdm(as_completed(futures), total=len(futures), desc="Backfilling", disable=not self.show_progress):
                    chunk_stats, chunk_updates = future.result()
                    stats = stats.merge(chunk_stats)
                    updates.extend(chunk_updates)

        position = {index: i for i, index in enumerate(selected.index)}
        updates.sort(key=lambda u: position[u["index"]])

        frame = df.copy()
        if not dry_run and updates:
            for column in ("city", "zipcode"):
                if column not in frame.columns:
                    frame[column] = None
                frame[column] = frame[column].astype(object)
            for update in updates:
                frame.at[update["index"], "city"] = update["city"]
                frame.at[update["index"], "zipcode"] = update["zipcode"]

        log_structured("info", "Backfill summary", dry_run=dry_run, **stats.to_dict())
        return BackfillReport(stats=stats, updates=updates, frame=frame)

"""Tests for the in-memory reference snapshot."""
from concurrent.futures import ThreadPoolExecutor
import pytest
from cityzip.core.models import CityAlias
from cityzip.core.resolver import Resolver
from cityzip.core.snapshot import ReferenceSnapshot


def test_snapshot_lookup(make_record):
    """Records are indexed by city and base city, sorted by code."""
    snapshot = ReferenceSnapshot(
        [
            make_record("2200", "København N", base_city="København"),
            make_record("1150", "København K", base_city="København"),
            make_record("9000", "Aalborg"),
        ],
        [CityAlias("kbh", "kobenhavn")],
    )
    assert [r.postal_code for r in snapshot.find_by_normalized_city("kobenhavn")] == ["1150", "2200"]
    assert [r.postal_code for r in snapshot.find_by_normalized_city("kobenhavn n")] == ["2200"]
    assert snapshot.find_by_normalized_city("odense") == []
    assert snapshot.find_by_normalized_city("") == []
    assert snapshot.find_alias("kbh") == "kobenhavn"
    assert snapshot.find_alias("aarhus") is None
    assert snapshot.find_aliases_for("kobenhavn") == ["kbh"]
    assert snapshot.known_cities() == ["aalborg", "kobenhavn", "kobenhavn k", "kobenhavn n"]
    assert len(snapshot) == 3


def test_snapshot_is_read_only(snapshot):
    """The index cannot be mutated."""
    with pytest.raises(TypeError):
        snapshot._by_city["atlantis"] = ()
    records = snapshot.find_by_normalized_city("aarhus")
    records.clear()
    assert len(snapshot.find_by_normalized_city("aarhus")) == 2


def test_snapshot_from_store(populated_db, snapshot):
    """A snapshot holds everything in the store."""
    assert len(snapshot) == populated_db.get_stats()["zip_codes"]
    assert snapshot.known_cities() == populated_db.known_cities()
    assert snapshot.find_alias("kbh") == populated_db.find_alias("kbh")


def test_snapshot_concurrent_resolution(snapshot):
    """Many threads can resolve against one snapshot."""
    resolver = Resolver(snapshot)
    cities = ["København", "Aarhus", "KBH", "Aalborg", "Atlantis"] * 40

    with ThreadPoolExecutor(max_workers=8) as executor:
        codes = list(executor.map(resolver.best_zip, cities))

    expected = [resolver.best_zip(c) for c in cities]
    assert codes == expected
    assert codes[:5] == ["1150", "8000", "1150", "9000", None]

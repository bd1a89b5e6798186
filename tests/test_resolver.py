"""Tests for the resolution engine."""
import json
import pytest
from cityzip.core.errors import ReferenceStoreError
from cityzip.core.models import ResolutionResult
from cityzip.core.resolver import Resolver
from cityzip.core.snapshot import ReferenceSnapshot


def test_resolve_copenhagen(resolver):
    """Bare København reaches every district and prefers central codes."""
    result = resolver.resolve("København")

    assert isinstance(result, ResolutionResult)
    assert result.resolved
    assert result.normalized == "kobenhavn"
    assert result.resolved_city == "København"
    assert result.best_code == "1150"
    assert result.candidate_codes == ("1150", "1151", "1160", "2100", "2200")
    assert not result.used_alias
    assert not result.used_context


def test_resolve_single_candidate(resolver):
    """A city with one postal code resolves to it."""
    result = resolver.resolve("Aalborg")
    assert result.best_code == "9000"
    assert result.resolved_city == "Aalborg"
    assert result.candidate_codes == ("9000",)


def test_resolve_by_weight(resolver):
    """Aarhus C carries the main city weight."""
    result = resolver.resolve("Aarhus")
    assert result.best_code == "8000"
    assert result.resolved_city == "Aarhus"
    assert result.candidate_codes == ("8000", "8200")


def test_resolve_lowest_code(make_record):
    """Equal weights fall back to the lowest code."""
    snapshot = ReferenceSnapshot([
        make_record("8270", "Højbjerg Syd", base_city="Højbjerg"),
        make_record("8260", "Højbjerg Nord", base_city="Højbjerg"),
    ])
    result = Resolver(snapshot).resolve("Højbjerg")
    assert result.best_code == "8260"
    assert result.candidate_codes == ("8260", "8270")
    assert result.resolved_city == "Højbjerg"


def test_resolve_exact_record_beats_districts(resolver):
    """A city with its own record never picks up district codes."""
    result = resolver.resolve("Frederiksberg")
    assert result.best_code == "2000"
    assert result.candidate_codes == ("2000",)
    assert result.resolved_city == "Frederiksberg"


def test_resolve_exact_single_record_ignores_district_hint(resolver, snapshot):
    """A district code as context does not override the single exact record."""
    for store_resolver in (resolver, Resolver(snapshot)):
        result = store_resolver.resolve("Frederiksberg", context_hint="1800")
        assert result.best_code == "2000"
        assert not result.used_context


def test_base_city_fallback_only_without_exact_record(populated_db, snapshot):
    """Base city matches are used only when no record has the exact name."""
    for store in (populated_db, snapshot):
        assert [r.postal_code for r in store.find_by_normalized_city("frederiksberg")] == ["2000"]
        assert [r.postal_code for r in store.find_by_normalized_city("aarhus")] == ["8000", "8200"]


def test_resolve_exact_district(resolver):
    """A district name matches its own record."""
    result = resolver.resolve("København Ø")
    assert result.best_code == "2100"
    assert result.resolved_city == "København Ø"


def test_resolve_with_context(resolver):
    """A context code among the candidates wins."""
    result = resolver.resolve("Aarhus", context_hint="8200")
    assert result.best_code == "8200"
    assert result.used_context


def test_resolve_context_not_a_candidate(resolver):
    """A context code for another city is ignored."""
    result = resolver.resolve("Aarhus", context_hint="9000")
    assert result.best_code == "8000"
    assert not result.used_context


def test_resolve_context_single_candidate(resolver):
    """With one candidate the context is not consulted."""
    result = resolver.resolve("Aalborg", context_hint="9000")
    assert result.best_code == "9000"
    assert not result.used_context


def test_resolve_alias(resolver):
    """Aliases are followed before lookup."""
    result = resolver.resolve("KBH")
    assert result.used_alias
    assert result.normalized == "kobenhavn"
    assert result.best_code == "1150"

    result = resolver.resolve("Copenhagen")
    assert result.used_alias
    assert result.best_code == "1150"

    result = resolver.resolve("Lyngby")
    assert result.used_alias
    assert result.best_code == "2800"
    assert result.resolved_city == "Kongens Lyngby"


def test_resolve_municipality_alias(resolver):
    """Municipality names with a curated alias resolve directly."""
    result = resolver.resolve("Rødovre Kommune")
    assert result.used_alias
    assert result.normalized == "rodovre"
    assert result.best_code == "2610"


def test_resolve_unknown(resolver):
    """Unknown cities resolve to nothing without raising."""
    result = resolver.resolve("Atlantis")
    assert not result.resolved
    assert result.best_code is None
    assert result.candidate_codes == ()
    assert result.resolved_city is None


@pytest.mark.parametrize("city_name", [None, "", "   ", "!!!"])
def test_resolve_malformed_input(resolver, city_name):
    """Malformed input yields an empty result."""
    result = resolver.resolve(city_name)
    assert not result.resolved
    assert result.normalized == ""


def test_resolve_is_deterministic(resolver):
    """Repeated calls give identical results."""
    first = resolver.resolve("København", context_hint="9999")
    second = resolver.resolve("København", context_hint="9999")
    assert first == second
    assert first.to_json() == second.to_json()


def test_resolve_spelling_variants(resolver):
    """Case, whitespace and Danish letters do not matter."""
    codes = {
        resolver.best_zip("københavn"),
        resolver.best_zip("  KØBENHAVN "),
        resolver.best_zip("Kobenhavn"),
    }
    assert codes == {"1150"}


def test_resolve_location(resolver):
    """Locations are extracted then resolved."""
    result = resolver.resolve_location("2100 København Ø")
    assert result.extracted_city == "København"
    assert result.input == "2100 København Ø"
    assert result.best_code == "1150"

    result = resolver.resolve_location("Høje-Taastrup Kommune, Region Hovedstaden, Danmark")
    assert result.extracted_city == "Taastrup"
    assert result.best_code == "2630"

    result = resolver.resolve_location("Aarhus, Danmark", context_hint="8200")
    assert result.best_code == "8200"
    assert result.used_context


def test_resolve_location_rejected(resolver):
    """Foreign locations produce no city."""
    result = resolver.resolve_location("Stockholm, Sverige")
    assert result.extracted_city is None
    assert not result.resolved


def test_result_serialization(resolver):
    """Test result dictionary and JSON output."""
    result = resolver.resolve("Aarhus", context_hint="8200")
    data = json.loads(result.to_json())
    assert data["best_code"] == "8200"
    assert data["candidate_codes"] == ["8000", "8200"]
    assert data["used_context"] is True
    assert data["input"] == "Aarhus"


def test_helpers(resolver):
    """Test convenience lookups."""
    assert resolver.best_zip("Roskilde") == "4000"
    assert resolver.best_zip("Atlantis") is None
    assert resolver.is_known_city("cph")
    assert not resolver.is_known_city("Atlantis")
    assert [r.postal_code for r in resolver.zips_for("Aarhus")] == ["8000", "8200"]


def test_city_info(resolver):
    """Test city info for an alias."""
    info = resolver.city_info("KBH")
    assert info.normalized == "kbh"
    assert info.target_city == "kobenhavn"
    assert info.is_alias
    assert info.best_zip == "1150"
    assert "2100" in info.zip_codes
    assert "copenhagen" in info.aliases
    assert info.to_dict()["is_alias"] is True


def test_suggest(resolver):
    """Misspelled cities get close suggestions."""
    assert "roskilde" in resolver.suggest("Roskllde")
    assert resolver.suggest("Zzzzzz") == []


def test_snapshot_matches_store(resolver, snapshot):
    """The in-memory snapshot resolves exactly like the database."""
    snapshot_resolver = Resolver(snapshot)
    for city in ["København", "Aarhus", "KBH", "Lyngby", "Frederiksberg", "Atlantis", "Taastrup"]:
        assert snapshot_resolver.resolve(city) == resolver.resolve(city)
    assert snapshot_resolver.resolve("Aarhus", "8200") == resolver.resolve("Aarhus", "8200")


def test_store_failure_propagates(populated_db):
    """Infrastructure failures are raised, not reported as unresolved."""
    resolver = Resolver(populated_db)
    populated_db.close()
    with pytest.raises(ReferenceStoreError):
        resolver.resolve("Aarhus")


def test_empty_store():
    """Resolution against an empty store finds nothing."""
    resolver = Resolver(ReferenceSnapshot([]))
    assert not resolver.resolve("København").resolved
    assert resolver.suggest("København") == []

"""
Test employer name matching

Tests normalize_employer_name() and match_jsearch_to_firms().
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from pipeline.employer_matcher import (
    build_firm_index,
    match_jsearch_to_firms,
    normalize_employer_name,
)
from pipeline.firm_registry import FirmRegistry


@pytest.fixture
def registry():
    return FirmRegistry([
        {"id": 1, "name": "Gensler"},
        {"id": 2, "name": "Perkins&Will"},
        {"id": 3, "name": "Sasaki Associates"},
        {"id": 4, "name": "Studio"},
    ])


class TestNormalizeEmployerName:
    """Test employer key"""

    @pytest.mark.parametrize("name,expected", [
        ("Gensler", "gensler"),
        ("GENSLER, Inc.", "gensler"),
        ("Perkins & Will", "perkinswill"),
        ("Perkins&Will Architects", "perkinswill"),
        ("Sasaki Associates", "sasaki"),
        ("Olson Kundig Design Group", "olsonkundigdesign"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize(self, name, expected):
        assert normalize_employer_name(name) == expected

    def test_only_one_suffix_stripped(self):
        assert normalize_employer_name("Foo Design Studio") == "foodesign"


class TestBuildFirmIndex:
    """Test firm index"""

    def test_empty_keys_skipped(self, registry):
        index = build_firm_index(registry)
        # "Studio" normalizes to "" and must never match
        assert "" not in index
        assert index["gensler"] == "1"

    def test_later_firm_wins_collision(self):
        reg = FirmRegistry([{"id": "a", "name": "Gensler"}, {"id": "b", "name": "Gensler Inc"}])
        assert build_firm_index(reg)["gensler"] == "b"


class TestMatchJsearchToFirms:
    """Test matching aggregator results"""

    def test_matched_and_unmatched(self, registry):
        raw = [
            {"employer_name": "Gensler", "job_title": "Architect"},
            {"employer_name": "Perkins & Will", "job_title": "Designer"},
            {"employer_name": "Unknown Studio LLC", "job_title": "Drafter",
             "job_city": "Austin", "job_state": "TX", "job_country": "US"},
        ]
        result = match_jsearch_to_firms(raw, registry)

        assert [(firm_id, job.title) for firm_id, job in result.matched] == [
            ("1", "Architect"),
            ("2", "Designer"),
        ]
        assert len(result.unmatched) == 1
        discovery = result.unmatched[0].to_dict()
        assert discovery["employer"] == "Unknown Studio LLC"
        assert discovery["city"] == "Austin"
        assert discovery["state"] == "TX"
        assert discovery["country"] == "US"
        assert discovery["job"]["title"] == "Drafter"

    def test_missing_employer_is_unmatched(self, registry):
        result = match_jsearch_to_firms([{"job_title": "Mystery"}], registry)
        assert result.matched == []
        assert result.unmatched[0].employer == ""
        assert result.unmatched[0].city == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Test ATS slug discovery

Probes are mocked; no network.

Tests:
1. discover_firm() probe ordering and short-circuiting
2. apply_discovery() including the unverified fallback
3. discover_all() batching and summary
4. main() file handling and exit codes
"""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from pipeline.firm_registry import FirmRegistry
from pipeline.slug_candidates import generate_slug_candidates
from pipeline.utilities.discover_ats_slugs import (
    SlugDiscovery,
    apply_discovery,
    discover_all,
    discover_firm,
    main,
    select_firms,
)
from scrapers.common.http_client import ProbeResult, ProbeStatus

MODULE = 'pipeline.utilities.discover_ats_slugs'


def hit():
    return ProbeResult(ProbeStatus.OK, data={"jobs": []}, http_status=200)


def miss():
    return ProbeResult.not_found(http_status=404)


def probe_matching(*slugs):
    """Fake probe that hits only for the given slugs and records calls."""
    calls = []

    def probe(slug):
        calls.append(slug)
        return hit() if slug in slugs else miss()

    probe.calls = calls
    return probe


class TestDiscoverFirm:
    """Test per-firm probing"""

    def test_both_providers_found(self):
        firm = {"name": "Foo & Bar Architects (FBA)"}
        gh = probe_matching("fba")
        lv = probe_matching("foo")

        discovery = discover_firm("1", firm, gh, lv)

        assert discovery.greenhouse_slug == "fba"
        assert discovery.lever_slug == "foo"
        assert discovery.fallback_slug is None

    def test_stops_once_both_found(self):
        firm = {"name": "Foo & Bar Architects (FBA)"}
        gh = probe_matching("fba")
        lv = probe_matching("fba")

        discover_firm("1", firm, gh, lv)

        assert gh.calls == ["fba"]
        assert lv.calls == ["fba"]

    def test_provider_short_circuits_independently(self):
        firm = {"name": "Foo & Bar Architects (FBA)"}
        candidates = generate_slug_candidates(firm)
        gh = probe_matching(candidates[0])
        lv = probe_matching()

        discovery = discover_firm("1", firm, gh, lv)

        # Greenhouse stops after its first hit, Lever tries every candidate
        assert gh.calls == [candidates[0]]
        assert lv.calls == candidates
        assert discovery.lever_slug is None

    def test_no_match_falls_back_to_first_candidate(self):
        firm = {"name": "Nowhere Design Group"}
        discovery = discover_firm("1", firm, probe_matching(), probe_matching())

        assert not discovery.matched
        assert discovery.fallback_slug == generate_slug_candidates(firm)[0]

    def test_timeouts_treated_as_misses(self):
        def timeout_probe(slug):
            return ProbeResult.transport_error('Timeout')

        discovery = discover_firm("1", {"name": "Gensler"}, timeout_probe, timeout_probe)

        assert discovery.greenhouse_slug is None
        assert discovery.lever_slug is None
        assert discovery.fallback_slug == "gensler"

    def test_numeric_name(self):
        discovery = discover_firm("1", {"name": 360}, probe_matching("360"), probe_matching())
        assert discovery.name == "360"
        assert discovery.greenhouse_slug == "360"

    def test_no_candidates(self):
        discovery = discover_firm("1", {"name": ""}, probe_matching(), probe_matching())
        assert discovery.candidates == []
        assert discovery.fallback_slug is None


class TestApplyDiscovery:
    """Test registry updates"""

    def test_fallback_sets_greenhouse_slug(self):
        registry = FirmRegistry([{"id": 1, "name": "Nowhere"}])
        apply_discovery(registry, SlugDiscovery(firm_id="1", name="Nowhere", candidates=["nowhere", "nowhere-x"]))
        assert registry.get("1")["greenhouse_slug"] == "nowhere"
        assert "lever_slug" not in registry.get("1")

    def test_lever_only_keeps_existing_greenhouse(self):
        registry = FirmRegistry([{"id": 1, "name": "A", "greenhouse_slug": "old"}])
        apply_discovery(registry, SlugDiscovery(firm_id="1", name="A", candidates=["a"], lever_slug="a"))
        assert registry.get("1")["greenhouse_slug"] == "old"
        assert registry.get("1")["lever_slug"] == "a"


class TestSelectFirms:
    """Test firm selection"""

    def test_only_missing(self):
        registry = FirmRegistry([
            {"id": 1, "name": "A", "greenhouse_slug": "a"},
            {"id": 2, "name": "B"},
            {"id": 3, "name": "C", "lever_slug": "c"},
        ])
        assert [firm_id for firm_id, _ in select_firms(registry, only_missing=True)] == ["2"]

    def test_limit(self):
        registry = FirmRegistry([{"id": i, "name": f"F{i}"} for i in range(4)])
        assert len(select_firms(registry, limit=2)) == 2


class TestDiscoverAll:
    """Test batched discovery over the registry"""

    @patch('scrapers.common.batching.time.sleep')
    @patch(f'{MODULE}.probe_lever')
    @patch(f'{MODULE}.probe_greenhouse')
    def test_summary_and_updates(self, mock_gh, mock_lv, mock_sleep):
        mock_gh.side_effect = lambda slug: hit() if slug in ("gensler", "perkinswill") else miss()
        mock_lv.side_effect = lambda slug: hit() if slug in ("sasaki", "perkinswill") else miss()

        registry = FirmRegistry([
            {"id": 1, "name": "Gensler"},
            {"id": 2, "name": "Sasaki Associates", "website": "https://www.sasaki.com"},
            {"id": 3, "name": "Nowhere Studio"},
            {"id": 4, "name": "Perkins&Will"},
        ])

        summary = discover_all(registry, batch_size=2, delay=0.2)

        assert summary.processed == 4
        # Firm on both boards counts once, under Greenhouse
        assert summary.greenhouse == 2
        assert summary.lever == 1
        assert summary.no_match == 1
        assert summary.greenhouse + summary.lever + summary.no_match == summary.processed
        assert summary.fallback == 1
        assert registry.get("1")["greenhouse_slug"] == "gensler"
        assert registry.get("2")["lever_slug"] == "sasaki"
        assert registry.get("3")["greenhouse_slug"] == generate_slug_candidates({"name": "Nowhere Studio"})[0]
        assert registry.get("4")["greenhouse_slug"] == "perkinswill"
        assert registry.get("4")["lever_slug"] == "perkinswill"
        # 4 firms in batches of 2 -> one pause
        mock_sleep.assert_called_once_with(0.2)

    @patch('scrapers.common.batching.time.sleep')
    @patch(f'{MODULE}.probe_lever', return_value=hit())
    @patch(f'{MODULE}.probe_greenhouse', return_value=hit())
    def test_firm_on_both_boards_counted_once(self, mock_gh, mock_lv, mock_sleep):
        registry = FirmRegistry([{"id": 1, "name": "Gensler"}, {"id": 2, "name": "Sasaki"}])

        summary = discover_all(registry)

        assert summary.processed == 2
        assert summary.greenhouse == 2
        assert summary.lever == 0
        assert summary.no_match == 0


class TestMain:
    """Test command-line entry point"""

    @patch('scrapers.common.batching.time.sleep')
    @patch(f'{MODULE}.probe_lever', return_value=miss())
    @patch(f'{MODULE}.probe_greenhouse')
    def test_writes_firm_file(self, mock_gh, mock_lv, mock_sleep, tmp_path):
        mock_gh.side_effect = lambda slug: hit() if slug == "gensler" else miss()
        path = tmp_path / "firms-base.json"
        path.write_text(json.dumps([{"id": 1, "name": "Gensler", "city": "San Francisco"}]))

        assert main(["--firms", str(path)]) == 0

        saved = json.loads(path.read_text())
        assert saved == [{"id": 1, "name": "Gensler", "city": "San Francisco", "greenhouse_slug": "gensler"}]

    @patch('scrapers.common.batching.time.sleep')
    @patch(f'{MODULE}.probe_lever', return_value=miss())
    @patch(f'{MODULE}.probe_greenhouse', return_value=miss())
    def test_dry_run_leaves_file(self, mock_gh, mock_lv, mock_sleep, tmp_path):
        path = tmp_path / "firms-base.json"
        original = json.dumps([{"id": 1, "name": "Gensler"}])
        path.write_text(original)

        assert main(["--firms", str(path), "--dry-run"]) == 0
        assert path.read_text() == original

    def test_unreadable_input_exits_non_zero(self, tmp_path):
        assert main(["--firms", str(tmp_path / "missing.json")]) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

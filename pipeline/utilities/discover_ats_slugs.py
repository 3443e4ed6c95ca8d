#!/usr/bin/env python3
"""
ATS Slug Discovery Tool

Finds the Greenhouse and Lever board slugs for every firm in the curated
database and writes them back into data/firms-base.json, where
pipeline/fetch_jobs.py picks them up.

For each firm, candidate slugs (pipeline/slug_candidates.py) are probed in
order against both APIs until each provider has a hit or the candidates run
out. Firms are processed 5 at a time with a short pause between batches.

When neither provider matches, the best candidate is still written as
greenhouse_slug so it can be checked by hand. That value is unverified.

Usage:
    python pipeline/utilities/discover_ats_slugs.py [--dry-run] [--only-missing] [--batch-size 5] [--limit N]

Options:
    --dry-run       Probe slugs but don't write the firm database
    --only-missing  Skip firms that already have a Greenhouse or Lever slug
    --batch-size N  Number of firms probed concurrently (default: 5)
    --limit N       Limit total firms to probe
"""

import sys
import logging
import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

from pipeline.firm_registry import FirmDataError, FirmRegistry, GREENHOUSE_SLUG, LEVER_SLUG
from pipeline.slug_candidates import generate_slug_candidates
from scrapers.common.batching import run_in_batches
from scrapers.common.http_client import ProbeResult
from scrapers.greenhouse.greenhouse_api_fetcher import probe_greenhouse
from scrapers.lever.lever_fetcher import probe_lever

load_dotenv()

logger = logging.getLogger(__name__)

DATA_FILE = PROJECT_ROOT / 'data' / 'firms-base.json'
CONCURRENCY = 5
BATCH_DELAY = 0.2  # seconds between batches


@dataclass
class SlugDiscovery:
    """Probe outcome for one firm."""
    firm_id: str
    name: str
    candidates: List[str] = field(default_factory=list)
    greenhouse_slug: Optional[str] = None
    lever_slug: Optional[str] = None

    @property
    def matched(self) -> bool:
        return bool(self.greenhouse_slug or self.lever_slug)

    @property
    def fallback_slug(self) -> Optional[str]:
        """Best unverified guess, used only when nothing matched."""
        if self.matched or not self.candidates:
            return None
        return self.candidates[0]


@dataclass
class DiscoverySummary:
    processed: int = 0
    greenhouse: int = 0
    lever: int = 0
    no_match: int = 0
    fallback: int = 0


def discover_firm(
    firm_id: str,
    firm: Dict,
    greenhouse_probe: Optional[Callable[[str], ProbeResult]] = None,
    lever_probe: Optional[Callable[[str], ProbeResult]] = None
) -> SlugDiscovery:
    """
    Probe a firm's candidate slugs against Greenhouse and Lever.

    Each provider stops being probed once it has a hit; the loop ends when
    both have hit or the candidates are exhausted. One attempt per
    (slug, provider).
    """
    greenhouse_probe = greenhouse_probe or probe_greenhouse
    lever_probe = lever_probe or probe_lever
    discovery = SlugDiscovery(
        firm_id=firm_id,
        name=str(firm.get('name') or ''),
        candidates=generate_slug_candidates(firm),
    )

    for candidate in discovery.candidates:
        if discovery.greenhouse_slug is None and greenhouse_probe(candidate).found:
            discovery.greenhouse_slug = candidate

        if discovery.lever_slug is None and lever_probe(candidate).found:
            discovery.lever_slug = candidate

        if discovery.greenhouse_slug and discovery.lever_slug:
            break

    return discovery


def apply_discovery(registry: FirmRegistry, discovery: SlugDiscovery) -> None:
    """Write a firm's discovered slugs (or the unverified fallback) into the registry."""
    if discovery.greenhouse_slug:
        registry.set_slug(discovery.firm_id, GREENHOUSE_SLUG, discovery.greenhouse_slug)
    if discovery.lever_slug:
        registry.set_slug(discovery.firm_id, LEVER_SLUG, discovery.lever_slug)

    # TODO: mark fallback slugs as unverified once fetch_jobs can skip them
    if discovery.fallback_slug:
        registry.set_slug(discovery.firm_id, GREENHOUSE_SLUG, discovery.fallback_slug)


def log_discovery(discovery: SlugDiscovery, position: int) -> None:
    preview = ', '.join(discovery.candidates[:3])
    if len(discovery.candidates) > 3:
        preview += '...'
    logger.info(f"[{position}] {discovery.name} - candidates: {preview}")

    if discovery.greenhouse_slug:
        logger.info(f"    [OK] Greenhouse: {discovery.greenhouse_slug}")
    if discovery.lever_slug:
        logger.info(f"    [OK] Lever: {discovery.lever_slug}")
    if discovery.fallback_slug:
        logger.warning(
            f"    [--] No API match for {discovery.name}. "
            f"Setting greenhouse_slug to: {discovery.fallback_slug} (for manual validation)"
        )


def select_firms(registry: FirmRegistry, only_missing: bool = False, limit: Optional[int] = None) -> List[Tuple[str, Dict]]:
    firms = [
        (firm_id, firm) for firm_id, firm in registry
        if not (only_missing and (firm.get(GREENHOUSE_SLUG) or firm.get(LEVER_SLUG)))
    ]
    if limit is not None:
        firms = firms[:limit]
    return firms


def discover_all(
    registry: FirmRegistry,
    firms: Optional[List[Tuple[str, Dict]]] = None,
    batch_size: int = CONCURRENCY,
    delay: float = BATCH_DELAY
) -> DiscoverySummary:
    """
    Run discovery over firms in concurrent batches and apply the results.

    Args:
        registry: Firm registry, updated in place
        firms: (firm_id, record) pairs to probe; defaults to every firm
        batch_size: Firms probed concurrently
        delay: Seconds between batches

    Returns:
        DiscoverySummary
    """
    if firms is None:
        firms = list(registry)

    summary = DiscoverySummary()

    def worker(item: Tuple[str, Dict]) -> SlugDiscovery:
        firm_id, firm = item
        return discover_firm(firm_id, firm)

    discoveries = run_in_batches(firms, worker, batch_size=batch_size, delay=delay)

    for position, discovery in enumerate(discoveries, 1):
        log_discovery(discovery, position)
        apply_discovery(registry, discovery)

        # Each firm lands in exactly one bucket; Greenhouse takes precedence
        summary.processed += 1
        if discovery.greenhouse_slug:
            summary.greenhouse += 1
        elif discovery.lever_slug:
            summary.lever += 1
        else:
            summary.no_match += 1
        if discovery.fallback_slug:
            summary.fallback += 1

    return summary


def print_summary(summary: DiscoverySummary):
    """Print discovery summary."""
    print(f"\n{'='*60}")
    print("SUMMARY")
    print('='*60)
    print(f"Total firms processed: {summary.processed}")
    print(f"Firms matched to Greenhouse: {summary.greenhouse}")
    print(f"Firms matched to Lever only: {summary.lever}")
    print(f"Firms with no match: {summary.no_match}")
    print(f"Unverified fallback slugs: {summary.fallback}")
    print('='*60)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Discover Greenhouse/Lever slugs for curated firms')
    parser.add_argument('--firms', type=Path, default=DATA_FILE,
                        help='Firm database to read and update (default: data/firms-base.json)')
    parser.add_argument('--dry-run', action='store_true',
                        help='Probe slugs but do not write the firm database')
    parser.add_argument('--only-missing', action='store_true',
                        help='Skip firms that already have a Greenhouse or Lever slug')
    parser.add_argument('--batch-size', type=int, default=CONCURRENCY,
                        help='Firms probed concurrently (default: 5)')
    parser.add_argument('--limit', type=int, default=None,
                        help='Limit total firms to probe')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    print("=" * 60)
    print("ATS SLUG DISCOVERY TOOL")
    print("=" * 60)

    try:
        registry = FirmRegistry.load(args.firms)
        firms = select_firms(registry, only_missing=args.only_missing, limit=args.limit)
        logger.info(f"Probing {len(firms)} of {len(registry)} firms")

        summary = discover_all(registry, firms, batch_size=args.batch_size)

        if args.dry_run:
            logger.info("[DRY RUN] Firm database not updated")
        else:
            registry.save(args.firms)
            logger.info(f"Data written to {args.firms}")
    except FirmDataError as e:
        logger.error(f"Error: {e}")
        return 1

    print_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Threshold Job Pipeline: Greenhouse + Lever + JSearch

Purpose:
--------
Fetches live job listings for every firm in the curated database and writes
the public job map data.

Pipeline:
1. Load data/firms-base.json and clear every firm's job list
2. Greenhouse pass over firms with a greenhouse_slug
3. Lever pass over firms with a lever_slug
4. JSearch pass (only when JSEARCH_API_KEY is set): match results to firms by
   employer name, keep the rest as discoveries
5. Write public/firms.json (public fields only, compact) and
   data/jsearch-discoveries.json (pretty, overwritten each run)

Slugs come from pipeline/utilities/discover_ats_slugs.py, which must have run
first.

Usage:
------
python pipeline/fetch_jobs.py
python pipeline/fetch_jobs.py --firms data/firms-base.json --output public/firms.json

Environment:
------------
JSEARCH_API_KEY - RapidAPI key for JSearch (optional)
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

# Add project root to path so we can import scrapers module
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

from pipeline.employer_matcher import match_jsearch_to_firms
from pipeline.firm_registry import (
    FirmDataError,
    FirmRegistry,
    GREENHOUSE_SLUG,
    LEVER_SLUG,
    write_json,
)
from pipeline.job_posting import JobPosting
from scrapers.common.batching import run_in_batches
from scrapers.greenhouse.greenhouse_api_fetcher import fetch_greenhouse_jobs
from scrapers.jsearch.jsearch_fetcher import fetch_jsearch_jobs, load_search_config
from scrapers.lever.lever_fetcher import fetch_lever_jobs

load_dotenv()

logger = logging.getLogger(__name__)

FIRMS_BASE = PROJECT_ROOT / 'data' / 'firms-base.json'
OUTPUT = PROJECT_ROOT / 'public' / 'firms.json'
DISCOVERIES = PROJECT_ROOT / 'data' / 'jsearch-discoveries.json'

CONCURRENCY = 5
BATCH_DELAY = 0.3  # seconds between batches


@dataclass
class ProviderStats:
    firms_probed: int = 0
    firms_with_jobs: int = 0
    jobs: int = 0


@dataclass
class PipelineSummary:
    greenhouse: ProviderStats = field(default_factory=ProviderStats)
    lever: ProviderStats = field(default_factory=ProviderStats)
    jsearch_raw: int = 0
    jsearch_matched: int = 0
    jsearch_jobs: int = 0
    discoveries: int = 0
    firms_with_jobs: int = 0
    total_jobs: int = 0
    output_bytes: int = 0


def run_provider_pass(
    registry: FirmRegistry,
    slug_field: str,
    fetcher: Callable[[str], List[JobPosting]],
    batch_size: int = CONCURRENCY,
    delay: float = BATCH_DELAY
) -> ProviderStats:
    """
    Fetch postings for every firm carrying `slug_field` and attach them.

    Workers only see (firm_id, slug) and return (firm_id, jobs); the registry
    is updated here, after each batch result comes back.
    """
    targets = registry.slugs(slug_field)
    stats = ProviderStats(firms_probed=len(targets))

    def worker(item: Tuple[str, str]) -> Tuple[str, List[JobPosting]]:
        firm_id, slug = item
        return firm_id, fetcher(slug)

    for firm_id, jobs in run_in_batches(targets, worker, batch_size=batch_size, delay=delay):
        if jobs:
            registry.add_jobs(firm_id, jobs)
            stats.firms_with_jobs += 1
            stats.jobs += len(jobs)

    return stats


def run_pipeline(
    firms_path: Path = FIRMS_BASE,
    output_path: Path = OUTPUT,
    discoveries_path: Path = DISCOVERIES,
    api_key: Optional[str] = None,
    queries_path: Optional[Path] = None,
    batch_size: int = CONCURRENCY,
    delay: float = BATCH_DELAY
) -> PipelineSummary:
    """
    Run the full fetch and write both output files.

    Raises:
        FirmDataError: input unreadable or an output file could not be written
    """
    summary = PipelineSummary()

    registry = FirmRegistry.load(firms_path)
    registry.reset_jobs()

    # Greenhouse pass
    logger.info(f"Greenhouse: probing {len(registry.slugs(GREENHOUSE_SLUG))} firms...")
    summary.greenhouse = run_provider_pass(
        registry, GREENHOUSE_SLUG, fetch_greenhouse_jobs, batch_size=batch_size, delay=delay
    )
    logger.info(f"  {summary.greenhouse.firms_with_jobs} firms responded, {summary.greenhouse.jobs} jobs found")

    # Lever pass
    logger.info(f"Lever: probing {len(registry.slugs(LEVER_SLUG))} firms...")
    summary.lever = run_provider_pass(
        registry, LEVER_SLUG, fetch_lever_jobs, batch_size=batch_size, delay=delay
    )
    logger.info(f"  {summary.lever.firms_with_jobs} firms responded, {summary.lever.jobs} jobs found")

    # JSearch pass
    discoveries = []
    if api_key:
        logger.info("JSearch: querying job aggregator...")
        search_config = load_search_config(queries_path)
        jsearch_raw = fetch_jsearch_jobs(api_key, search_config['queries'], search_config['params'])
        summary.jsearch_raw = len(jsearch_raw)
        logger.info(f"  {len(jsearch_raw)} raw results")

        if jsearch_raw:
            match = match_jsearch_to_firms(jsearch_raw, registry)
            summary.jsearch_matched = len(match.matched)
            for firm_id, job in match.matched:
                if registry.add_job_unless_duplicate(firm_id, job):
                    summary.jsearch_jobs += 1
            discoveries = match.unmatched
            logger.info(f"  Matched to existing firms: {len(match.matched)}")
            logger.info(f"  New/unmatched employers: {len(match.unmatched)}")
    else:
        logger.info("No JSEARCH_API_KEY - skipping JSearch")

    # Output
    summary.discoveries = len(discoveries)
    write_json(discoveries_path, [d.to_dict() for d in discoveries], indent=2)
    if discoveries:
        logger.info(f"Saved {len(discoveries)} discoveries to {discoveries_path}")

    summary.output_bytes = write_json(output_path, registry.public_records())
    summary.firms_with_jobs = registry.firms_with_jobs()
    summary.total_jobs = registry.total_jobs()

    return summary


def print_summary(summary: PipelineSummary, output_path: Path):
    """Print run summary."""
    size_mb = summary.output_bytes / 1048576

    print(f"\n{'='*60}")
    print("SUMMARY")
    print('='*60)
    print(f"Greenhouse: {summary.greenhouse.firms_with_jobs} firms, {summary.greenhouse.jobs} jobs")
    print(f"Lever:      {summary.lever.firms_with_jobs} firms, {summary.lever.jobs} jobs")
    print(f"JSearch:    {summary.jsearch_matched} matched, {summary.jsearch_jobs} jobs")
    print(f"Discoveries: {summary.discoveries}")
    print(f"Total firms with jobs: {summary.firms_with_jobs}")
    print(f"Total job listings: {summary.total_jobs}")
    print(f"Output: {output_path} ({size_mb:.2f} MB)")
    print('='*60)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Fetch live jobs from Greenhouse, Lever and JSearch for all firms',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--firms', type=Path, default=FIRMS_BASE,
                        help='Firm database (default: data/firms-base.json)')
    parser.add_argument('--output', type=Path, default=OUTPUT,
                        help='Public output file (default: public/firms.json)')
    parser.add_argument('--discoveries', type=Path, default=DISCOVERIES,
                        help='Unmatched JSearch results (default: data/jsearch-discoveries.json)')
    parser.add_argument('--queries', type=Path, default=None,
                        help='JSearch queries YAML (default: config/jsearch/search_queries.yaml)')
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
    print("THRESHOLD JOB PIPELINE")
    print("=" * 60)

    try:
        summary = run_pipeline(
            firms_path=args.firms,
            output_path=args.output,
            discoveries_path=args.discoveries,
            api_key=os.getenv('JSEARCH_API_KEY', ''),
            queries_path=args.queries,
        )
    except FirmDataError as e:
        logger.error(f"Pipeline failed: {e}")
        return 1

    print_summary(summary, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())

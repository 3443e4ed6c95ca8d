"""
Employer Matcher: attach JSearch results to known firms

Aggregator results carry a free-text employer name. A result is attached to a
firm only when both names reduce to the same key:

    "Gensler, Inc."  -> "gensler"
    "GENSLER"        -> "gensler"
    "Perkins&Will Architects" -> "perkinswill"

Exact key equality, no edit distance. Results with no matching firm become
UnmatchedDiscovery entries for manual review.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pipeline.firm_registry import FirmRegistry
from pipeline.job_posting import JobPosting
from scrapers.jsearch.jsearch_fetcher import parse_jsearch_job

logger = logging.getLogger(__name__)

EMPLOYER_SUFFIX_PATTERN = re.compile(
    r'(?:inc|llc|architects|architecture|design|studio|group|associates|partnership|consulting)$'
)


def normalize_employer_name(name: Optional[str]) -> str:
    """Lower-case, keep [a-z0-9] only, strip one trailing firm-type suffix."""
    key = re.sub(r'[^a-z0-9]', '', (name or '').lower())
    return EMPLOYER_SUFFIX_PATTERN.sub('', key, count=1)


@dataclass
class UnmatchedDiscovery:
    """Aggregator job whose employer is not in the firm database."""
    employer: str
    job: JobPosting
    city: str = ''
    state: str = ''
    country: str = ''

    def to_dict(self) -> dict:
        return {
            'employer': self.employer,
            'city': self.city,
            'state': self.state,
            'country': self.country,
            'job': self.job.to_dict(),
        }


@dataclass
class MatchResult:
    matched: List[Tuple[str, JobPosting]] = field(default_factory=list)
    unmatched: List[UnmatchedDiscovery] = field(default_factory=list)


def build_firm_index(registry: FirmRegistry) -> Dict[str, str]:
    """Employer key -> firm id. Later firms win on collisions; empty keys are skipped."""
    index: Dict[str, str] = {}
    for firm_id, firm in registry:
        key = normalize_employer_name(firm.get('name'))
        if key:
            index[key] = firm_id
    return index


def match_jsearch_to_firms(jsearch_jobs: List[Dict], registry: FirmRegistry) -> MatchResult:
    """
    Normalize raw JSearch results and split them into matched / unmatched.

    Args:
        jsearch_jobs: Raw dicts from the JSearch `data` array
        registry: Known firms

    Returns:
        MatchResult with (firm_id, JobPosting) pairs and UnmatchedDiscovery entries
    """
    index = build_firm_index(registry)
    result = MatchResult()

    for raw in jsearch_jobs:
        employer = raw.get('employer_name') or ''
        job = parse_jsearch_job(raw)
        key = normalize_employer_name(employer)
        firm_id = index.get(key) if key else None

        if firm_id is not None:
            result.matched.append((firm_id, job))
        else:
            result.unmatched.append(UnmatchedDiscovery(
                employer=employer,
                job=job,
                city=raw.get('job_city') or '',
                state=raw.get('job_state') or '',
                country=raw.get('job_country') or '',
            ))

    logger.debug(f"JSearch matching: {len(result.matched)} matched, {len(result.unmatched)} unmatched")
    return result

"""
Lever Postings API Client

PURPOSE:
Probe and fetch job postings from Lever's public Postings API (no auth
required) and normalize them into JobPosting records.

API Documentation: https://github.com/lever/postings-api

    GET https://api.lever.co/v0/postings/{site}?mode=json

A site exists when the endpoint answers 200 with a top-level JSON array.

USAGE:
    from scrapers.lever.lever_fetcher import probe_lever, fetch_lever_jobs

    jobs = fetch_lever_jobs('spotify')
"""

import logging
from typing import Dict, List, Optional

from pipeline.job_posting import (
    JobPosting,
    SALARY_FALLBACK,
    UNTITLED,
    coerce_employment_type,
    format_salary_range,
    time_ago,
)
from scrapers.common.http_client import ProbeResult, ProbeStatus, get_json

logger = logging.getLogger(__name__)

LEVER_API_URL = "https://api.lever.co/v0/postings"

PROBE_TIMEOUT = 5
FETCH_TIMEOUT = 8


def postings_url(site_slug: str) -> str:
    return f"{LEVER_API_URL}/{site_slug}"


def probe_lever(site_slug: str, timeout: float = PROBE_TIMEOUT) -> ProbeResult:
    """
    Check whether a Lever site exists for a slug.

    A 200 whose body is not a list is downgraded to NOT_FOUND.
    """
    result = get_json(postings_url(site_slug), params={'mode': 'json'}, timeout=timeout)
    if result.found and not isinstance(result.data, list):
        return ProbeResult.not_found(http_status=result.http_status, error='Unexpected response shape')
    return result


def parse_salary(salary_range: Optional[Dict]) -> str:
    """Format Lever's optional salaryRange object ({min, max, currency, interval})."""
    if not isinstance(salary_range, dict):
        return SALARY_FALLBACK
    currency = salary_range.get('currency')
    if currency and currency.upper() != 'USD':
        return SALARY_FALLBACK
    return format_salary_range(salary_range.get('min'), salary_range.get('max'))


def parse_lever_job(job_data: Dict) -> JobPosting:
    """
    Parse raw Lever API job data into a JobPosting.

    Args:
        job_data: Raw job dict from Lever API

    Returns:
        JobPosting
    """
    categories = job_data.get('categories') or {}

    return JobPosting(
        title=job_data.get('text') or UNTITLED,
        type=coerce_employment_type(categories.get('commitment')),
        salary=parse_salary(job_data.get('salaryRange')),
        posted=time_ago(job_data.get('createdAt')),
        url=job_data.get('hostedUrl') or '',
    )


def fetch_lever_jobs(site_slug: Optional[str], timeout: float = FETCH_TIMEOUT) -> List[JobPosting]:
    """
    Fetch and normalize all postings for one Lever site.

    Args:
        site_slug: The firm's Lever site slug

    Returns:
        List of JobPosting (empty on any failure)
    """
    if not site_slug:
        return []

    result = get_json(postings_url(site_slug), params={'mode': 'json'}, timeout=timeout)

    if result.status is ProbeStatus.TRANSPORT_ERROR:
        logger.warning(f"Lever request failed for {site_slug}: {result.error}")
        return []
    if not result.found:
        logger.debug(f"Lever site not found: {site_slug} (HTTP {result.http_status})")
        return []
    if not isinstance(result.data, list):
        logger.warning(f"Unexpected response format from {site_slug}")
        return []

    jobs = [parse_lever_job(job_data) for job_data in result.data if isinstance(job_data, dict)]
    logger.debug(f"Lever {site_slug}: {len(jobs)} jobs")
    return jobs

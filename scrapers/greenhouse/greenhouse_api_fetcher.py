"""
Greenhouse Job Board API Client

PURPOSE:
Probe and fetch job postings from Greenhouse's public Job Board API (no auth
required) and normalize them into JobPosting records.

API Endpoint:
    GET https://boards-api.greenhouse.io/v1/boards/{board_token}/jobs

A board exists when the endpoint answers 200 with an object holding a `jobs`
array. Anything else (404, timeout, HTML error page) is treated as "not on
Greenhouse" and never raised.

USAGE:
    from scrapers.greenhouse.greenhouse_api_fetcher import probe_greenhouse, fetch_greenhouse_jobs

    if probe_greenhouse('gensler').found:
        jobs = fetch_greenhouse_jobs('gensler')
"""

import logging
from typing import Callable, Dict, List, Optional

from pipeline.job_posting import (
    EmploymentType,
    JobPosting,
    SALARY_FALLBACK,
    UNTITLED,
    coerce_employment_type,
    format_salary_range,
    match_type_keywords,
    time_ago,
)
from scrapers.common.http_client import ProbeResult, ProbeStatus, get_json

logger = logging.getLogger(__name__)

# Greenhouse Job Board API endpoint
GREENHOUSE_API_URL = "https://boards-api.greenhouse.io/v1/boards"

PROBE_TIMEOUT = 5
FETCH_TIMEOUT = 8


def board_url(board_token: str) -> str:
    return f"{GREENHOUSE_API_URL}/{board_token}/jobs"


def _has_jobs_array(data) -> bool:
    return isinstance(data, dict) and isinstance(data.get('jobs'), list)


def probe_greenhouse(board_token: str, timeout: float = PROBE_TIMEOUT) -> ProbeResult:
    """
    Check whether a Greenhouse board exists for a slug.

    A 200 whose body lacks the `jobs` array is downgraded to NOT_FOUND.
    """
    result = get_json(board_url(board_token), timeout=timeout)
    if result.found and not _has_jobs_array(result.data):
        return ProbeResult.not_found(http_status=result.http_status, error='Unexpected response shape')
    return result


# =============================================================================
# Job type inference
# =============================================================================

def _type_from_metadata(job_data: Dict) -> Optional[str]:
    """
    Custom metadata field named like 'Employment Type'.

    Values that don't read as an employment type ("Workplace Type: Remote")
    are skipped so department and title rules still apply.
    """
    for meta in job_data.get('metadata') or []:
        if not isinstance(meta, dict):
            continue
        name = meta.get('name') or ''
        value = meta.get('value')
        if 'type' in name.lower() and value:
            job_type = coerce_employment_type(value)
            if job_type != EmploymentType.OTHER.value:
                return job_type
    return None


def _type_from_department(job_data: Dict) -> Optional[str]:
    departments = job_data.get('departments') or []
    if not departments or not isinstance(departments[0], dict):
        return None
    return match_type_keywords(departments[0].get('name') or '')


def _type_from_title(job_data: Dict) -> Optional[str]:
    return match_type_keywords(job_data.get('title') or '')


# Evaluated in order; the first rule returning a value wins.
JOB_TYPE_RULES: List[Callable[[Dict], Optional[str]]] = [
    _type_from_metadata,
    _type_from_department,
    _type_from_title,
]


def infer_job_type(job_data: Dict, default: EmploymentType = EmploymentType.FULL_TIME) -> str:
    """
    Infer employment type for a Greenhouse posting.

    Priority: metadata "type" field, then first department name, then title.
    Falls back to Full-time.
    """
    for rule in JOB_TYPE_RULES:
        job_type = rule(job_data)
        if job_type:
            return job_type
    return default.value


def parse_compensation(pay_ranges: Optional[List[Dict]]) -> str:
    """
    Format salary from Greenhouse pay_input_ranges (amounts in cents).

    Only the first range is used and only USD ranges are shown, since the
    board displays dollars.
    """
    if not pay_ranges or not isinstance(pay_ranges[0], dict):
        return SALARY_FALLBACK

    pay_range = pay_ranges[0]
    currency = pay_range.get('currency_type')
    if currency and currency.upper() != 'USD':
        return SALARY_FALLBACK

    min_cents = pay_range.get('min_cents')
    max_cents = pay_range.get('max_cents')
    if min_cents is None or max_cents is None:
        return SALARY_FALLBACK

    return format_salary_range(min_cents / 100, max_cents / 100)


def parse_greenhouse_job(job_data: Dict) -> JobPosting:
    """
    Parse raw Greenhouse API job data into a JobPosting.

    Args:
        job_data: Raw job dict from Greenhouse API

    Returns:
        JobPosting
    """
    return JobPosting(
        title=job_data.get('title') or UNTITLED,
        type=infer_job_type(job_data),
        salary=parse_compensation(job_data.get('pay_input_ranges')),
        posted=time_ago(job_data.get('updated_at')),
        url=job_data.get('absolute_url') or '',
    )


def fetch_greenhouse_jobs(board_token: Optional[str], timeout: float = FETCH_TIMEOUT) -> List[JobPosting]:
    """
    Fetch and normalize all postings on one Greenhouse board.

    Args:
        board_token: The firm's Greenhouse board token/slug

    Returns:
        List of JobPosting (empty on any failure)
    """
    if not board_token:
        return []

    result = get_json(board_url(board_token), timeout=timeout)

    if result.status is ProbeStatus.TRANSPORT_ERROR:
        logger.warning(f"Greenhouse request failed for {board_token}: {result.error}")
        return []
    if not result.found:
        logger.debug(f"Greenhouse board not found: {board_token} (HTTP {result.http_status})")
        return []
    if not _has_jobs_array(result.data):
        logger.warning(f"Unexpected response format from {board_token}")
        return []

    jobs = [
        parse_greenhouse_job(job_data)
        for job_data in result.data['jobs']
        if isinstance(job_data, dict)
    ]
    logger.debug(f"Greenhouse {board_token}: {len(jobs)} jobs")
    return jobs

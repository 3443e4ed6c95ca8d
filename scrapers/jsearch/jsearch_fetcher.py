"""
JSEARCH API CLIENT MODULE

PURPOSE:
Broad discovery of architecture jobs through the JSearch aggregator
(RapidAPI). Complements the per-firm Greenhouse/Lever boards: results are
matched back to known firms by employer name in pipeline/employer_matcher.py.

The pass is optional. Without JSEARCH_API_KEY it is skipped entirely.

RATE LIMITS:
Free RapidAPI plans are tight, so queries run one at a time with a pause
between them and each query asks for a single request (num_pages covers
pagination server-side).

See: https://rapidapi.com/letscrape-6bRBa3QguO5/api/jsearch
"""

import time
import logging
import yaml
from pathlib import Path
from typing import Dict, List, Optional

from pipeline.job_posting import (
    JobPosting,
    UNTITLED,
    coerce_employment_type,
    format_salary_range,
    time_ago,
)
from scrapers.common.http_client import get_json

logger = logging.getLogger(__name__)

# ============================================
# CONFIGURATION
# ============================================

JSEARCH_HOST = "jsearch.p.rapidapi.com"
JSEARCH_SEARCH_URL = f"https://{JSEARCH_HOST}/search"

REQUEST_TIMEOUT = 8
QUERY_DELAY = 0.5  # seconds between queries

DEFAULT_QUERIES_PATH = Path(__file__).parent.parent.parent / 'config' / 'jsearch' / 'search_queries.yaml'

DEFAULT_SEARCH_QUERIES = [
    "architect jobs united states",
    "landscape architect jobs united states",
    "urban designer jobs united states",
]

DEFAULT_SEARCH_PARAMS = {
    "page": 1,
    "num_pages": 2,
    "country": "us",
    "date_posted": "week",
}


def load_search_config(config_path: Optional[Path] = None) -> Dict:
    """
    Load search queries and request parameters from YAML config.

    Args:
        config_path: Path to YAML config file. If None, uses default location.

    Returns:
        Dict with 'queries' (list of str) and 'params' (dict)
    """
    if config_path is None:
        config_path = DEFAULT_QUERIES_PATH

    defaults = {'queries': list(DEFAULT_SEARCH_QUERIES), 'params': dict(DEFAULT_SEARCH_PARAMS)}

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            raise ValueError(f"expected a mapping, got {type(config).__name__}")

        raw_queries = config.get('search_queries') or []
        if not isinstance(raw_queries, list):
            raise ValueError("search_queries must be a list")
        raw_params = config.get('search_params') or {}
        if not isinstance(raw_params, dict):
            raise ValueError("search_params must be a mapping")

        queries = [str(q) for q in raw_queries if q]
        params = dict(DEFAULT_SEARCH_PARAMS)
        params.update(raw_params)
    except FileNotFoundError:
        logger.warning(f"JSearch config not found at {config_path}. Using default queries.")
        return defaults
    except Exception as e:
        logger.warning(f"Failed to load JSearch config: {e}. Using default queries.")
        return defaults

    logger.debug(f"Loaded {len(queries)} JSearch queries from {config_path}")
    return {'queries': queries or defaults['queries'], 'params': params}


def fetch_jsearch_jobs(
    api_key: Optional[str],
    queries: Optional[List[str]] = None,
    params: Optional[Dict] = None,
    query_delay: float = QUERY_DELAY
) -> List[Dict]:
    """
    Run each search query against JSearch and accumulate the raw results.

    Args:
        api_key: RapidAPI key. Empty/None disables the pass.
        queries: Free-text queries (defaults to DEFAULT_SEARCH_QUERIES)
        params: Extra query-string parameters (defaults to DEFAULT_SEARCH_PARAMS)
        query_delay: Seconds to wait between queries

    Returns:
        List of raw JSearch job dicts
    """
    if not api_key:
        logger.info("No JSEARCH_API_KEY - skipping JSearch")
        return []

    queries = queries if queries is not None else DEFAULT_SEARCH_QUERIES
    params = params if params is not None else DEFAULT_SEARCH_PARAMS

    headers = {
        'X-RapidAPI-Key': api_key,
        'X-RapidAPI-Host': JSEARCH_HOST,
    }

    all_jobs: List[Dict] = []
    for i, query in enumerate(queries):
        if i > 0:
            time.sleep(query_delay)

        logger.info(f"JSearch: \"{query}\"")
        result = get_json(
            JSEARCH_SEARCH_URL,
            params={'query': query, **params},
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )

        if not result.found:
            logger.warning(
                f"JSearch query failed (status: {result.http_status or result.error or 'unknown'})"
            )
            continue

        data = result.data.get('data') if isinstance(result.data, dict) else None
        if not isinstance(data, list):
            logger.warning("JSearch response had no data array")
            continue

        all_jobs.extend(j for j in data if isinstance(j, dict))
        logger.info(f"  {len(data)} results")

    return all_jobs


def parse_jsearch_job(job_data: Dict) -> JobPosting:
    """
    Normalize one raw JSearch result into a JobPosting.

    Args:
        job_data: Raw job dict from the JSearch `data` array

    Returns:
        JobPosting
    """
    return JobPosting(
        title=job_data.get('job_title') or UNTITLED,
        type=coerce_employment_type(job_data.get('job_employment_type')),
        salary=format_salary_range(job_data.get('job_min_salary'), job_data.get('job_max_salary')),
        posted=time_ago(job_data.get('job_posted_at_datetime_utc')),
        url=job_data.get('job_apply_link') or '',
    )

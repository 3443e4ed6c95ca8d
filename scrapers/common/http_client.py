"""
Shared HTTP helper for ATS and aggregator clients.

Every outbound call in the pipeline goes through get_json(). It never raises:
timeouts, connection errors, non-200 responses and undecodable bodies all come
back as a ProbeResult so callers decide what a miss means.

USAGE:
    from scrapers.common.http_client import get_json

    result = get_json("https://api.lever.co/v0/postings/spotify", params={'mode': 'json'})
    if result.found and isinstance(result.data, list):
        ...
"""

import logging
import requests
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

USER_AGENT = 'threshold-jobs-bot/1.0'
DEFAULT_TIMEOUT = 8


class ProbeStatus(Enum):
    """Outcome of a single HTTP call"""
    OK = "ok"
    NOT_FOUND = "not_found"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class ProbeResult:
    """Tagged result of one request.

    OK carries the decoded body in `data`. NOT_FOUND carries the HTTP status
    (or None when the body could not be decoded). TRANSPORT_ERROR carries a
    short error string.
    """
    status: ProbeStatus
    data: Any = None
    http_status: Optional[int] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is ProbeStatus.OK

    @classmethod
    def not_found(cls, http_status: Optional[int] = None, error: Optional[str] = None) -> 'ProbeResult':
        return cls(ProbeStatus.NOT_FOUND, http_status=http_status, error=error)

    @classmethod
    def transport_error(cls, error: str) -> 'ProbeResult':
        return cls(ProbeStatus.TRANSPORT_ERROR, error=error)


def get_json(
    url: str,
    params: Optional[Dict] = None,
    headers: Optional[Dict] = None,
    timeout: float = DEFAULT_TIMEOUT
) -> ProbeResult:
    """
    GET a URL and decode its JSON body.

    Only HTTP 200 with a decodable body counts as OK. No retries.

    Args:
        url: Endpoint to call
        params: Optional query parameters
        headers: Extra headers merged over the defaults
        timeout: Seconds before the request is abandoned

    Returns:
        ProbeResult
    """
    request_headers = {
        'User-Agent': USER_AGENT,
        'Accept': 'application/json'
    }
    if headers:
        request_headers.update(headers)

    try:
        response = requests.get(url, params=params, headers=request_headers, timeout=timeout)
    except requests.exceptions.Timeout:
        logger.debug(f"Timeout: {url}")
        return ProbeResult.transport_error('Timeout')
    except requests.exceptions.RequestException as e:
        logger.debug(f"Request error for {url}: {e}")
        return ProbeResult.transport_error(str(e)[:100])

    if response.status_code != 200:
        logger.debug(f"HTTP {response.status_code}: {url}")
        return ProbeResult.not_found(http_status=response.status_code)

    try:
        data = response.json()
    except ValueError:
        # requests raises a ValueError subclass for bad JSON
        logger.debug(f"Invalid JSON from {url}")
        return ProbeResult.not_found(http_status=response.status_code, error='Invalid JSON')

    return ProbeResult(ProbeStatus.OK, data=data, http_status=response.status_code)

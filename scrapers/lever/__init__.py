"""
Lever ATS Module

Lever provides a public Postings API that returns JSON without authentication.

Components:
- lever_fetcher.py: Probe Lever sites and fetch/normalize their postings

API Documentation: https://github.com/lever/postings-api
"""

from .lever_fetcher import (
    probe_lever,
    fetch_lever_jobs,
    LEVER_API_URL,
)

__all__ = [
    'probe_lever',
    'fetch_lever_jobs',
    'LEVER_API_URL',
]

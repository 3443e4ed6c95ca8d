"""
Slug Candidate Generator

Guesses the board slug a firm is likely to use on Greenhouse or Lever from
its name and website. Best effort: candidates are probed in order by
pipeline/utilities/discover_ats_slugs.py and most of them will miss.

    >>> generate_slug_candidates({'name': 'Foo & Bar Architects (FBA)'})[:3]
    ['fba', 'foo', 'fooandbar']
"""

import re
from typing import Dict, List, Optional, Set
from urllib.parse import urlparse

# Checked in order; only the first match is stripped.
NAME_SUFFIXES = [
    'inc.', 'inc', 'llc', 'architecture', 'architects',
    'design', 'group', 'firm', 'company',
]

ACRONYM_PATTERN = re.compile(r'\(([A-Z]+(?:\s+[A-Z]+)*)\)')
PARENTHETICAL_PATTERN = re.compile(r'\([^)]*\)')
FIRST_WORD_SPLIT = re.compile(r'[\s&|+,()]+')


def domain_candidate(website: Optional[str]) -> Optional[str]:
    """First hostname label of the firm's website, without a leading www."""
    if not website or not isinstance(website, str):
        return None
    try:
        hostname = urlparse(website.strip()).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    if hostname.startswith('www.'):
        hostname = hostname[4:]
    label = hostname.split('.')[0]
    return label.lower() or None


def strip_suffix(name: str) -> str:
    """Remove the first matching suffix from NAME_SUFFIXES and trim."""
    for suffix in NAME_SUFFIXES:
        if name.endswith(suffix):
            return name[:-len(suffix)].strip()
    return name


def extract_acronym(name: str) -> Optional[str]:
    """'Foo Bar (FBA)' -> 'fba'"""
    match = ACRONYM_PATTERN.search(name)
    if not match:
        return None
    return re.sub(r'\s+', '', match.group(1).lower())


def normalize_slug(text: str) -> str:
    """Turn a lower-cased firm name into a hyphenated slug."""
    slug = re.sub(r'\s+&\s+', '-and-', text)
    slug = re.sub(r'\s*&\s*', '', slug)
    slug = re.sub(r'\s*\+\s*', '-and-', slug)
    slug = re.sub(r'\s*\|\s*', '', slug)
    slug = re.sub(r'[^\w\s-]|_', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


def _sort_key(candidate: str):
    return (len(candidate), candidate.count('-'))


def generate_slug_candidates(firm: Dict) -> List[str]:
    """
    Candidate slugs for a firm, shortest and least hyphenated first.

    Args:
        firm: Firm record with 'name' and optional 'website'

    Returns:
        Ordered, de-duplicated list of candidate slugs
    """
    candidates: Set[str] = set()
    # Names read from JSON may be numbers
    name = str(firm.get('name') or '')

    domain = domain_candidate(firm.get('website'))
    if domain:
        candidates.add(domain)

    clean_name = name.lower().strip()

    base_name = strip_suffix(clean_name)
    if base_name != clean_name:
        candidates.add(base_name)

    acronym = extract_acronym(name)
    if acronym:
        candidates.add(acronym)

    normalized = normalize_slug(clean_name)
    candidates.add(normalized)
    candidates.add(normalized.replace('-', ''))

    first_word = FIRST_WORD_SPLIT.split(clean_name)[0]
    if len(first_word) > 1:
        candidates.add(first_word)

    # Same normalization on the bare name: no parenthetical, no firm-type suffix
    core_name = re.sub(r'\s+', ' ', PARENTHETICAL_PATTERN.sub(' ', clean_name)).strip()
    core_slug = normalize_slug(strip_suffix(core_name))
    candidates.add(core_slug)
    candidates.add(core_slug.replace('-', ''))

    # sorted() is stable; ties keep set iteration order, so break them alphabetically first
    return sorted(sorted(c for c in candidates if c), key=_sort_key)

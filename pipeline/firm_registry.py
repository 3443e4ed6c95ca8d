"""
Firm Registry

Owns the curated firm database for the length of one run: a mapping from firm
id to firm record, loaded from and written back to data/firms-base.json.

Only the run driver mutates records. Batch workers get a single
(firm_id, value) item and hand back a result; the driver applies it through
set_slug() / add_jobs(). No worker ever sees the whole collection.

USAGE:
    registry = FirmRegistry.load(Path('data/firms-base.json'))
    for firm_id, slug in registry.slugs('greenhouse_slug'):
        ...
    registry.save(path)
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from pipeline.job_posting import JobPosting

logger = logging.getLogger(__name__)

GREENHOUSE_SLUG = 'greenhouse_slug'
LEVER_SLUG = 'lever_slug'
SLUG_FIELDS = (GREENHOUSE_SLUG, LEVER_SLUG)

# Fields published to the public job map, in output order
PUBLIC_FIELDS = (
    'id', 'name', 'city', 'state', 'lat', 'lng', 'size',
    'discipline', 'specialties', 'jobs', 'website', 'about',
)


class FirmDataError(Exception):
    """Firm database or output file could not be read, parsed or written."""


class FirmRegistry:
    """Ordered mapping of firm id -> firm record."""

    def __init__(self, records: List[Dict]):
        self._firms: Dict[str, Dict] = {}
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise FirmDataError(f"Firm #{index} is not an object")
            firm_id = self.key_for(record, index)
            if firm_id in self._firms:
                raise FirmDataError(f"Duplicate firm id: {firm_id}")
            self._firms[firm_id] = record

    @staticmethod
    def key_for(record: Dict, index: int) -> str:
        firm_id = record.get('id')
        return str(firm_id) if firm_id is not None else f"#{index}"

    @classmethod
    def load(cls, path: Path) -> 'FirmRegistry':
        """Load firms from a JSON array file."""
        try:
            with open(path, encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise FirmDataError(f"Could not read firm database {path}: {e}") from e

        if not isinstance(data, list):
            raise FirmDataError(f"Firm database {path} must contain a JSON array")

        registry = cls(data)
        logger.info(f"Loaded {len(registry)} firms from {path}")
        return registry

    def save(self, path: Path) -> None:
        """Write every record (including slugs) back to the firm database."""
        write_json(path, self.records(), indent=2)

    def __len__(self) -> int:
        return len(self._firms)

    def __contains__(self, firm_id: str) -> bool:
        return firm_id in self._firms

    def __iter__(self) -> Iterator[Tuple[str, Dict]]:
        return iter(self._firms.items())

    def get(self, firm_id: str) -> Dict:
        return self._firms[firm_id]

    def records(self) -> List[Dict]:
        return list(self._firms.values())

    def slugs(self, field: str) -> List[Tuple[str, str]]:
        """(firm_id, slug) for every firm carrying a value for `field`."""
        return [(firm_id, firm[field]) for firm_id, firm in self._firms.items() if firm.get(field)]

    def set_slug(self, firm_id: str, field: str, slug: str) -> None:
        if field not in SLUG_FIELDS:
            raise ValueError(f"Unknown slug field: {field}")
        self._firms[firm_id][field] = slug

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    def reset_jobs(self) -> None:
        """Clear every firm's job list; each fetch run rebuilds them from scratch."""
        for firm in self._firms.values():
            firm['jobs'] = []

    def jobs_for(self, firm_id: str) -> List[Dict]:
        return self._firms[firm_id].setdefault('jobs', [])

    def add_jobs(self, firm_id: str, jobs: List[JobPosting]) -> None:
        self.jobs_for(firm_id).extend(job.to_dict() for job in jobs)

    def add_job_unless_duplicate(self, firm_id: str, job: JobPosting) -> bool:
        """Append unless a job with the same title is already listed. Returns True if added."""
        existing = self.jobs_for(firm_id)
        if any(j.get('title') == job.title for j in existing):
            return False
        existing.append(job.to_dict())
        return True

    def firms_with_jobs(self) -> int:
        return sum(1 for firm in self._firms.values() if firm.get('jobs'))

    def total_jobs(self) -> int:
        return sum(len(firm.get('jobs') or []) for firm in self._firms.values())

    # -------------------------------------------------------------------------
    # Public output
    # -------------------------------------------------------------------------

    def public_records(self) -> List[Dict]:
        return [to_public_record(firm) for firm in self._firms.values()]


def to_public_record(firm: Dict) -> Dict:
    """
    Project a firm onto its public fields.

    Slug fields and any other internal keys are dropped. Keys missing from the
    record are omitted; `jobs` is always present.
    """
    record = {}
    for field in PUBLIC_FIELDS:
        if field == 'jobs':
            record['jobs'] = list(firm.get('jobs') or [])
        elif field in firm:
            record[field] = firm[field]
    return record


def write_json(path: Path, data, indent: Optional[int] = None) -> int:
    """
    Serialize `data` to `path`.

    Compact separators when indent is None. Returns the number of bytes written.
    """
    if indent is None:
        text = json.dumps(data, ensure_ascii=False, separators=(',', ':'))
    else:
        text = json.dumps(data, ensure_ascii=False, indent=indent)

    encoded = text.encode('utf-8')
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(encoded)
    except OSError as e:
        raise FirmDataError(f"Could not write {path}: {e}") from e

    return len(encoded)

#!/usr/bin/env python3
"""
Load job postings from a JSON file, embed each description and store them.

    python -m jobmatch.seed_jobs jobmatch/seed_data/jobs.json
    python -m jobmatch.seed_jobs postings.json --keep-existing

The file holds a list of objects with at least `title`, `company` and
`description`. Postings with an empty description are skipped. Replacing
jobs also removes applications to them, which needs `--force`.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from jobmatch.app.database import init_db, session_scope
from jobmatch.app.models.applied_job import AppliedJob
from jobmatch.app.models.job import Job
from jobmatch.app.services.embeddings import EmbeddingGenerator
from jobmatch.app.services.job_ingestion import ingest_jobs
from jobmatch.app.services.vector_store import VectorStore
from jobmatch.app.utils.error_handlers import AppError, InvalidStateError

DEFAULT_SEED_FILE = Path(__file__).parent / "seed_data" / "jobs.json"

# Older exports use these key names.
_KEY_ALIASES = {
    "jobRoleName": "title",
    "companyName": "company",
    "type": "employment_type",
    "experience": "experience_level",
}


def normalize_posting(raw: dict) -> dict:
    out = dict(raw)
    for old, new in _KEY_ALIASES.items():
        if old in out and new not in out:
            out[new] = out.pop(old)
    return out


def load_postings(path: Path) -> list[dict]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of postings")
    return [normalize_posting(item) for item in data if isinstance(item, dict)]


def seed(
    path: Path,
    *,
    keep_existing: bool = False,
    force: bool = False,
    generator: EmbeddingGenerator | None = None,
) -> tuple[int, int]:
    """
    Replace (or with `keep_existing`, extend) the job table from `path`.

    Clearing jobs also deletes every application to them, so it is refused
    while applications exist unless `force` is set.
    """
    init_db()
    postings = load_postings(path)
    print(f"Loaded {len(postings)} postings from {path}")

    with session_scope() as db:
        if not keep_existing:
            applications = db.query(AppliedJob).count()
            if applications and not force:
                raise InvalidStateError(
                    f"{applications} job applications would be deleted with the existing jobs; "
                    "rerun with --force or --keep-existing"
                )
            existing = db.query(Job).all()
            for job in existing:
                db.delete(job)
            db.commit()
            print(f"✓ Cleared {len(existing)} existing jobs")
            if applications:
                print(f"⚠ Deleted {applications} job applications along with them")

        saved, skipped = ingest_jobs(VectorStore(db), generator or EmbeddingGenerator(), postings)

    print(f"✓ Inserted {saved} jobs with embeddings ({skipped} skipped)")
    return saved, skipped


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("path", nargs="?", default=str(DEFAULT_SEED_FILE), help="JSON file with job postings")
    parser.add_argument("--keep-existing", action="store_true", help="append instead of replacing all jobs")
    parser.add_argument("--force", action="store_true", help="clear jobs even when users have applied to them")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        seed(Path(args.path), keep_existing=args.keep_existing, force=args.force)
    except (OSError, ValueError, AppError) as e:
        print(f"✗ Seeding failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

import json
import logging
from typing import Any

from ..models.job import Job
from ..utils.error_handlers import ValidationError, get_error_message
from ..utils.validation import clean_string_list, validate_string_field
from .embeddings import EmbeddingGenerator
from .vector_store import VectorStore

logger = logging.getLogger(__name__)


def build_job(payload: dict[str, Any]) -> Job:
    """Validate a posting payload and build an (unsaved) Job row."""
    description = validate_string_field(payload.get("description"), "Description", max_length=20000, required=False)
    if not description:
        raise ValidationError(get_error_message("invalid_job_data"))

    return Job(
        title=validate_string_field(payload.get("title"), "Title", max_length=150),
        company=validate_string_field(payload.get("company"), "Company", max_length=150),
        location=validate_string_field(payload.get("location"), "Location", max_length=100, required=False),
        employment_type=validate_string_field(
            payload.get("employment_type"), "Employment type", max_length=40, required=False
        ),
        experience_level=validate_string_field(
            payload.get("experience_level"), "Experience level", max_length=40, required=False
        ),
        salary=validate_string_field(payload.get("salary"), "Salary", max_length=60, required=False),
        skills_json=json.dumps(clean_string_list(payload.get("skills")), ensure_ascii=False),
        description=description,
        explanation=validate_string_field(payload.get("explanation"), "Explanation", max_length=5000, required=False),
    )


def ingest_job(store: VectorStore, generator: EmbeddingGenerator, payload: dict[str, Any]) -> Job:
    """Embed a posting from its description alone and store it."""
    job = build_job(payload)
    vector = generator.embed(job.description)
    job = store.save_job(job, vector=vector)
    logger.info("Ingested job id=%s title=%r dim=%s", job.id, job.title, job.dim)
    return job


def ingest_jobs(store: VectorStore, generator: EmbeddingGenerator, payloads: list[dict[str, Any]]) -> tuple[int, int]:
    """Bulk variant used by the seeder: postings without a description are skipped. Returns (saved, skipped)."""
    saved = 0
    skipped = 0
    for payload in payloads:
        if not str((payload or {}).get("description") or "").strip():
            logger.warning("Skipping job %r: empty description", (payload or {}).get("title"))
            skipped += 1
            continue
        ingest_job(store, generator, payload)
        saved += 1
    return saved, skipped

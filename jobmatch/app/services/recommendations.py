import json
import logging
from datetime import datetime, timezone
from typing import Any

from ..models.job import Job
from ..schemas.match import RecommendationMetadata
from ..utils.error_handlers import InvalidStateError, NotFoundError, get_error_message
from .similarity import Candidate, clamp_limit, rank
from .vector_store import VectorStore, vector_from_json


logger = logging.getLogger(__name__)


def job_skills(job: Job) -> list[str]:
    raw = getattr(job, "skills_json", None)
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(parsed, list):
        return []
    return [str(x).strip() for x in parsed if str(x or "").strip()]


def candidate_from_job(job: Job) -> Candidate:
    return Candidate(
        job_id=int(job.id),
        vector=vector_from_json(job.embedding_json),
        skills=job_skills(job),
        metadata={
            "job_title": job.title or "",
            "company": job.company or "",
            "location": job.location,
            "employment_type": job.employment_type,
            "experience_level": job.experience_level,
            "salary": job.salary,
            "description": job.description or "",
            "explanation": job.explanation,
        },
    )


def recommend(store: VectorStore, *, subject_id: int, limit: Any = None) -> dict:
    """
    Top postings for a user's latest resume embedding.

    Raises NotFoundError when the user has no resume embedding or no posting
    has been embedded yet, and InvalidStateError when the stored resume
    vector cannot be decoded.
    """
    requested = clamp_limit(limit)

    resume = store.find_latest_embedding(subject_id, field="resume")
    if resume is None:
        raise NotFoundError(get_error_message("no_resume_embedding"))

    query_vector = vector_from_json(resume.vector_json)
    if not query_vector:
        logger.error("Resume embedding id=%s for subject=%s is empty or corrupted", resume.id, subject_id)
        raise InvalidStateError(get_error_message("corrupted_embedding"))

    jobs = store.find_candidates_with_embedding()
    if not jobs:
        raise NotFoundError(get_error_message("no_candidate_jobs"))

    outcome = rank(
        query_vector=query_vector,
        candidates=[candidate_from_job(j) for j in jobs],
        query_text=resume.source_text or "",
        limit=requested,
    )
    logger.info(
        "Recommendations subject=%s considered=%s skipped=%s returned=%s",
        subject_id,
        outcome.considered,
        outcome.skipped,
        len(outcome.results),
    )

    metadata = RecommendationMetadata(
        subject_id=int(subject_id),
        resume_embedding_id=int(resume.id),
        total_candidates_considered=outcome.considered,
        skipped_candidates=outcome.skipped,
        embedding_dimension=len(query_vector),
        requested_limit=requested,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return {
        "success": True,
        "count": len(outcome.results),
        "recommendations": [r.model_dump() for r in outcome.results],
        "metadata": metadata.model_dump(),
    }

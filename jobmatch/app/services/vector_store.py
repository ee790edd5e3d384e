import json
import logging
import math
from typing import Any

from sqlalchemy.orm import Session

from ..models.embedding import Embedding
from ..models.job import Job


logger = logging.getLogger(__name__)

CANDIDATE_FILTERS = ("company", "location", "employment_type", "experience_level")


def vector_from_json(raw: str | None) -> list[float]:
    """Decode a stored vector. Anything unusable (bad JSON, non-numbers, NaN) decodes to []."""
    try:
        data: Any = json.loads(raw or "[]")
    except (TypeError, ValueError):
        return []
    if not isinstance(data, list):
        return []
    try:
        out = [float(x) for x in data]
    except (TypeError, ValueError):
        return []
    if not all(math.isfinite(x) for x in out):
        return []
    return out


def vector_to_json(vector: list[float]) -> str:
    return json.dumps([float(x) for x in vector])


class VectorStore:
    """Thin persistence wrapper around the embeddings and jobs tables."""

    def __init__(self, db: Session):
        self.db = db

    def find_latest_embedding(self, subject_id: int, field: str = "resume") -> Embedding | None:
        return (
            self.db.query(Embedding)
            .filter(Embedding.subject_id == int(subject_id), Embedding.field == field)
            .order_by(Embedding.created_at.desc(), Embedding.id.desc())
            .first()
        )

    def find_candidates_with_embedding(self, **filters: str | None) -> list[Job]:
        q = self.db.query(Job).filter(Job.embedding_json.isnot(None), Job.embedding_json != "", Job.embedding_json != "[]")
        for name, value in filters.items():
            if name not in CANDIDATE_FILTERS:
                raise ValueError(f"Unsupported candidate filter: {name}")
            if value:
                q = q.filter(getattr(Job, name) == value)
        return q.order_by(Job.id.asc()).all()

    def save_embedding(
        self,
        *,
        subject_id: int,
        field: str,
        source_text: str,
        vector: list[float],
        original_filename: str | None = None,
        model: str | None = None,
    ) -> Embedding:
        row = Embedding(
            subject_id=int(subject_id),
            field=field,
            original_filename=original_filename,
            model=model,
            dim=len(vector),
            source_text=source_text,
            vector_json=vector_to_json(vector),
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("Saved %s embedding id=%s subject=%s dim=%s", field, row.id, subject_id, row.dim)
        return row

    def list_embeddings(
        self,
        subject_id: int,
        *,
        field: str | None = None,
        original_filename: str | None = None,
    ) -> list[Embedding]:
        q = self.db.query(Embedding).filter(Embedding.subject_id == int(subject_id))
        if field:
            q = q.filter(Embedding.field == field)
        if original_filename:
            q = q.filter(Embedding.original_filename == original_filename)
        return q.order_by(Embedding.created_at.desc(), Embedding.id.desc()).all()

    def save_job(self, job: Job, *, vector: list[float]) -> Job:
        job.embedding_json = vector_to_json(vector)
        job.dim = len(vector)
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return job

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.applied_job import AppliedJob
from ..models.job import Job
from ..services.embeddings import EmbeddingGenerator, get_embedding_generator
from ..services.job_ingestion import ingest_job
from ..services.recommendations import job_skills, recommend
from ..services.vector_store import VectorStore
from ..utils.auth import current_user_id, get_current_user
from ..utils.error_handlers import get_error_message, handle_database_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _job_to_public(job: Job) -> dict:
    return {
        "id": job.id,
        "title": job.title,
        "company": job.company,
        "location": job.location,
        "employment_type": job.employment_type,
        "experience_level": job.experience_level,
        "salary": job.salary,
        "skills": job_skills(job),
        "description": job.description,
        "explanation": job.explanation,
        "has_embedding": bool(job.dim),
        "created_at": job.created_at.isoformat() if isinstance(job.created_at, datetime) else job.created_at,
    }


def _applied_to_public(row: AppliedJob) -> dict:
    return {
        "id": row.id,
        "job_id": row.job_id,
        "company": row.company,
        "job_role": row.job_role,
        "match_percentage": float(row.match_percentage or 0.0),
        "status": row.status,
        "applied_at": row.applied_at.isoformat() if isinstance(row.applied_at, datetime) else row.applied_at,
    }


class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=150)
    company: str = Field(min_length=1, max_length=150)
    description: str | None = None
    location: str | None = None
    employment_type: str | None = None
    experience_level: str | None = None
    salary: str | None = None
    skills: list[str] = Field(default_factory=list)
    explanation: str | None = None


class ApplyRequest(BaseModel):
    job_id: int = Field(ge=1)
    match_percentage: float = Field(ge=0, le=100)


@router.get("")
def list_jobs(db: Session = Depends(get_db)):
    jobs = db.query(Job).order_by(Job.created_at.desc(), Job.id.desc()).all()
    return {"success": True, "count": len(jobs), "jobs": [_job_to_public(j) for j in jobs]}


@router.post("", status_code=201)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
    embedder: EmbeddingGenerator = Depends(get_embedding_generator),
):
    job = ingest_job(VectorStore(db), embedder, payload.model_dump())
    return {"success": True, "job": _job_to_public(job)}


@router.api_route("/recommendations", methods=["GET", "POST"])
def get_job_recommendations(
    limit: str | None = Query(default=None, description="Max results (default 10, capped at 50)"),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    # `limit` stays a raw string so junk values fall back to the default instead of 422.
    return recommend(VectorStore(db), subject_id=current_user_id(user), limit=limit)


@router.post("/apply", status_code=201)
def apply_to_job(
    payload: ApplyRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    user_id = current_user_id(user)

    job = db.query(Job).filter(Job.id == payload.job_id).first()
    if not job:
        raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))

    existing = (
        db.query(AppliedJob)
        .filter(AppliedJob.user_id == user_id, AppliedJob.job_id == job.id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail=get_error_message("already_applied"))

    row = AppliedJob(
        user_id=user_id,
        job_id=job.id,
        company=job.company,
        job_role=job.title,
        match_percentage=float(payload.match_percentage),
        status="Applied",
    )
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except IntegrityError:
        # Concurrent duplicate apply lost the race on uq_applied_jobs_user_job.
        db.rollback()
        raise HTTPException(status_code=409, detail=get_error_message("already_applied")) from None
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "applying to job") from e

    logger.info("User %s applied to job %s", user_id, job.id)
    return {"success": True, "message": "Successfully applied to job", "application": _applied_to_public(row)}


@router.get("/applied")
def get_applied_jobs(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    rows = (
        db.query(AppliedJob)
        .filter(AppliedJob.user_id == current_user_id(user))
        .order_by(AppliedJob.applied_at.desc(), AppliedJob.id.desc())
        .all()
    )
    return {"success": True, "count": len(rows), "applied_jobs": [_applied_to_public(r) for r in rows]}

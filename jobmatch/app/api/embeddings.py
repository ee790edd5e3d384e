import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.embedding import Embedding
from ..services.ai_client import TextGenerator, get_text_generator
from ..services.document_text import extract_text
from ..services.embeddings import EmbeddingGenerator, get_embedding_generator
from ..services.profile_extraction import extract_profile
from ..services.uploads import stored_upload
from ..services.vector_store import VectorStore
from ..utils.auth import current_user_id, get_current_user
from ..utils.error_handlers import get_error_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/embeddings", tags=["Embeddings"])


def _public_embedding(row: Embedding) -> dict:
    return {
        "id": row.id,
        "field": row.field,
        "original_file": row.original_filename,
        "model": row.model,
        "dimensions": int(row.dim or 0),
        "content_length": len(row.source_text or ""),
        "created_at": row.created_at.isoformat() if isinstance(row.created_at, datetime) else row.created_at,
    }


@router.post("/upload", status_code=201)
async def upload_resume_embedding(
    file: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
    text_generator: TextGenerator | None = Depends(get_text_generator),
    embedder: EmbeddingGenerator = Depends(get_embedding_generator),
):
    """
    Store a new resume embedding for the caller.

    The raw extracted text is embedded (not the parsed profile) so skill
    matching later runs against the same text the vector came from.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail=get_error_message("no_file"))

    subject_id = current_user_id(user)

    async with stored_upload(file) as upload:
        text = await run_in_threadpool(extract_text, source=upload.path, original_filename=upload.original_filename)
        original_filename = upload.original_filename

    if not text.strip():
        raise HTTPException(status_code=400, detail=get_error_message("empty_document"))

    parsed = await extract_profile(resume_text=text, generator=text_generator)

    vector = await run_in_threadpool(embedder.embed, text)
    row = VectorStore(db).save_embedding(
        subject_id=subject_id,
        field="resume",
        source_text=text,
        vector=vector,
        original_filename=original_filename,
        model=embedder.model_name,
    )

    return {
        "success": True,
        "message": "Resume parsed and embedded",
        "embedding_id": row.id,
        "parsed": parsed.profile.model_dump(),
        "source": parsed.source,
        "warnings": parsed.warnings,
        "embedding_count": 1,
        "embedding_dimensions": len(vector),
        "content_length": len(text),
    }


@router.get("")
def list_embeddings(
    field: str | None = Query(default=None),
    original_file: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    rows = VectorStore(db).list_embeddings(
        current_user_id(user),
        field=(field or "").strip() or None,
        original_filename=(original_file or "").strip() or None,
    )
    return {"success": True, "count": len(rows), "embeddings": [_public_embedding(r) for r in rows]}

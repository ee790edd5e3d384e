import json
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from ..schemas.profile import ParsedProfile, ProfileResponse, SaveProfileRequest
from ..services.ai_client import TextGenerator, get_text_generator
from ..services.document_text import extract_text
from ..services.profile_extraction import extract_profile
from ..services.uploads import stored_upload
from ..utils.auth import current_user_id, get_current_user
from ..utils.error_handlers import get_error_message, handle_database_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resumes", tags=["Resumes"])


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail=get_error_message("user_not_found"))
    return user


def _load_profile(user: User) -> dict:
    if not user.parsed_profile_json:
        return {}
    try:
        data = json.loads(user.parsed_profile_json)
    except ValueError:
        logger.warning("Stored profile for user=%s is not valid JSON", user.id)
        return {}
    return data if isinstance(data, dict) else {}


@router.post("/parse", response_model=ProfileResponse)
async def parse_resume(
    resume: UploadFile | None = File(None),
    user=Depends(get_current_user),
    generator: TextGenerator | None = Depends(get_text_generator),
):
    """
    Upload a resume and get back a structured profile.

    Always answers 200 once text has been extracted. When the AI path is not
    usable the profile comes from a regex fallback and `source` is "fallback".
    Nothing is persisted.
    """
    if resume is None or not resume.filename:
        raise HTTPException(status_code=400, detail=get_error_message("no_file"))

    async with stored_upload(resume) as upload:
        text = await run_in_threadpool(extract_text, source=upload.path, original_filename=upload.original_filename)

    result = await extract_profile(resume_text=text, generator=generator)
    logger.info(
        "Parsed resume for user=%s source=%s chars=%s",
        current_user_id(user),
        result.source,
        len(text),
    )

    notice = get_error_message("ai_fallback") if result.source == "fallback" else None
    if not text:
        notice = get_error_message("empty_document")

    return ProfileResponse(
        profile=result.profile,
        source=result.source,
        notice=notice,
        warnings=result.warnings,
    )


@router.post("/save")
def save_parsed_profile(
    payload: SaveProfileRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    if not isinstance(payload.profile, dict):
        raise HTTPException(status_code=400, detail=get_error_message("invalid_profile"))

    try:
        profile = ParsedProfile.model_validate(payload.profile)
    except PydanticValidationError:
        raise HTTPException(status_code=400, detail=get_error_message("invalid_profile")) from None

    row = _get_user(db, current_user_id(user))
    row.parsed_profile_json = json.dumps(profile.model_dump(), ensure_ascii=False)
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "saving parsed profile") from e

    return {"success": True, "profile": _load_profile(row)}


@router.get("/profile")
def get_parsed_profile(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    row = _get_user(db, current_user_id(user))
    return {"success": True, "profile": _load_profile(row)}

"""
Error types raised by the services and the user-facing messages behind them.

Every `AppError` subclass carries its own HTTP status; the handlers in
`main.py` turn them into the `{"success": false, "error": ...}` envelope.
"""
import logging

from fastapi import HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    default_message = "Something went wrong on our end. Please try again later."

    def __init__(self, message: str | None = None, status_code: int | None = None, details: dict | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Please check your input and try again."


class NotFoundError(AppError):
    """A precondition for the request is missing (no resume, no postings, ...)."""
    status_code = 404
    default_message = "The requested resource was not found."


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized access"


class InvalidStateError(AppError):
    """Persisted data exists but is unusable, e.g. a corrupted vector."""
    status_code = 400
    default_message = "Stored data is unusable."


class ExtractionError(AppError):
    """The uploaded document could not be read. Not retried; the user must re-upload."""
    status_code = 400
    default_message = "File appears to be corrupted"


class EmbeddingError(AppError):
    """Embedding capability unavailable, or asked to embed empty text."""
    default_message = "Embedding service unavailable"


ERROR_MESSAGES = {
    # Authentication
    "invalid_credentials": "Invalid email or password. Please try again.",
    "email_exists": "An account with this email already exists. Please login instead.",
    "weak_password": "Password must be at least 6 characters long.",
    "unauthorized": "Please log in to get personalized recommendations.",

    # File uploads
    "no_file": "Please upload a resume file.",
    "file_too_large": "File is too large. Maximum size is 5MB.",
    "file_corrupted": "File appears to be corrupted. Please try uploading again.",
    "empty_document": "No readable text was found in the uploaded file.",

    # AI / embeddings
    "ai_fallback": "AI parsing unavailable; used basic extraction instead.",
    "embedding_unavailable": "The embedding service is unavailable. Please try again later.",

    # Matching
    "no_resume_embedding": "Please upload your resume first to get job recommendations.",
    "no_candidate_jobs": "No jobs available for matching at this time.",
    "corrupted_embedding": "Resume embedding is empty or corrupted. Please contact support.",

    # Jobs
    "job_not_found": "Job posting not found or has been removed.",
    "already_applied": "You have already applied to this job.",
    "invalid_job_data": "Job information is incomplete. A description is required.",

    # Profile
    "invalid_profile": "Invalid profile payload.",
    "user_not_found": "User not found.",

    # General
    "not_found": "The requested resource was not found.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


# First matching fragment of the driver message decides the response.
_DB_ERROR_RULES = (
    (("duplicate", "unique"), 409, "This record already exists."),
    (("foreign key",), 400, "The referenced record no longer exists."),
    (("connection", "operational", "locked"), 503, ERROR_MESSAGES["database_error"]),
)


def handle_database_error(error: Exception, operation: str = "") -> HTTPException:
    """Log a failed write and translate it into an HTTPException for the router to raise."""
    logger.error("Database error while %s: %s", operation or "writing", error)
    text = str(error).lower()
    for fragments, status_code, message in _DB_ERROR_RULES:
        if any(f in text for f in fragments):
            return HTTPException(status_code=status_code, detail=message)
    return HTTPException(status_code=500, detail=ERROR_MESSAGES["server_error"])


def create_error_response(status_code: int, message: str, details: dict | None = None) -> JSONResponse:
    content = {"success": False, "error": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)

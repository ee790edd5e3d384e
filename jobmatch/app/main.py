import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from .api import auth as auth_api
from .api import embeddings as embeddings_api
from .api import jobs as jobs_api
from .api import resume as resume_api
from .config import FRONTEND_ORIGINS, IS_DEVELOPMENT
from .database import engine, init_db
from .utils.error_handlers import AppError, create_error_response, get_error_message

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Job Match Service")

app.include_router(auth_api.router)
app.include_router(jobs_api.router)
app.include_router(resume_api.router)
app.include_router(embeddings_api.router)

logger = logging.getLogger(__name__)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTPException with user-friendly messages."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code,
        },
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return create_error_response(exc.status_code, exc.message, exc.details or None)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400, not FastAPI's default 422."""
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return create_error_response(400, get_error_message("validation_error"), {"errors": errors})


@app.exception_handler(OperationalError)
async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
    """Handle database operational errors."""
    logger.exception("Database OperationalError: %s", exc)
    details = None
    if IS_DEVELOPMENT:
        root = getattr(exc, "orig", None)
        details = {"reason": str(root) if root else str(exc)}
    return create_error_response(503, get_error_message("database_error"), details)


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    """Handle general database errors."""
    logger.exception("Database SQLAlchemyError: %s", exc)
    return create_error_response(500, get_error_message("database_error"))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors globally."""
    logger.exception("Unhandled exception: %s", exc)
    details = {"type": type(exc).__name__, "reason": str(exc)} if IS_DEVELOPMENT else None
    return create_error_response(500, get_error_message("server_error"), details)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    db_ok = True
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Health check could not reach the database: %s", e)
        db_ok = False

    return {
        "status": "ok" if db_ok else "degraded",
        "service": "Job Match Service",
        "database": "ok" if db_ok else "unavailable",
        "db_init_error": getattr(app.state, "db_init_error", None),
    }


_default_origins = ["http://localhost:5173", "http://127.0.0.1:5173"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *FRONTEND_ORIGINS],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    try:
        init_db()
        app.state.db_init_error = None
    except SQLAlchemyError as e:
        logger.exception("Database initialisation failed")
        app.state.db_init_error = str(e)

"""Repo-root Uvicorn entrypoint.

Allows running the service from the repo root:

    uvicorn app.main:app --reload

This simply re-exports the FastAPI app defined in `jobmatch/app/main.py`.
"""

from jobmatch.app.main import app  # noqa: F401

"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from ipr_review.config import get_settings
from ipr_review.db.session import SessionLocal
from ipr_review.routers import applications, reviews, status_updates, suggestions
from ipr_review.workflow.errors import WorkflowError

logger = logging.getLogger(__name__)
settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())


def _check_database() -> None:
    """Prime the DB connection at process start."""

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database warm-up failed; continuing without startup check.")


@asynccontextmanager
async def lifespan(_: FastAPI):
    _check_database()
    yield


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(_: Request, exc: WorkflowError) -> JSONResponse:
    """Report rejected workflow operations with their HTTP status."""

    logger.info(
        "workflow.rejected error=%s rule=%s status=%s",
        type(exc).__name__,
        exc.rule,
        exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__, "rule": exc.rule},
    )


app.include_router(applications.router, tags=["applications"])
app.include_router(suggestions.router, tags=["suggestions"])
app.include_router(reviews.router, tags=["reviews"])
app.include_router(status_updates.router, tags=["status-updates"])


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}

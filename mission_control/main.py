# mission_control/main.py
"""FastAPI application for the Mission Control task board."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mission_control import service
from mission_control.config import ALLOWED_ORIGINS, LOG_LEVEL
from mission_control.database import create_db_and_tables
from mission_control.errors import PersistenceFailure, TaskNotFound, ValidationFailed
from mission_control.routes.tasks import get_store
from mission_control.routes.tasks import router as tasks_router
from mission_control.store import TaskStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and create (and seed) the database on startup."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    create_db_and_tables()
    logger.info("Mission Control API ready")
    yield


app = FastAPI(title="Mission Control API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
)

app.include_router(tasks_router)


@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": exc.details},
    )


@app.exception_handler(RequestValidationError)
async def malformed_body_handler(request: Request, exc: RequestValidationError):
    details = [str(error.get("msg", "Invalid request")) for error in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": details},
    )


@app.exception_handler(TaskNotFound)
async def task_not_found_handler(request: Request, exc: TaskNotFound):
    return JSONResponse(status_code=404, content={"error": "Task not found"})


@app.exception_handler(PersistenceFailure)
async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.get("/api/health")
def health_check(store: TaskStore = Depends(get_store)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "taskCount": service.count_tasks(store),
    }

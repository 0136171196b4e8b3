"""FastAPI application entrypoint.

This module builds the Project Matcher API: it wires the feature routers,
the error handlers, the request logging middleware and CORS. Routers
accept requests, delegate to services and return schema objects.

Feature routers:
- /users, /users/me/bookmarks
- /profiles/me (+ work-experiences, portfolio-projects)
- /skills, /interests
- /projects (+ members, invite, milestones, tasks)
- /applications
- /recommendations
"""

import json
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .config import settings
from .database import create_db_and_tables
from .errors import setup_exception_handlers
from .routers import (
    applications,
    bookmarks,
    interests,
    milestones,
    portfolio_projects,
    profiles,
    projects,
    recommendations,
    skills,
    tasks,
    users,
    work_experiences,
)

app = FastAPI(
    title="Project Matcher API",
    description="Backend for matching students with collaborative projects.",
    version="0.1.0",
)
logger = logging.getLogger("project_matcher.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Wide-open CORS for the web client in dev; disable with ALLOW_DEV_CORS=false.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

setup_exception_handlers(app)

for module in (
    users,
    bookmarks,
    profiles,
    work_experiences,
    portfolio_projects,
    skills,
    interests,
    projects,
    milestones,
    tasks,
    applications,
    recommendations,
):
    app.include_router(module.router)

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        json.dumps(
            {
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "client": request.client.host if request.client else "unknown",
            },
            ensure_ascii=True,
        ),
    )
    return response


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}

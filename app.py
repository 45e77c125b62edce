# app.py
"""
Stream Classifier API - FastAPI application for A/L subject stream classification.

Given three A/L subject ids, the API returns the academic stream the
combination belongs to (Physical Science, Biological Science, Commerce,
Engineering Technology, Bio Systems Technology, Arts, or Common).

Run with: uvicorn app:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import base64
import logging
import os
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from streamint.classify.classifier import ClassificationResult
from streamint.classify.service import StreamService
from streamint.errors import ReferenceDataUnavailable, StreamNotFound
from streamint.reference.curriculum import reference_registry, reference_subject_store
from streamint.reference.registry import InMemoryStreamStore

# Load environment variables
load_dotenv()

# =============================================================================
# CONFIGURATION
# =============================================================================

API_VERSION = "1.0.0"

# Empty -> built-in reference curriculum held in memory
DATABASE_URL = os.getenv("STREAMINT_DATABASE_URL", "").strip()
STREAM_CACHE_SECONDS = float(os.getenv("STREAMINT_STREAM_CACHE_SECONDS", "0"))
BATCH_WORKERS = int(os.getenv("STREAMINT_BATCH_WORKERS", "4"))
LOG_LEVEL = os.getenv("STREAMINT_LOG_LEVEL", "INFO").upper()

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# =============================================================================
# BASIC AUTH CONFIGURATION
# =============================================================================

AUTH_REALM = 'Basic realm="Stream Classifier API"'

# Load authorized users from env
AUTH_USERS_STR = os.getenv("STREAMINT_AUTH_USERS", "")
AUTH_PASSWORD = os.getenv("STREAMINT_AUTH_PASSWORD", "")

# Parse comma-separated usernames
AUTHORIZED_USERS: Dict[str, str] = {}
if AUTH_USERS_STR and AUTH_PASSWORD:
    for username in AUTH_USERS_STR.split(","):
        username = username.strip()
        if username:
            AUTHORIZED_USERS[username] = AUTH_PASSWORD

# Track if auth is enabled
AUTH_ENABLED = bool(AUTHORIZED_USERS)


# =============================================================================
# SERVICE WIRING
# =============================================================================

def build_service() -> StreamService:
    """Stores from configuration: SQL when a database URL is set, reference curriculum otherwise."""
    if DATABASE_URL:
        from streamint.store.sql import SqlStreamStore, SqlSubjectStore, create_db_and_tables, make_engine

        engine = make_engine(DATABASE_URL)
        create_db_and_tables(engine)
        return StreamService(
            subjects=SqlSubjectStore(engine),
            streams=SqlStreamStore(engine, cache_seconds=STREAM_CACHE_SECONDS),
            batch_workers=BATCH_WORKERS,
        )

    return StreamService(
        subjects=reference_subject_store(),
        streams=InMemoryStreamStore(reference_registry()),
        batch_workers=BATCH_WORKERS,
    )


_service: Optional[StreamService] = None


def get_service() -> StreamService:
    global _service
    if _service is None:
        _service = build_service()
        logger.info("Stream service ready (store: %s)", "sql" if DATABASE_URL else "reference")
    return _service


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class ClassifyRequest(BaseModel):
    """Body of POST /streams/classify."""
    subjectIds: Optional[List[Any]] = None


class BatchClassifyRequest(BaseModel):
    combinations: Optional[List[Any]] = None


class StreamSummary(BaseModel):
    id: int
    name: str
    description: Optional[str] = None


class SubjectModel(BaseModel):
    id: int
    code: str
    name: str
    level: str
    active: bool


class StreamDetail(BaseModel):
    id: int
    name: str
    priority: int
    active: bool
    description: Optional[str] = None
    rule: Dict[str, Any]


# =============================================================================
# FASTAPI APP
# =============================================================================

app = FastAPI(
    title="Stream Classifier API",
    description="""
    Classifies a three-subject A/L combination into its academic stream.

    ## Rules

    Streams are evaluated in a fixed priority order; the first stream whose
    rule accepts the combination wins:

    1. Physical Science
    2. Biological Science
    3. Engineering Technology
    4. Bio Systems Technology
    5. Commerce
    6. Arts (language exceptions, basket rules)
    7. Common (fallback for valid combinations matching nothing else)

    Invalid requests (wrong count, duplicates, unknown or non-A/L subjects)
    come back with `valid: false` and a list of `errors`.
    """,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def result_payload(result: ClassificationResult, subject_ids: List[Any]) -> Dict[str, Any]:
    data = result.to_dict()
    data["subjectIds"] = subject_ids
    return data


def parse_path_id(value: str) -> Any:
    """Path segments become ints where possible; anything else is left for the validator to reject."""
    try:
        return int(value)
    except ValueError:
        return value


def unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        headers={"WWW-Authenticate": AUTH_REALM},
        content={"detail": detail},
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(ReferenceDataUnavailable)
async def reference_data_unavailable(request: Request, exc: ReferenceDataUnavailable):
    logger.error("Reference data unavailable for %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": "Reference data unavailable, retry later"},
    )


@app.exception_handler(StreamNotFound)
async def stream_not_found(request: Request, exc: StreamNotFound):
    return JSONResponse(
        status_code=404,
        content={"success": False, "error": "Stream not found"},
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@app.middleware("http")
async def auth_middleware(request, call_next):
    """
    Global middleware to enforce Basic Auth on all requests.
    Skips auth for OPTIONS requests (CORS preflight).
    """
    if not AUTH_ENABLED or request.method == "OPTIONS":
        return await call_next(request)

    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Basic "):
        return unauthorized("Authentication required")

    try:
        encoded_credentials = auth_header.split(" ", 1)[1]
        decoded = base64.b64decode(encoded_credentials).decode("utf-8")
        username, password = decoded.split(":", 1)
    except (ValueError, UnicodeDecodeError):
        return unauthorized("Invalid authentication format")

    stored_password = AUTHORIZED_USERS.get(username)
    if stored_password is None or not secrets.compare_digest(password, stored_password):
        return unauthorized("Invalid credentials")

    request.state.username = username
    return await call_next(request)


@app.get("/")
async def root(request: Request):
    """Root endpoint with API info."""
    return {
        "name": "Stream Classifier API",
        "version": API_VERSION,
        "authenticated_user": getattr(request.state, "username", "anonymous"),
        "auth_enabled": AUTH_ENABLED,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health(request: Request, service: StreamService = Depends(get_service)):
    """Health check endpoint. Reports degraded when the stream store cannot be read."""
    status = "ok"
    streams: Optional[int] = None
    try:
        streams = len(service.list_streams())
    except ReferenceDataUnavailable:
        status = "degraded"

    return {
        "status": status,
        "version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "authenticated_user": getattr(request.state, "username", "anonymous"),
        "auth_enabled": AUTH_ENABLED,
        "store": "sql" if DATABASE_URL else "reference",
        "active_streams": streams,
    }


@app.get("/streams")
def list_streams(service: StreamService = Depends(get_service)):
    """All active streams (names only, no rule payload)."""
    return {
        "success": True,
        "data": [StreamSummary(**s) for s in service.list_streams()],
    }


@app.post("/streams/classify")
def classify(body: ClassifyRequest, service: StreamService = Depends(get_service)):
    """Classify a single three-subject combination."""
    if body.subjectIds is None:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "subjectIds array is required",
                "example": {"subjectIds": [6, 1, 2]},
            },
        )

    result = service.classify(body.subjectIds)
    if not result.valid:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Invalid subject combination",
                "details": result.errors,
                "subjectIds": body.subjectIds,
            },
        )

    return {"success": True, "data": result_payload(result, body.subjectIds)}


@app.post("/streams/classify/batch")
def classify_batch(body: BatchClassifyRequest, service: StreamService = Depends(get_service)):
    """Classify many combinations; each item succeeds or fails on its own."""
    if body.combinations is None:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "combinations array is required"},
        )

    results = service.classify_batch(body.combinations)

    items = []
    for index, (combination, result) in enumerate(zip(body.combinations, results)):
        items.append({
            "index": index,
            "success": result.valid,
            "data": result_payload(result, combination) if result.valid else None,
            "error": None if result.valid else ", ".join(result.errors),
        })

    successful = sum(1 for r in results if r.valid)
    logger.info("Batch: %d/%d combinations classified", successful, len(results))

    return {
        "success": True,
        "data": {
            "totalCombinations": len(results),
            "successfulClassifications": successful,
            "results": items,
        },
    }


@app.get("/streams/validate/{subject_id1}/{subject_id2}/{subject_id3}")
def quick_classify(
    subject_id1: str,
    subject_id2: str,
    subject_id3: str,
    service: StreamService = Depends(get_service),
):
    """Quick URL-based classification; always returns the full result shape."""
    subject_ids = [parse_path_id(v) for v in (subject_id1, subject_id2, subject_id3)]
    result = service.classify(subject_ids)
    return {"success": True, "data": result_payload(result, subject_ids)}


@app.get("/streams/{stream_id}")
def get_stream(stream_id: int, service: StreamService = Depends(get_service)):
    """Stream details including its rule payload."""
    definition = service.get_stream(stream_id)
    return {"success": True, "data": StreamDetail(**definition.to_dict())}


@app.get("/streams/{stream_id}/subjects")
def get_stream_subjects(stream_id: int, service: StreamService = Depends(get_service)):
    """Subjects that take part in a stream's rule."""
    subjects = service.get_subjects_for_stream(stream_id)
    return {"success": True, "data": [SubjectModel(**s.to_dict()) for s in subjects]}

"""FastAPI app with health and person search endpoints.

The search engine runs against a PersonStore injected per request, backed by
the database session by default.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import settings
from .db import get_session
from .logging_config import setup_logging
from .search.engine import lookup_contacts, search_people
from .search.planner import ContactMode, InvalidArgumentError
from .search.types import SearchQuery
from .store import PersonStore, SqlPersonStore

logger = logging.getLogger(__name__)


# Pydantic response models
class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class PersonSummaryDTO(BaseModel):
    """Person row in search results."""
    id: int
    callsign: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    status: str


class PeopleSearchResponse(BaseModel):
    """Person search response."""
    rows: list[PersonSummaryDTO]
    total: int
    limit: int


class ContactSummaryDTO(BaseModel):
    """Person row in contact lookup results."""
    id: int
    callsign: str
    is_inactive: bool | None = None
    allow_contact: bool | None = None


class ContactSearchResponse(BaseModel):
    """Contact lookup response."""
    rows: list[ContactSummaryDTO]
    total: int
    limit: int


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    # Startup
    setup_logging()
    logger.info("Application starting up")

    yield

    # Shutdown
    logger.info("Application shutting down")


app = FastAPI(
    title="Roster Search",
    version=settings.version,
    description="Callsign resolution and ranked person search",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],  # Frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def get_person_store(session=Depends(get_session)) -> AsyncIterator[PersonStore]:
    """Person store dependency; tests override this with a snapshot store."""
    yield SqlPersonStore(session)


def split_csv(value: str | None) -> list[str] | None:
    """Split a comma-separated parameter, dropping empty tokens."""
    if value is None:
        return None
    return [token.strip() for token in value.split(",") if token.strip()]


# Exception handlers
@app.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(request, exc: InvalidArgumentError):
    """Handle rejected search requests."""
    logger.warning(f"Invalid search request: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            error="invalid_argument",
            detail=str(exc),
        ).model_dump(),
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        version=settings.version,
    )


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.version,
        "endpoints": {
            "health": "/health",
            "search_people": "/people",
            "search_callsigns": "/people/callsigns",
            "docs": "/docs",
        },
    }


@app.get("/people", response_model=PeopleSearchResponse)
async def search_people_endpoint(
    query: str | None = None,
    search_fields: str | None = None,
    statuses: str | None = None,
    exclude_statuses: str | None = None,
    limit: int | None = Query(default=None, ge=0, le=settings.search.max_limit),
    offset: int = Query(default=0, ge=0),
    store: PersonStore = Depends(get_person_store),
) -> PeopleSearchResponse:
    """Search people by callsign, name, email, or ``+id``.

    Args:
        query: Free-text query
        search_fields: Comma-separated field scope
        statuses: Comma-separated statuses to include
        exclude_statuses: Comma-separated statuses to exclude
        limit: Page size (default from settings)
        offset: Rows to skip
        store: Person store (injected)

    Returns:
        PeopleSearchResponse with ranked rows and the pre-pagination total
    """
    request = SearchQuery(
        query=query,
        search_fields=split_csv(search_fields),
        statuses=split_csv(statuses),
        exclude_statuses=split_csv(exclude_statuses),
        limit=limit,
        offset=offset,
    )

    try:
        result = await search_people(store, request)
    except InvalidArgumentError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error searching people: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal server error: {str(e)}",
        )

    return PeopleSearchResponse(
        rows=[
            PersonSummaryDTO(
                id=person.id,
                callsign=person.callsign,
                first_name=person.first_name,
                last_name=person.last_name,
                email=person.email,
                status=person.status,
            )
            for person in result.rows
        ],
        total=result.total,
        limit=result.limit,
    )


@app.get(
    "/people/callsigns",
    response_model=ContactSearchResponse,
    response_model_exclude_none=True,
)
async def search_callsigns_endpoint(
    query: str,
    mode: str = Query(default=ContactMode.ALL.value, alias="type"),
    limit: int | None = Query(default=None, ge=0, le=settings.search.max_limit),
    store: PersonStore = Depends(get_person_store),
) -> ContactSearchResponse:
    """Approximate callsign lookup for contact and messaging pickers.

    ``type=contact`` adds ``is_inactive`` and ``allow_contact`` to each row.
    """
    try:
        result = await lookup_contacts(store, query, mode, limit=limit)
    except InvalidArgumentError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error searching callsigns: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal server error: {str(e)}",
        )

    with_flags = mode == ContactMode.CONTACT.value
    return ContactSearchResponse(
        rows=[
            ContactSummaryDTO(
                id=row.id,
                callsign=row.callsign,
                is_inactive=row.is_inactive if with_flags else None,
                allow_contact=row.allow_contact if with_flags else None,
            )
            for row in result.rows
        ],
        total=result.total,
        limit=result.limit,
    )

"""Search API Router - JSON gateway for search, autocomplete and index views."""

import logging
import re
import time
from datetime import datetime, timedelta
from typing import Any, Literal

from fastapi import APIRouter, BackgroundTasks, Body, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from blog_search.api.metrics import record_search
from blog_search.api.middleware.rate_limiter import limiter
from blog_search.core.config import settings
from blog_search.search.errors import QueryValidationError, SearchError
from blog_search.search.models import SORT_MODES, DateRange, QueryRequest, parse_timestamp
from blog_search.services.search import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()

# Browser/CDN cache lifetime per action (seconds); 0 = do not cache
CACHE_MAX_AGE: dict[str, int] = {
    "search": 300,
    "autocomplete": 600,
    "batch-autocomplete": 600,
    "tags": 3600,
    "popular-tags": 3600,
    "stats": 3600,
    "recent": 300,
    "analytics": 0,
}

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TRUE_VALUES = ("1", "true", "yes", "on")


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


def _parse_pos_int(value: str | None, default: int, *, min_v: int = 1) -> int:
    try:
        x = int(value) if value is not None else default
    except ValueError:
        x = default
    return max(x, min_v)


def _parse_date(value: str | None, name: str, *, end_of_day: bool = False) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parse_timestamp(value)
    except ValueError:
        raise QueryValidationError(f"Invalid '{name}' date: {value}")
    # A bare date as upper bound covers that whole day
    if end_of_day and _DATE_ONLY.match(value.strip()):
        parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
    return parsed


def _date_range(start: str | None, end: str | None) -> DateRange | None:
    date_range = DateRange(
        start=_parse_date(start, "from"),
        end=_parse_date(end, "to", end_of_day=True),
    )
    if date_range.start is None and date_range.end is None:
        return None
    return date_range


def _sort_mode(value: str | None) -> str:
    sort_by = value or "relevance"
    if sort_by not in SORT_MODES:
        raise QueryValidationError(
            f"Invalid sortBy '{sort_by}'. Must be one of: {', '.join(SORT_MODES)}"
        )
    return sort_by


def _check_query_length(query: str) -> None:
    if len(query) > settings.MAX_QUERY_LEN:
        raise QueryValidationError(
            f"Query too long. Maximum {settings.MAX_QUERY_LEN} characters allowed."
        )


def _json(data: Any, action: str) -> JSONResponse:
    response = JSONResponse(data)
    max_age = CACHE_MAX_AGE.get(action, 0)
    response.headers["Cache-Control"] = (
        f"public, max-age={max_age}" if max_age else "no-store"
    )
    return response


def _internal_error(exc: Exception) -> JSONResponse:
    content = {"error": "internal_error", "message": "Internal server error"}
    if settings.DEBUG:
        content["message"] = str(exc)
    return JSONResponse(content, status_code=500)


def _run_search(
    service: SearchService,
    request: Request,
    background_tasks: BackgroundTasks,
    query_request: QueryRequest,
) -> JSONResponse:
    response = service.search(query_request, client_tag=request.headers.get("user-agent"))
    if query_request.text.strip():
        background_tasks.add_task(service.analytics.persist)
    return _json(response.to_dict(), "search")


def _autocomplete(service: SearchService, query: str, limit: str | None) -> JSONResponse:
    if len(query) < settings.MIN_AUTOCOMPLETE_QUERY_LEN:
        return JSONResponse({"suggestions": []})
    if len(query) > settings.MAX_AUTOCOMPLETE_QUERY_LEN:
        raise QueryValidationError("Query too long for autocomplete")
    size = min(
        _parse_pos_int(limit, settings.AUTOCOMPLETE_LIMIT),
        settings.MAX_AUTOCOMPLETE_LIMIT,
    )
    return _json({"suggestions": service.autocomplete(query, size)}, "autocomplete")


# ----------------------------------------------------------------------
# GET /api/search?action=...
# ----------------------------------------------------------------------


@router.get("/search")
@limiter.shared_limit(settings.RATE_LIMIT, scope="search")
def api_search(
    request: Request,
    background_tasks: BackgroundTasks,
    action: str = "search",
    q: str | None = None,
    limit: str | None = None,
    tags: str | None = None,
    sortBy: str | None = None,
    highlight: str | None = None,
):
    """Read-only search gateway, dispatched on `action`."""
    started_at = time.perf_counter()
    label = action if action in CACHE_MAX_AGE else "invalid"
    service = get_search_service(request)
    try:
        if action == "search":
            query = q or ""
            size = _parse_pos_int(limit, settings.RESULTS_LIMIT)
            if size > settings.MAX_RESULTS_LIMIT:
                raise QueryValidationError(
                    f"Limit cannot exceed {settings.MAX_RESULTS_LIMIT} results"
                )
            _check_query_length(query)
            query_request = QueryRequest(
                text=query,
                limit=size,
                tags=tuple(t.strip() for t in (tags or "").split(",") if t.strip()),
                sort_by=_sort_mode(sortBy),
                date_range=_date_range(
                    request.query_params.get("from"), request.query_params.get("to")
                ),
                highlight=(highlight or "").lower() in _TRUE_VALUES,
            )
            return _run_search(service, request, background_tasks, query_request)

        if action == "autocomplete":
            return _autocomplete(service, q or "", limit)

        if action == "tags":
            return _json({"tags": service.all_tags()}, action)

        if action == "popular-tags":
            size = min(_parse_pos_int(limit, 10), settings.MAX_POPULAR_TAGS_LIMIT)
            return _json({"tags": service.popular_tags(size)}, action)

        if action == "stats":
            return _json(service.stats().to_dict(), action)

        if action == "recent":
            size = min(_parse_pos_int(limit, 5), settings.MAX_RECENT_LIMIT)
            posts = [doc.to_dict() for doc in service.recent_posts(size)]
            return _json({"posts": posts}, action)

        if action == "analytics":
            return _json(
                {"analytics": service.analytics.stats(), "cache": service.cache.stats()},
                action,
            )

        raise QueryValidationError("Invalid action parameter")
    except SearchError:
        raise
    except Exception as e:
        logger.exception("Search API error")
        return _internal_error(e)
    finally:
        record_search(label, time.perf_counter() - started_at)


# ----------------------------------------------------------------------
# POST /api/search
# ----------------------------------------------------------------------


class DateRangePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str | None = Field(default=None, alias="from")
    to: str | None = None


class SearchPayload(BaseModel):
    query: str = ""
    limit: int | None = None
    tags: list[str] = Field(default_factory=list)
    sortBy: Literal["relevance", "date", "title"] = "relevance"
    dateRange: DateRangePayload | None = None
    highlight: bool = False


class BatchAutocompletePayload(BaseModel):
    queries: list[str] = Field(default_factory=list)


def _validate(model: type[BaseModel], payload: dict[str, Any]) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "body"
        raise QueryValidationError(f"Invalid {location}: {first['msg']}")


@router.post("/search")
@limiter.shared_limit(settings.RATE_LIMIT, scope="search")
def api_search_post(
    request: Request,
    background_tasks: BackgroundTasks,
    body: dict[str, Any] = Body(...),
):
    """Programmatic search and batch autocomplete."""
    started_at = time.perf_counter()
    action = body.get("action")
    label = action if action in ("search", "batch-autocomplete") else "invalid"
    service = get_search_service(request)
    params = {k: v for k, v in body.items() if k != "action"}
    try:
        if action == "search":
            payload = _validate(SearchPayload, params)
            _check_query_length(payload.query)
            date_range = None
            if payload.dateRange is not None:
                date_range = _date_range(payload.dateRange.from_, payload.dateRange.to)
            query_request = QueryRequest(
                text=payload.query,
                limit=max(
                    1, min(payload.limit or settings.RESULTS_LIMIT, settings.MAX_RESULTS_LIMIT)
                ),
                tags=tuple(t for t in payload.tags if t.strip()),
                sort_by=payload.sortBy,
                date_range=date_range,
                highlight=payload.highlight,
            )
            return _run_search(service, request, background_tasks, query_request)

        if action == "batch-autocomplete":
            payload = _validate(BatchAutocompletePayload, params)
            if len(payload.queries) > settings.MAX_BATCH_QUERIES:
                raise QueryValidationError(
                    f"Invalid queries array. Maximum {settings.MAX_BATCH_QUERIES} queries allowed."
                )
            results = [
                {
                    "query": query,
                    "suggestions": service.autocomplete(query, settings.AUTOCOMPLETE_LIMIT),
                }
                for query in payload.queries
            ]
            return _json({"results": results}, action)

        raise QueryValidationError("Invalid action parameter")
    except SearchError:
        raise
    except Exception as e:
        logger.exception("Search API POST error")
        return _internal_error(e)
    finally:
        record_search(label, time.perf_counter() - started_at)

"""FastAPI application serving aggregated news."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from news_aggregator.aggregator import NewsAggregator, ProviderValidationError
from news_aggregator.config import get_settings
from news_aggregator.models.schemas import FetchParams, NewsCategory, PaginatedResult

settings = get_settings()

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, s-maxage=120, stale-while-revalidate=300"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info("Starting News Aggregator API...")
    app.state.aggregator = NewsAggregator(settings)
    yield
    logger.info("Shutting down News Aggregator API...")
    await app.state.aggregator.close()


app = FastAPI(
    title="News Aggregator API",
    description=(
        "Aggregates headlines from NewsAPI and The New York Times into one "
        "de-duplicated, recency-sorted, paginated feed."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/news", response_model=PaginatedResult)
async def get_news(
    request: Request,
    response: Response,
    category: Optional[str] = None,
    query: str = "",
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100, alias="pageSize"),
    source: Optional[str] = None,
):
    """
    Fetch a page of articles.

    Without ``source`` every enabled provider is queried and merged; with it
    only that provider is asked.
    """
    if category:
        try:
            parsed_category: Optional[NewsCategory] = NewsCategory(category)
        except ValueError:
            valid = ", ".join(c.value for c in NewsCategory)
            raise HTTPException(
                status_code=400,
                detail=f"Invalid category. Must be one of: {valid}",
            )
    else:
        parsed_category = None

    params = FetchParams(
        category=parsed_category,
        query=query,
        page=page,
        page_size=page_size,
    )
    aggregator: NewsAggregator = request.app.state.aggregator

    if source:
        try:
            result = await aggregator.fetch_one(source, params)
        except ProviderValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
    else:
        result = await aggregator.fetch_all(params)

    response.headers["Cache-Control"] = CACHE_CONTROL
    return result


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.exception("Unhandled exception")
    body = PaginatedResult.empty().model_dump(by_alias=True)
    body["error"] = "Failed to fetch articles"
    return JSONResponse(status_code=500, content=body)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "news_aggregator.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )

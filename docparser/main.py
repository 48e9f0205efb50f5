"""
Documentation Map Parser - FastAPI Application
Main entry point with REST API endpoints.
"""
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from docparser.cache import DocumentationCache
from docparser.config import config
from docparser.exceptions import (
    DocParserError,
    FetchTimeoutError,
    ForbiddenError,
    InvalidUrlError,
    NotFoundError,
    RateLimitedError,
)
from docparser.layers.ingestion import IngestionLayer
from docparser.layers.parsing import ParsingLayer, get_available_strategies
from docparser.utils.logger import get_logger, set_trace_id

VERSION = "1.0.0"

# Checked in order, so subclasses come before FetchError's catch-all 502
ERROR_STATUS = [
    (InvalidUrlError, 400),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (RateLimitedError, 429),
    (FetchTimeoutError, 504),
]


# Initialize FastAPI app
app = FastAPI(
    title="Documentation Map Parser",
    description="Extracts product/feature/component graphs from documentation sites",
    version=VERSION,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize layers
cache = DocumentationCache(max_entries=config.CACHE_MAX_ENTRIES)
parsing_layer = ParsingLayer()
ingestion_layer = IngestionLayer(cache=cache, parsing_layer=parsing_layer)

logger = get_logger("main")
logger.info("service_configured", **config.summary())


# Request/Response models
class ParseRequest(BaseModel):
    """Request model for parsing HTML the caller already has."""
    html: str
    url: str


class GenerateRequest(BaseModel):
    """Request model for fetching and parsing a documentation URL."""
    url: str
    force_browser: bool = False


class CrawlRequest(BaseModel):
    """Request model for a multi-page crawl of a documentation site."""
    url: str
    max_pages: int = Field(default=config.CRAWL_MAX_PAGES, ge=1, le=20)
    force_browser: bool = False


class DetectStrategyResponse(BaseModel):
    url: str
    strategy: str
    trace_id: str


class StrategiesResponse(BaseModel):
    strategies: List[str]


def status_for(error: DocParserError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 502


@app.exception_handler(DocParserError)
async def doc_parser_error_handler(request: Request, exc: DocParserError):
    status_code = status_for(exc)
    logger.error(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.message,
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content=exc.to_response())


def _result_response(result, url: str, trace_id: str):
    if not result.nodes:
        logger.info("no_content_extracted", url=url, strategy=result.metadata.strategy)
        return JSONResponse(
            status_code=422,
            content={
                "error": "NoContent",
                "code": "NO_CONTENT",
                "message": "No documentation structure could be extracted from this page.",
                "details": {"url": url, "trace_id": trace_id, "warnings": result.metadata.warnings},
            },
        )
    return result.to_dict()


# API Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": VERSION, "cache_size": cache.size()}


@app.get("/api/strategies", response_model=StrategiesResponse)
async def list_strategies():
    """Strategy names in priority order."""
    return StrategiesResponse(strategies=get_available_strategies())


@app.post("/api/detect-strategy", response_model=DetectStrategyResponse)
async def detect_strategy(request: ParseRequest):
    """Report which strategy would try the page first, without extracting anything."""
    trace_id = set_trace_id()
    strategy = parsing_layer.detect_strategy(request.html, request.url)
    logger.info("strategy_detected", url=request.url, strategy=strategy)
    return DetectStrategyResponse(url=request.url, strategy=strategy, trace_id=trace_id)


@app.post("/api/parse")
async def parse_html(request: ParseRequest):
    """
    Parse caller-supplied HTML into a documentation graph.

    No network access happens here.
    """
    trace_id = set_trace_id()
    logger.info("parse_request", url=request.url, html_length=len(request.html))

    result = await parsing_layer.parse(request.html, request.url)
    return _result_response(result, request.url, trace_id)


@app.post("/api/generate")
async def generate_map(request: GenerateRequest):
    """
    Fetch a documentation URL and parse it into a graph.

    Fetch failures are reported with the matching HTTP status:
    - 400 invalid or non-documentation URL
    - 403 / 404 / 429 passed through from the site
    - 504 timeout
    - 502 anything else upstream
    """
    trace_id = set_trace_id()
    logger.info(
        "generate_request",
        url=request.url,
        force_browser=request.force_browser,
    )

    result = await ingestion_layer.generate(request.url, force_browser=request.force_browser)
    return _result_response(result, request.url, trace_id)


@app.post("/api/crawl")
async def crawl_site(request: CrawlRequest):
    """
    Crawl a documentation site's top section pages and map them together.

    Errors on the start page map to statuses as for /api/generate. Section
    pages that fail are skipped and listed in the result warnings.
    """
    trace_id = set_trace_id()
    logger.info(
        "crawl_request",
        url=request.url,
        max_pages=request.max_pages,
        force_browser=request.force_browser,
    )

    result = await ingestion_layer.crawl(
        request.url,
        max_pages=request.max_pages,
        force_browser=request.force_browser,
    )
    return _result_response(result, request.url, trace_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)

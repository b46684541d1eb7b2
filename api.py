"""
FastAPI server exposing the movie search API.
Endpoints:
- GET /health: basic health check
- GET /movies/search?q=&page=&limit=&genre=&year=&rating=&sortBy=: fuzzy search with metadata
- GET /movies/autocomplete?q=&limit=: title suggestions
- GET /movies/{id}: movie detail
- GET /movies/{id}/recommendations: movies sharing a genre

Startup connects to MongoDB (Atlas Search) or, with SEARCH_BACKEND=local,
loads the JSONL dataset into the in-memory backend.
"""

import sys  # loguru sink
import time  # measure startup and request latencies
from contextlib import asynccontextmanager
from typing import List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for response models
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel  # response schema definitions
from starlette.concurrency import run_in_threadpool  # engine calls block

from loguru import logger  # convenient console logger

# Import our internal modules for configuration, engines and services
from moviesearch.backend import SearchBackend
from moviesearch.catalog import MovieCatalog
from moviesearch.config import Config
from moviesearch.data_loader import DataLoader
from moviesearch.errors import EngineError, MovieSearchError
from moviesearch.query_builder import QueryPlanBuilder
from moviesearch.search_service import SearchService

# Globals that hold the backend and services built at startup
BACKEND: Optional[SearchBackend] = None
SERVICE: Optional[SearchService] = None
CATALOG: Optional[MovieCatalog] = None
STARTUP_TIME_S: float = 0.0


def configure_logging():
	logger.remove()
	logger.add(sys.stderr, level=Config.LOG_LEVEL.upper())


def build_backend() -> SearchBackend:
	"""Create the backend selected by SEARCH_BACKEND."""
	if Config.SEARCH_BACKEND == 'local':
		from moviesearch.local_engine import LocalSearchBackend
		movies = DataLoader().load_movies_from_jsonl(Config.MOVIES_JSONL)
		return LocalSearchBackend(movies, candidate_cap=Config.SEARCH_CANDIDATE_CAP)

	from moviesearch.mongodb_client import MongoSearchBackend
	return MongoSearchBackend(
		Config.MONGO_URI,
		Config.MONGO_DB_NAME,
		Config.MONGO_COLLECTION,
		Config.SEARCH_INDEX,
		candidate_cap=Config.SEARCH_CANDIDATE_CAP,
		timeout_ms=Config.ENGINE_TIMEOUT_MS,
	)


@asynccontextmanager
async def lifespan(app: FastAPI):
	"""Build the backend and services once; close the backend on shutdown."""
	global BACKEND, SERVICE, CATALOG, STARTUP_TIME_S
	configure_logging()
	start = time.time()
	logger.info(f"[API] Startup: initializing '{Config.SEARCH_BACKEND}' backend...")

	BACKEND = build_backend()
	SERVICE = SearchService(BACKEND, builder=QueryPlanBuilder(autocomplete_cap=Config.AUTOCOMPLETE_CAP))
	CATALOG = MovieCatalog(BACKEND)

	STARTUP_TIME_S = time.time() - start
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s.")

	yield

	logger.info("[API] Shutting down...")
	if BACKEND:
		BACKEND.close()


# Instantiate the FastAPI application with metadata
app = FastAPI(title="Movie Catalog Search API", version="1.0.0", lifespan=lifespan)


def get_service() -> SearchService:
	if SERVICE is None:
		raise HTTPException(status_code=503, detail="Search service not initialized")
	return SERVICE


def get_catalog() -> MovieCatalog:
	if CATALOG is None:
		raise HTTPException(status_code=503, detail="Catalog not initialized")
	return CATALOG


def get_backend() -> Optional[SearchBackend]:
	return BACKEND


# Pydantic models that describe the response payloads
class MovieOut(BaseModel):
	id: str
	title: str
	plot: Optional[str] = None
	poster: Optional[str] = None
	year: Optional[int] = None
	runtime: Optional[int] = None
	genres: List[str] = []
	director: Optional[str] = None
	actors: List[str] = []
	imdbRating: Optional[float] = None


class MetadataOut(BaseModel):
	totalCount: int
	avgRating: float
	distinctGenres: List[str]
	distinctYears: List[int]


class PaginationOut(BaseModel):
	currentPage: int
	totalPages: int
	totalResults: int
	hasNextPage: bool
	hasPrevPage: bool


class SearchData(BaseModel):
	movies: List[MovieOut]
	metadata: MetadataOut
	pagination: PaginationOut


class SearchResponse(BaseModel):
	success: bool
	data: SearchData


class SuggestionOut(BaseModel):
	id: str
	title: str  # "<title> (<year>)"


class SuggestionPaginationOut(BaseModel):
	currentPage: int
	totalPages: int
	hasNextPage: bool
	hasPrevPage: bool


class AutocompleteData(BaseModel):
	suggestions: List[SuggestionOut]
	pagination: SuggestionPaginationOut


class AutocompleteResponse(BaseModel):
	success: bool
	data: AutocompleteData


class MovieResponse(BaseModel):
	success: bool
	data: MovieOut


class RecommendationsData(BaseModel):
	movies: List[MovieOut]


class RecommendationsResponse(BaseModel):
	success: bool
	data: RecommendationsData


@app.exception_handler(MovieSearchError)
async def search_error_handler(request: Request, exc: MovieSearchError):
	"""Map service errors to the {success: false, message} envelope."""
	content = {"success": False, "message": exc.message}
	if isinstance(exc, EngineError):
		logger.error(f"[API] {request.url.path} engine error: {exc.error}")
		content["error"] = exc.error
	else:
		logger.debug(f"[API] {request.url.path} rejected: {exc.message}")
	return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
	logger.opt(exception=exc).error(f"[API] Unhandled exception on {request.url.path}")
	return JSONResponse(
		status_code=500,
		content={"success": False, "message": "Internal server error", "error": str(exc)},
	)


# Simple health endpoint for readiness checks
@app.get("/health")
async def health(backend: Optional[SearchBackend] = Depends(get_backend)):
	"""Return minimal health info for liveness/readiness probes."""
	ready = backend is not None and await run_in_threadpool(backend.ping)
	return {
		"status": "ok" if ready else "degraded",
		"backend": backend.name if backend else None,
		"engine_ready": ready,
		"startup_seconds": round(STARTUP_TIME_S, 2),
	}


@app.get("/movies/search", response_model=SearchResponse)
async def search_movies(
	q: Optional[str] = Query(None, description="Free-text movie query"),
	page: Optional[str] = Query(None),
	limit: Optional[str] = Query(None),
	genre: Optional[str] = Query(None),
	year: Optional[str] = Query(None),
	rating: Optional[str] = Query(None, description="Minimum IMDb rating"),
	sortBy: Optional[str] = Query(None, description="relevance | rating | year | title"),
	service: SearchService = Depends(get_service),
):
	"""Fuzzy search with facets; page/limit and filters are validated by the service."""
	start = time.time()
	result = await run_in_threadpool(
		service.search, q,
		page=page, limit=limit, genre=genre, year=year, rating=rating, sort_by=sortBy,
	)
	elapsed_ms = (time.time() - start) * 1000
	logger.info(f"[API] /movies/search served {len(result.movies)} results in {elapsed_ms:.2f} ms")
	return {
		"success": True,
		"data": {
			"movies": result.movies,
			"metadata": result.metadata.to_dict(),
			"pagination": result.pagination.to_dict(),
		},
	}


@app.get("/movies/autocomplete", response_model=AutocompleteResponse)
async def autocomplete(
	q: Optional[str] = Query(None),
	limit: Optional[str] = Query(None),
	service: SearchService = Depends(get_service),
):
	suggestions = await run_in_threadpool(service.autocomplete, q, limit)
	return {
		"success": True,
		"data": {
			"suggestions": [{"id": s.id, "title": s.display_title} for s in suggestions],
			# Suggestions are always a single page
			"pagination": {
				"currentPage": 1,
				"totalPages": 1,
				"hasNextPage": False,
				"hasPrevPage": False,
			},
		},
	}


@app.get("/movies/{movie_id}", response_model=MovieResponse)
async def get_movie(movie_id: str, catalog: MovieCatalog = Depends(get_catalog)):
	movie = await run_in_threadpool(catalog.get_movie, movie_id)
	return {"success": True, "data": movie}


@app.get("/movies/{movie_id}/recommendations", response_model=RecommendationsResponse)
async def recommendations(
	movie_id: str,
	limit: Optional[str] = Query(None),
	catalog: MovieCatalog = Depends(get_catalog),
):
	movies = await run_in_threadpool(catalog.recommendations, movie_id, limit)
	return {"success": True, "data": {"movies": movies}}


if __name__ == "__main__":
	import uvicorn

	uvicorn.run("api:app", host=Config.HOST, port=Config.PORT)

"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

import api
from moviesearch.backend import SearchBackend
from moviesearch.catalog import MovieCatalog
from moviesearch.data_loader import DataLoader
from moviesearch.local_engine import LocalSearchBackend
from moviesearch.models import QueryPlan
from moviesearch.search_service import SearchService

ROOT = Path(__file__).resolve().parents[1]
MOVIES_PATH = ROOT / 'data' / 'movies.jsonl'


class FakeBackend(SearchBackend):
	"""Returns canned engine documents and records every plan it receives."""

	name = 'fake'

	def __init__(
		self,
		search_result: Any = None,
		suggestions: Optional[List[Dict[str, Any]]] = None,
		error: Optional[Exception] = None,
		catalog: Optional[List[Dict[str, Any]]] = None,
	):
		self.search_result = search_result if search_result is not None else {'movies': [], 'metadata': []}
		self.suggestions = suggestions or []
		self.error = error
		self.catalog = catalog or []  # items served by id lookups
		self.plans: List[QueryPlan] = []

	def run_search(self, plan: QueryPlan) -> Dict[str, Any]:
		self.plans.append(plan)
		if self.error:
			raise self.error
		return self.search_result

	def run_autocomplete(self, plan: QueryPlan) -> List[Dict[str, Any]]:
		self.plans.append(plan)
		if self.error:
			raise self.error
		return self.suggestions[:plan.limit]

	def find_movie(self, movie_id: str) -> Optional[Dict[str, Any]]:
		return next((m for m in self.catalog if m['id'] == movie_id), None)

	def find_related(self, genres: List[str], exclude_id: str, limit: int) -> List[Dict[str, Any]]:
		return [m for m in self.catalog if m['id'] != exclude_id][:limit]


def make_items(count: int) -> List[Dict[str, Any]]:
	"""Engine-shaped movie items (with the internal score), best score first."""
	return [
		{
			'id': f'm{i}',
			'title': f'Movie {i}',
			'year': 1990 + i,
			'genres': ['Action'],
			'imdbRating': 7.0,
			'relevanceScore': float(count - i),
		}
		for i in range(count)
	]


def facet_result(items: List[Dict[str, Any]], metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
	if metadata is None:
		metadata = {
			'totalCount': len(items),
			'avgRating': 7.0,
			'genres': [['Action']],
			'years': [i['year'] for i in items],
		}
	return {'movies': items, 'metadata': [metadata] if items else []}


@pytest.fixture(scope='session')
def movies():
	return DataLoader().load_movies_from_jsonl(str(MOVIES_PATH))


@pytest.fixture
def local_backend(movies) -> LocalSearchBackend:
	return LocalSearchBackend(movies, candidate_cap=20)


@pytest.fixture
def service(local_backend) -> SearchService:
	return SearchService(local_backend)


@pytest.fixture
def client(local_backend):
	"""Test client over the app with the services built on the local backend."""
	api.app.dependency_overrides[api.get_service] = lambda: SearchService(local_backend)
	api.app.dependency_overrides[api.get_catalog] = lambda: MovieCatalog(local_backend)
	api.app.dependency_overrides[api.get_backend] = lambda: local_backend
	yield TestClient(api.app)
	api.app.dependency_overrides.clear()


@pytest.fixture
def fake_client():
	"""Factory: test client whose search service and catalog run on a FakeBackend."""
	def _make(backend: FakeBackend) -> TestClient:
		api.app.dependency_overrides[api.get_service] = lambda: SearchService(backend)
		api.app.dependency_overrides[api.get_catalog] = lambda: MovieCatalog(backend)
		return TestClient(api.app)
	yield _make
	api.app.dependency_overrides.clear()

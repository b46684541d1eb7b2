"""
Movie catalog lookups: detail by id and same-genre recommendations.
Reads go through the search backend, so there is no separate movie store.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from .backend import SearchBackend, execute_on_engine
from .errors import MovieNotFound
from .result_shaper import ResultShaper
from .search_service import parse_positive_int

DEFAULT_RECOMMENDATIONS = 10


class MovieCatalog:
	def __init__(self, backend: SearchBackend, shaper: Optional[ResultShaper] = None):
		self.backend = backend
		self.shaper = shaper or ResultShaper()

	def get_movie(self, movie_id: str) -> Dict[str, Any]:
		movie = execute_on_engine(self.backend.find_movie, movie_id)
		if not movie:
			raise MovieNotFound("Movie not found")
		return self.shaper.public_item(movie)

	def recommendations(self, movie_id: str, limit: Any = DEFAULT_RECOMMENDATIONS) -> List[Dict[str, Any]]:
		"""Other movies sharing at least one genre, best rated first."""
		limit_num = parse_positive_int(limit, DEFAULT_RECOMMENDATIONS)
		movie = self.get_movie(movie_id)
		related = execute_on_engine(self.backend.find_related, movie.get('genres') or [], movie_id, limit_num)
		logger.debug(f"[Catalog] {len(related)} recommendations for {movie_id}")
		return [self.shaper.public_item(m) for m in related]

"""
Search backend interface.
A backend executes query plans against a movie store and returns raw results
in one shape regardless of the engine behind it:

- run_search -> {"movies": [item + relevanceScore, ...], "metadata": [group record] or []}
- run_autocomplete -> [{"id", "title", "year"}, ...]
"""

from typing import Any, Callable, Dict, List, Optional

from loguru import logger  # console logging

from .errors import EngineError, MovieSearchError
from .models import QueryPlan


class SearchBackend:
	"""Base class; concrete backends override every method."""

	name = 'base'

	def run_search(self, plan: QueryPlan) -> Dict[str, Any]:
		raise NotImplementedError

	def run_autocomplete(self, plan: QueryPlan) -> List[Dict[str, Any]]:
		raise NotImplementedError

	def find_movie(self, movie_id: str) -> Optional[Dict[str, Any]]:
		raise NotImplementedError

	def find_related(self, genres: List[str], exclude_id: str, limit: int) -> List[Dict[str, Any]]:
		raise NotImplementedError

	def ping(self) -> bool:
		return True

	def close(self):
		pass


def execute_on_engine(operation: Callable[..., Any], *args: Any) -> Any:
	"""
	Run one backend call. Errors we raise on purpose pass through; anything
	else becomes an EngineError carrying the original message.
	"""
	try:
		return operation(*args)
	except MovieSearchError:
		raise
	except Exception as e:
		logger.exception(f"[Engine] Backend call failed: {e}")
		raise EngineError("Error performing search", str(e)) from e

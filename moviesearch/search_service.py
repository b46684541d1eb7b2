"""
Search service module.
Validates requests, builds query plans, executes them on the configured
backend, and shapes the results for callers.
"""

from typing import Any, List, Optional, Tuple  # type annotations for clarity

# Import project modules for data structures and components
from .backend import SearchBackend, execute_on_engine  # engine abstraction
from .errors import InvalidPagination  # request validation
from .models import SearchPage, Suggestion  # response values
from .query_builder import QueryPlanBuilder  # plan construction
from .result_shaper import ResultShaper  # pagination and metadata

# Import loguru for console logging
from loguru import logger  # simple structured logger

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
DEFAULT_SUGGESTIONS = 10


def parse_positive_int(value: Any, default: int) -> int:
	"""
	Parse a page/limit style value (int or query-string text).
	Missing means `default`; anything non-numeric or below 1 is rejected.
	"""
	if value is None or (isinstance(value, str) and not value.strip()):
		return default
	if isinstance(value, bool):
		raise InvalidPagination("Invalid pagination parameters")
	try:
		number = value if isinstance(value, int) else int(str(value).strip())
	except ValueError:
		raise InvalidPagination("Invalid pagination parameters")
	if number < 1:
		raise InvalidPagination("Invalid pagination parameters")
	return number


def parse_pagination(page: Any, limit: Any, default_limit: int = DEFAULT_LIMIT) -> Tuple[int, int]:
	return parse_positive_int(page, DEFAULT_PAGE), parse_positive_int(limit, default_limit)


class SearchService:
	"""
	High-level search API: input validation -> QueryPlanBuilder -> backend ->
	ResultShaper. Holds no per-request state, so one instance serves every request.
	"""
	def __init__(
		self,
		backend: SearchBackend,  # engine that executes plans
		builder: Optional[QueryPlanBuilder] = None,
		shaper: Optional[ResultShaper] = None,
	):
		self.backend = backend
		self.builder = builder or QueryPlanBuilder()
		self.shaper = shaper or ResultShaper()
		logger.info(f"[Service] Search service ready on '{backend.name}' backend")

	def search(
		self,
		text: Optional[str],
		page: Any = DEFAULT_PAGE,
		limit: Any = DEFAULT_LIMIT,
		genre: Any = None,
		year: Any = None,
		rating: Any = None,
		sort_by: Optional[str] = None,
	) -> SearchPage:
		"""Run a fuzzy search and return one page plus metadata over all candidates."""
		# Everything is validated before the (expensive) engine call
		page_num, limit_num = parse_pagination(page, limit)
		self.builder.require_text(text)
		filters = self.builder.parse_filters(genre, year, rating)
		plan = self.builder.build(text, filters, sort_by)

		logger.debug(f"[Service] search q='{plan.text}' page={page_num} limit={limit_num} sort={sort_by}")
		raw = execute_on_engine(self.backend.run_search, plan)
		result = self.shaper.shape(raw, page_num, limit_num)
		logger.info(
			f"[Service] search '{plan.text}' -> {len(result.movies)} of {result.metadata.total_count} results (page {page_num})"
		)
		return result

	def autocomplete(self, text: Optional[str], limit: Any = DEFAULT_SUGGESTIONS) -> List[Suggestion]:
		"""Title suggestions for incremental typing."""
		self.builder.require_text(text)
		limit_num = parse_positive_int(limit, DEFAULT_SUGGESTIONS)
		plan = self.builder.build_autocomplete(text, limit_num)

		raw = execute_on_engine(self.backend.run_autocomplete, plan)
		suggestions = self.shaper.shape_suggestions(raw)
		logger.info(f"[Service] autocomplete '{plan.text}' -> {len(suggestions)} suggestions")
		return suggestions

"""
Query plan construction.
Turns free text plus optional filters into an engine-agnostic QueryPlan:
three boosted match strategies OR-ed together, post-match filters, and a
sorted movie facet next to a metadata facet over the same match set.
"""

import math  # NaN check for rating filters
from typing import Any, List, Optional, Tuple

from loguru import logger  # console logging

from .errors import InvalidFilter, InvalidQuery
from .models import (
	AutocompleteMatch,
	FilterClause,
	FuzzyTextMatch,
	GenreEquals,
	MinRating,
	PlainTextMatch,
	QueryPlan,
	SearchFilters,
	YearEquals,
)
from .sorting import RELEVANCE, resolve_sort_key


class QueryPlanBuilder:
	"""
	Builds search and autocomplete plans.
	Weights and fuzziness are constructor arguments so alternative tunings can
	be tried without touching the plan shape.
	"""

	# Fields searched by each strategy (logical names, mapped to document paths by serializers)
	FUZZY_FIELDS: Tuple[str, ...] = ('title', 'plot', 'actors', 'director')
	AUTOCOMPLETE_FIELD = 'title'
	PLAIN_FIELDS: Tuple[str, ...] = ('genres', 'keywords')

	def __init__(
		self,
		max_edits: int = 2,  # tolerated spelling mistakes
		prefix_length: int = 2,  # leading characters that must match exactly
		fuzzy_boost: float = 3.0,
		autocomplete_boost: float = 2.0,
		plain_boost: float = 1.5,
		autocomplete_cap: int = 10,
	):
		self.max_edits = max_edits
		self.prefix_length = prefix_length
		self.fuzzy_boost = fuzzy_boost
		self.autocomplete_boost = autocomplete_boost
		self.plain_boost = plain_boost
		self.autocomplete_cap = autocomplete_cap

	def build(self, text: Optional[str], filters: Optional[SearchFilters] = None, sort_by: Optional[str] = None) -> QueryPlan:
		"""Full search plan: fuzzy + autocomplete + plain text, filters, two facets."""
		query = self.require_text(text)
		filters = filters or SearchFilters()

		matches = (
			FuzzyTextMatch(self.FUZZY_FIELDS, self.max_edits, self.prefix_length, self.fuzzy_boost),
			AutocompleteMatch(self.AUTOCOMPLETE_FIELD, self.autocomplete_boost),
			PlainTextMatch(self.PLAIN_FIELDS, self.plain_boost),
		)
		plan = QueryPlan(
			text=query,
			matches=matches,
			filters=self._filter_clauses(filters),
			sort=resolve_sort_key(sort_by),
			include_metadata=True,
		)
		logger.debug(f"[Builder] Search plan | text='{query}' filters={plan.filters} sort={plan.sort}")
		return plan

	def build_autocomplete(self, text: Optional[str], limit: int) -> QueryPlan:
		"""Narrow plan over titles only: no filters, no metadata, small fixed cap."""
		query = self.require_text(text)
		matches = (
			FuzzyTextMatch((self.AUTOCOMPLETE_FIELD,), self.max_edits, self.prefix_length, self.fuzzy_boost),
			AutocompleteMatch(self.AUTOCOMPLETE_FIELD, self.autocomplete_boost),
		)
		plan = QueryPlan(
			text=query,
			matches=matches,
			sort=resolve_sort_key(RELEVANCE),
			include_metadata=False,
			limit=min(limit, self.autocomplete_cap),
		)
		logger.debug(f"[Builder] Autocomplete plan | text='{query}' limit={plan.limit}")
		return plan

	def parse_filters(self, genre: Any = None, year: Any = None, rating: Any = None) -> SearchFilters:
		"""Parse raw (usually query-string) filter values; blank values mean absent."""
		return SearchFilters(
			genre=self._parse_genre(genre),
			year=self._parse_year(year),
			min_rating=self._parse_rating(rating),
		)

	def require_text(self, text: Optional[str]) -> str:
		if text is None or not str(text).strip():
			raise InvalidQuery("Query parameter required")
		return str(text).strip()

	def _filter_clauses(self, filters: SearchFilters) -> Tuple[FilterClause, ...]:
		clauses: List[FilterClause] = []
		if filters.genre:
			clauses.append(GenreEquals(filters.genre))
		if filters.year is not None:
			clauses.append(YearEquals(self._parse_year(filters.year)))
		if filters.min_rating is not None:
			clauses.append(MinRating(self._parse_rating(filters.min_rating)))
		return tuple(clauses)

	def _parse_genre(self, genre: Any) -> Optional[str]:
		if genre is None:
			return None
		value = str(genre).strip()
		return value or None

	def _parse_year(self, year: Any) -> Optional[int]:
		if year is None or (isinstance(year, str) and not year.strip()):
			return None
		if isinstance(year, bool):
			raise InvalidFilter(f"Invalid year filter: {year!r}")
		if isinstance(year, int):
			return year
		try:
			return int(str(year).strip())
		except ValueError:
			raise InvalidFilter(f"Invalid year filter: {year!r}")

	def _parse_rating(self, rating: Any) -> Optional[float]:
		if rating is None or (isinstance(rating, str) and not rating.strip()):
			return None
		if isinstance(rating, bool):
			raise InvalidFilter(f"Invalid rating filter: {rating!r}")
		try:
			value = float(str(rating).strip())
		except ValueError:
			raise InvalidFilter(f"Invalid rating filter: {rating!r}")
		if math.isnan(value) or math.isinf(value):
			raise InvalidFilter(f"Invalid rating filter: {rating!r}")
		return value

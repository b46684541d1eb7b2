"""
Result shaping.
Takes the raw facet document returned by a backend and produces the page the
caller sees: in-memory pagination, normalized metadata, no internal scores.
"""

import math  # ceil for page counts
from typing import Any, Dict, Iterable, List

from loguru import logger  # console logging

from .data_loader import coerce_float, coerce_int
from .errors import EngineError, InvalidPagination
from .models import SCORE_FIELD, PaginationInfo, SearchMetadata, SearchPage, Suggestion


class ResultShaper:
	"""
	Pagination is applied here, not in the engine: the engine returns every
	match up to its candidate cap so the metadata facet covers the same set.
	Pages past the cap therefore come back short or empty.
	"""

	def shape(self, raw: Any, page: int, limit: int) -> SearchPage:
		if limit < 1 or page < 1:
			raise InvalidPagination("Invalid pagination parameters")
		if not isinstance(raw, dict) or not isinstance(raw.get('movies'), list):
			raise EngineError("Error performing search", "malformed search result: missing movies facet")

		metadata = self.shape_metadata(raw.get('metadata'))
		start = (page - 1) * limit
		items = [self.public_item(m) for m in raw['movies'][start:start + limit]]

		total_pages = math.ceil(metadata.total_count / limit)
		pagination = PaginationInfo(
			current_page=page,
			total_pages=total_pages,
			total_results=metadata.total_count,
			has_next_page=page < total_pages,
			has_prev_page=page > 1,
		)
		logger.debug(
			f"[Shaper] page={page} limit={limit} items={len(items)} total={metadata.total_count} pages={total_pages}"
		)
		return SearchPage(movies=items, metadata=metadata, pagination=pagination)

	def shape_metadata(self, raw_meta: Any) -> SearchMetadata:
		"""Normalize the metadata facet; no record at all means zero matches."""
		# $facet yields a list with zero or one group document
		if isinstance(raw_meta, list):
			raw_meta = raw_meta[0] if raw_meta else None
		if not raw_meta:
			return SearchMetadata()
		if not isinstance(raw_meta, dict):
			raise EngineError("Error performing search", "malformed search result: bad metadata facet")

		avg = raw_meta.get('avgRating')
		return SearchMetadata(
			total_count=int(raw_meta.get('totalCount') or 0),
			avg_rating=round(float(avg), 1) if avg is not None else 0.0,
			distinct_genres=sorted(set(g for g in _flatten(raw_meta.get('genres') or []) if g)),
			distinct_years=sorted(set(_years(raw_meta.get('years') or [])), reverse=True),
		)

	def strip_internal(self, item: Dict[str, Any]) -> Dict[str, Any]:
		return {k: v for k, v in item.items() if k != SCORE_FIELD}

	def public_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
		"""
		Item as callers see it: no internal score, and numeric fields that are
		numbers or None even when the stored value is "" or "2014è".
		"""
		public = self.strip_internal(item)
		for name in ('year', 'runtime'):
			if name in public:
				public[name] = coerce_int(public[name])
		if 'imdbRating' in public:
			public['imdbRating'] = coerce_float(public['imdbRating'])
		if 'title' in public and public['title'] is not None:
			public['title'] = str(public['title'])  # stored titles are not always strings
		return public

	def shape_suggestions(self, raw_items: Iterable[Dict[str, Any]]) -> List[Suggestion]:
		suggestions = []
		for item in raw_items:
			if not isinstance(item, dict) or 'title' not in item:
				raise EngineError("Error performing search", "malformed suggestion document")
			year = coerce_int(item.get('year'))
			display = f"{item['title']} ({year})" if year is not None else str(item['title'])
			suggestions.append(Suggestion(id=str(item.get('id', '')), display_title=display))
		return suggestions


def _flatten(values: Iterable[Any]) -> Iterable[Any]:
	for value in values:
		if isinstance(value, (list, tuple, set)):
			yield from _flatten(value)
		else:
			yield value


def _years(values: Iterable[Any]) -> Iterable[int]:
	for value in _flatten(values):
		year = coerce_int(value)
		if year is not None:  # missing or non-numeric year
			yield year

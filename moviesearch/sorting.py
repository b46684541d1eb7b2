"""
Sort policy: maps a named sort mode to the ordering key of the movie facet.
Unknown modes fall back to relevance instead of failing.
"""

from typing import Dict, Optional  # type hints

# Import the sort key shape shared with the query plan
from .models import SCORE_FIELD, SortKey  # ordered (field, direction) pairs

RELEVANCE = 'relevance'  # default mode

# Mode -> (primary, secondary) ordering; -1 descending, 1 ascending
SORT_KEYS: Dict[str, SortKey] = {
	RELEVANCE: ((SCORE_FIELD, -1), ('imdbRating', -1)),  # best match, then best rated
	'rating': (('imdbRating', -1), (SCORE_FIELD, -1)),
	'year': (('year', -1), (SCORE_FIELD, -1)),  # newest first
	'title': (('title', 1), (SCORE_FIELD, -1)),  # A to Z
}


def normalize_sort_mode(sort_by: Optional[str]) -> str:
	"""Return the recognized mode name for `sort_by`, or 'relevance'."""
	mode = (sort_by or '').strip().lower()  # "Rating " and "rating" are the same mode
	return mode if mode in SORT_KEYS else RELEVANCE


def resolve_sort_key(sort_by: Optional[str]) -> SortKey:
	return SORT_KEYS[normalize_sort_mode(sort_by)]

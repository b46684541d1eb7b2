"""
Data models for the movie catalog search backend.
Defines the read model for stored movies, the engine-agnostic query plan,
and the request-scoped values returned by the search service.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
# Import typing helpers for precise and self-documenting types
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass
class Movie:
	"""
	Read model of one stored movie document (mflix shape).
	Only consumed for reading; nothing in the search path writes movies.
	"""
	id: str  # stable string id (stringified ObjectId for Mongo documents)
	title: str  # display title as stored
	plot: str = ''  # short synopsis
	fullplot: str = ''  # long synopsis
	year: Optional[int] = None  # release year
	runtime: Optional[int] = None  # minutes
	poster: Optional[str] = None  # poster image URL
	genres: List[str] = field(default_factory=list)  # e.g. ["Action", "Sci-Fi"]
	cast: List[str] = field(default_factory=list)  # actor names
	directors: List[str] = field(default_factory=list)  # director names
	imdb_rating: Optional[float] = None  # 0..10
	imdb_votes: Optional[int] = None
	keywords: List[str] = field(default_factory=list)  # optional free-form tags

	def to_item(self) -> Dict[str, Any]:
		"""Public projection, same shape the search facet produces (without score)."""
		return {
			'id': self.id,
			'title': self.title,
			'plot': self.plot,
			'poster': self.poster,
			'year': self.year,
			'runtime': self.runtime,
			'genres': list(self.genres),
			'director': self.directors[0] if self.directors else None,
			'actors': list(self.cast),
			'imdbRating': self.imdb_rating,
		}


@dataclass(frozen=True)
class SearchFilters:
	"""Parsed post-match filters; None means no constraint."""
	genre: Optional[str] = None
	year: Optional[int] = None
	min_rating: Optional[float] = None


@dataclass(frozen=True)
class FuzzyTextMatch:
	"""Text match over several fields tolerating a bounded edit distance."""
	fields: Tuple[str, ...]
	max_edits: int
	prefix_length: int
	boost: float


@dataclass(frozen=True)
class AutocompleteMatch:
	"""Prefix match for incremental typing over a single field."""
	field: str
	boost: float


@dataclass(frozen=True)
class PlainTextMatch:
	"""Exact token match over several fields."""
	fields: Tuple[str, ...]
	boost: float


MatchClause = Union[FuzzyTextMatch, AutocompleteMatch, PlainTextMatch]


@dataclass(frozen=True)
class GenreEquals:
	genre: str


@dataclass(frozen=True)
class YearEquals:
	year: int


@dataclass(frozen=True)
class MinRating:
	rating: float


FilterClause = Union[GenreEquals, YearEquals, MinRating]

# Internal relevance score attached by the engine; never returned to callers
SCORE_FIELD = 'relevanceScore'

# Ordered (field, direction) pairs; -1 descending, 1 ascending
SortKey = Tuple[Tuple[str, int], ...]


@dataclass(frozen=True)
class QueryPlan:
	"""
	Engine-agnostic description of one search request.
	Matches are OR-ed (at least one must match), filters narrow the matched set
	without contributing to the score, and the movie facet is ordered by `sort`.
	`limit` stays None for the full search: the metadata facet aggregates over
	the same match set the movie facet is cut from.
	"""
	text: str
	matches: Tuple[MatchClause, ...]
	filters: Tuple[FilterClause, ...] = ()
	sort: SortKey = ()
	include_metadata: bool = True
	limit: Optional[int] = None


@dataclass
class SearchMetadata:
	total_count: int = 0
	avg_rating: float = 0.0
	distinct_genres: List[str] = field(default_factory=list)  # ascending
	distinct_years: List[int] = field(default_factory=list)  # descending

	def to_dict(self) -> Dict[str, Any]:
		return {
			'totalCount': self.total_count,
			'avgRating': self.avg_rating,
			'distinctGenres': self.distinct_genres,
			'distinctYears': self.distinct_years,
		}


@dataclass
class PaginationInfo:
	current_page: int
	total_pages: int
	total_results: int
	has_next_page: bool
	has_prev_page: bool

	def to_dict(self) -> Dict[str, Any]:
		return {
			'currentPage': self.current_page,
			'totalPages': self.total_pages,
			'totalResults': self.total_results,
			'hasNextPage': self.has_next_page,
			'hasPrevPage': self.has_prev_page,
		}


@dataclass
class SearchPage:
	"""One page of search results plus metadata over the whole candidate set."""
	movies: List[Dict[str, Any]]  # public item dicts, score already stripped
	metadata: SearchMetadata
	pagination: PaginationInfo


@dataclass
class Suggestion:
	id: str
	display_title: str  # "<title> (<year>)"

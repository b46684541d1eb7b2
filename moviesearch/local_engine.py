"""
In-memory search backend.
Evaluates the same QueryPlan the Atlas serializer handles, against a list of
movies loaded from JSONL. Handy for development without a cluster and as a
deterministic engine in tests. Scoring is an approximation of Atlas scoring
built on rapidfuzz: each clause contributes boost * (how well the query terms
matched), and a movie is a candidate when at least one clause matched.
"""

import re  # tokenization
from typing import Any, Dict, List, Optional, Tuple

from rapidfuzz import fuzz  # similarity of fuzzy hits
from rapidfuzz.distance import Levenshtein  # bounded edit distance

from loguru import logger  # console logging

from .backend import SearchBackend
from .models import (
	AutocompleteMatch,
	FilterClause,
	FuzzyTextMatch,
	GenreEquals,
	MatchClause,
	MinRating,
	Movie,
	PlainTextMatch,
	QueryPlan,
	SCORE_FIELD,
	SortKey,
	YearEquals,
)

TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str) -> List[str]:
	return TOKEN_RE.findall((text or '').lower())


def sort_items(items: List[Dict[str, Any]], sort: SortKey) -> List[Dict[str, Any]]:
	"""
	Multi-key sort with Mongo null ordering: missing values sort lowest,
	so they come first ascending and last descending.
	"""
	ordered = list(items)
	# Stable sorts applied from the least significant key up
	for name, direction in reversed(sort):
		ordered.sort(
			key=lambda item: (item.get(name) is not None, item.get(name) if item.get(name) is not None else 0),
			reverse=direction < 0,
		)
	return ordered


class LocalSearchBackend(SearchBackend):
	"""Plan evaluation over an injected list of movies."""

	name = 'local'

	def __init__(self, movies: List[Movie], candidate_cap: int = 20):
		self.movies = list(movies)
		self.candidate_cap = candidate_cap
		self._by_id = {m.id: m for m in self.movies}
		logger.info(f"[Local] Backend ready with {len(self.movies)} movies (cap {candidate_cap})")

	def run_search(self, plan: QueryPlan) -> Dict[str, Any]:
		candidates = self._candidates(plan)
		items = []
		for movie, score in candidates:
			item = movie.to_item()
			item[SCORE_FIELD] = score
			items.append(item)

		result: Dict[str, Any] = {'movies': sort_items(items, plan.sort)}
		if plan.limit is not None:
			result['movies'] = result['movies'][:plan.limit]
		if plan.include_metadata:
			result['metadata'] = self._metadata([m for m, _ in candidates])
		logger.debug(f"[Local] Search '{plan.text}' -> {len(candidates)} candidates")
		return result

	def run_autocomplete(self, plan: QueryPlan) -> List[Dict[str, Any]]:
		items = [
			{'id': m.id, 'title': m.title, 'year': m.year, 'imdbRating': m.imdb_rating, SCORE_FIELD: score}
			for m, score in self._score_all(plan)
		]
		items = sort_items(items, plan.sort)
		if plan.limit is not None:
			items = items[:plan.limit]
		return [{'id': i['id'], 'title': i['title'], 'year': i['year']} for i in items]

	def find_movie(self, movie_id: str) -> Optional[Dict[str, Any]]:
		movie = self._by_id.get(movie_id)
		return movie.to_item() if movie else None

	def find_related(self, genres: List[str], exclude_id: str, limit: int) -> List[Dict[str, Any]]:
		wanted = set(genres)
		related = [m.to_item() for m in self.movies if m.id != exclude_id and wanted.intersection(m.genres)]
		return sort_items(related, (('imdbRating', -1),))[:limit]

	def _candidates(self, plan: QueryPlan) -> List[Tuple[Movie, float]]:
		"""Search order (score desc), then filters, then the candidate cap."""
		scored = self._score_all(plan)
		scored.sort(key=lambda pair: pair[1], reverse=True)
		filtered = [(m, s) for m, s in scored if self._passes(m, plan.filters)]
		return filtered[:self.candidate_cap]

	def _score_all(self, plan: QueryPlan) -> List[Tuple[Movie, float]]:
		terms = tokenize(plan.text)
		if not terms:
			return []
		scored = []
		for movie in self.movies:
			score = sum(self._clause_score(clause, terms, movie) for clause in plan.matches)
			if score > 0:  # at least one clause matched
				scored.append((movie, round(score, 6)))
		return scored

	def _clause_score(self, clause: MatchClause, terms: List[str], movie: Movie) -> float:
		if isinstance(clause, FuzzyTextMatch):
			tokens = self._tokens(movie, clause.fields)
			hits = [self._fuzzy_hit(t, tokens, clause.max_edits, clause.prefix_length) for t in terms]
			return clause.boost * sum(hits) / len(terms)
		if isinstance(clause, AutocompleteMatch):
			tokens = self._tokens(movie, (clause.field,))
			hits = sum(1 for t in terms if any(tok.startswith(t) for tok in tokens))
			return clause.boost * hits / len(terms)
		if isinstance(clause, PlainTextMatch):
			tokens = set(self._tokens(movie, clause.fields))
			hits = sum(1 for t in terms if t in tokens)
			return clause.boost * hits / len(terms)
		raise TypeError(f"Unsupported match clause: {clause!r}")

	def _fuzzy_hit(self, term: str, tokens: List[str], max_edits: int, prefix_length: int) -> float:
		"""Best similarity (0..1) of `term` to a token within the edit budget, else 0."""
		best = 0.0
		prefix = term[:prefix_length]
		for token in tokens:
			if not token.startswith(prefix):
				continue
			if Levenshtein.distance(term, token, score_cutoff=max_edits) > max_edits:
				continue
			best = max(best, fuzz.ratio(term, token) / 100.0)
		return best

	def _tokens(self, movie: Movie, fields) -> List[str]:
		tokens: List[str] = []
		for name in fields:
			value = self._field_value(movie, name)
			if isinstance(value, list):
				for v in value:
					tokens.extend(tokenize(str(v)))
			elif value:
				tokens.extend(tokenize(str(value)))
		return tokens

	def _field_value(self, movie: Movie, name: str) -> Any:
		return {
			'title': movie.title,
			'plot': movie.plot,
			'actors': movie.cast,
			'director': movie.directors,
			'genres': movie.genres,
			'keywords': movie.keywords,
		}.get(name)

	def _passes(self, movie: Movie, filters: Tuple[FilterClause, ...]) -> bool:
		for clause in filters:
			if isinstance(clause, GenreEquals) and clause.genre not in movie.genres:
				return False
			if isinstance(clause, YearEquals) and movie.year != clause.year:
				return False
			if isinstance(clause, MinRating) and (movie.imdb_rating is None or movie.imdb_rating < clause.rating):
				return False
		return True

	def _metadata(self, movies: List[Movie]) -> List[Dict[str, Any]]:
		"""Same record the Atlas $group stage emits; empty list when nothing matched."""
		if not movies:
			return []
		ratings = [m.imdb_rating for m in movies if m.imdb_rating is not None]
		genre_sets: List[List[str]] = []
		for m in movies:
			if m.genres not in genre_sets:
				genre_sets.append(list(m.genres))
		return [{
			'totalCount': len(movies),
			'avgRating': sum(ratings) / len(ratings) if ratings else None,
			'genres': genre_sets,
			'years': sorted({m.year for m in movies if m.year is not None}),
		}]

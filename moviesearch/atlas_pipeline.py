"""
MongoDB Atlas Search serializer.
Translates a QueryPlan into an aggregation pipeline executed in one round trip:
$search (compound "should" of boosted operators) -> score field -> $match
filters -> candidate cap -> $facet (movie list + metadata aggregate).
"""

from typing import Any, Dict, List  # type hints

# Import the plan and clause types the serializer translates
from .models import (
	AutocompleteMatch,
	FilterClause,
	FuzzyTextMatch,
	GenreEquals,
	MatchClause,
	MinRating,
	PlainTextMatch,
	QueryPlan,
	SCORE_FIELD,
	SortKey,
	YearEquals,
)

# Logical field names -> paths in the stored mflix documents
FIELD_PATHS: Dict[str, str] = {
	'actors': 'cast',
	'director': 'directors',
	'imdbRating': 'imdb.rating',
}


def converted(path: Any, to: str) -> Dict[str, Any]:
	"""$convert that yields null for values of the wrong type (mflix has `imdb.rating: ""`)."""
	return {'$convert': {'input': path, 'to': to, 'onError': None, 'onNull': None}}


# Numeric views of the stored fields; years like "2014è" keep their first four characters
RATING_EXPR = converted('$imdb.rating', 'double')
RUNTIME_EXPR = converted('$runtime', 'int')
YEAR_EXPR = converted({'$substrCP': [{'$toString': '$year'}, 0, 4]}, 'int')

# Public item shape; `_id` is always exposed as a string `id`
MOVIE_PROJECTION: Dict[str, Any] = {
	'_id': 0,
	'id': {'$toString': '$_id'},
	'title': 1,
	'plot': 1,
	'poster': 1,  # image URL
	'year': YEAR_EXPR,
	'runtime': RUNTIME_EXPR,
	'genres': 1,
	'director': {'$arrayElemAt': ['$directors', 0]},  # first credited director
	'actors': '$cast',  # renamed from the stored field
	'imdbRating': RATING_EXPR,
	SCORE_FIELD: 1,  # stripped before results leave the service
}

SUGGESTION_PROJECTION: Dict[str, Any] = {
	'_id': 0,
	'id': {'$toString': '$_id'},
	'title': 1,
	'year': 1,  # already numeric, see autocomplete_pipeline
}


# Atlas Search index the pipelines query; title is indexed twice so both the
# text (fuzzy) and autocomplete operators can target it
SEARCH_INDEX_DEFINITION: Dict[str, Any] = {
	'mappings': {
		'dynamic': False,
		'fields': {
			'title': [
				{'type': 'string'},
				{
					'type': 'autocomplete',
					'tokenization': 'edgeGram',
					'minGrams': 2,  # matches as soon as two letters are typed
					'maxGrams': 15,
					'foldDiacritics': True,
				},
			],
			'plot': {'type': 'string'},
			'cast': {'type': 'string'},
			'directors': {'type': 'string'},
			'genres': {'type': 'string'},
			'keywords': {'type': 'string'},
		},
	}
}


def field_path(name: str) -> str:
	return FIELD_PATHS.get(name, name)


def _paths(fields) -> Any:
	paths = [field_path(f) for f in fields]
	return paths[0] if len(paths) == 1 else paths


def _boost(value: float) -> Dict[str, Any]:
	return {'boost': {'value': value}}


def match_operator(clause: MatchClause, text: str) -> Dict[str, Any]:
	"""One Atlas Search operator for one match clause."""
	if isinstance(clause, FuzzyTextMatch):
		return {
			'text': {
				'query': text,
				'path': _paths(clause.fields),
				'fuzzy': {
					'maxEdits': clause.max_edits,
					'prefixLength': clause.prefix_length,
				},
				'score': _boost(clause.boost),
			}
		}
	if isinstance(clause, AutocompleteMatch):
		return {
			'autocomplete': {
				'query': text,
				'path': field_path(clause.field),
				'score': _boost(clause.boost),
			}
		}
	if isinstance(clause, PlainTextMatch):
		return {
			'text': {
				'query': text,
				'path': _paths(clause.fields),
				'score': _boost(clause.boost),
			}
		}
	raise TypeError(f"Unsupported match clause: {clause!r}")


def filter_conditions(filters: List[FilterClause]) -> Dict[str, Any]:
	"""$match document for the post-match filters (empty when none apply)."""
	conditions: Dict[str, Any] = {}
	for clause in filters:
		if isinstance(clause, GenreEquals):
			conditions['genres'] = clause.genre  # array field: equality means "contains"
		elif isinstance(clause, YearEquals):
			conditions['year'] = clause.year
		elif isinstance(clause, MinRating):
			conditions[field_path('imdbRating')] = {'$gte': clause.rating}
		else:
			raise TypeError(f"Unsupported filter clause: {clause!r}")
	return conditions


def sort_stage(sort: SortKey) -> Dict[str, int]:
	# Sorts run on projected or added fields, so logical names are the paths
	return {name: direction for name, direction in sort}


def search_stage(plan: QueryPlan, index_name: str) -> Dict[str, Any]:
	return {
		'$search': {
			'index': index_name,
			'compound': {
				'should': [match_operator(c, plan.text) for c in plan.matches],
				'minimumShouldMatch': 1,
			},
		}
	}


def metadata_facet() -> List[Dict[str, Any]]:
	# Genres are collected per document (arrays of arrays); flattening happens when shaping
	return [
		{
			'$group': {
				'_id': None,
				'totalCount': {'$sum': 1},
				'avgRating': {'$avg': RATING_EXPR},
				'genres': {'$addToSet': '$genres'},
				'years': {'$addToSet': YEAR_EXPR},
			}
		},
		{'$project': {'_id': 0}},
	]


def search_pipeline(plan: QueryPlan, index_name: str, candidate_cap: int) -> List[Dict[str, Any]]:
	"""Pipeline for the full search; the result is a single facet document."""
	pipeline: List[Dict[str, Any]] = [
		search_stage(plan, index_name),
		{'$addFields': {SCORE_FIELD: {'$meta': 'searchScore'}}},
	]
	conditions = filter_conditions(list(plan.filters))
	if conditions:
		pipeline.append({'$match': conditions})
	pipeline.append({'$limit': candidate_cap})  # counts filtered candidates only

	facets: Dict[str, Any] = {
		'movies': [
			{'$project': MOVIE_PROJECTION},
			{'$sort': sort_stage(plan.sort)},
		],
	}
	if plan.include_metadata:
		facets['metadata'] = metadata_facet()
	if plan.limit is not None:
		facets['movies'].append({'$limit': plan.limit})
	pipeline.append({'$facet': facets})
	return pipeline


def autocomplete_pipeline(plan: QueryPlan, index_name: str) -> List[Dict[str, Any]]:
	"""Pipeline for title suggestions; yields plain suggestion documents."""
	pipeline: List[Dict[str, Any]] = [
		search_stage(plan, index_name),
		{'$addFields': {
			SCORE_FIELD: {'$meta': 'searchScore'},
			'imdbRating': RATING_EXPR,
			'year': YEAR_EXPR,
		}},
	]
	if plan.sort:
		pipeline.append({'$sort': sort_stage(plan.sort)})
	if plan.limit is not None:
		pipeline.append({'$limit': plan.limit})
	pipeline.append({'$project': SUGGESTION_PROJECTION})
	return pipeline

"""
Tests for MongoSearchBackend against a mocked pymongo client.
"""

from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import ExecutionTimeout, ServerSelectionTimeoutError

from moviesearch.atlas_pipeline import RATING_EXPR
from moviesearch.errors import EngineError
from moviesearch.mongodb_client import MongoSearchBackend
from moviesearch.query_builder import QueryPlanBuilder


@pytest.fixture
def mongo():
	client = MagicMock()
	backend = MongoSearchBackend('mongodb://unused', 'sample_mflix', 'movies', 'moviesIndex',
		candidate_cap=20, timeout_ms=1500, client=client)
	return backend, backend.collection


def test_search_runs_one_bounded_aggregate(mongo):
	backend, collection = mongo
	collection.aggregate.return_value = iter([{'movies': [], 'metadata': []}])

	result = backend.run_search(QueryPlanBuilder().build('matrix'))

	assert result == {'movies': [], 'metadata': []}
	assert collection.aggregate.call_count == 1
	pipeline = collection.aggregate.call_args.args[0]
	assert pipeline[0]['$search']['index'] == 'moviesIndex'
	assert {'$limit': 20} in pipeline
	assert collection.aggregate.call_args.kwargs == {'maxTimeMS': 1500}


def test_timeout_maps_to_engine_error(mongo):
	backend, collection = mongo
	collection.aggregate.side_effect = ExecutionTimeout('operation exceeded time limit', 50)
	with pytest.raises(EngineError) as exc_info:
		backend.run_search(QueryPlanBuilder().build('matrix'))
	assert exc_info.value.message == 'Search engine timed out'
	assert 'time limit' in exc_info.value.error


def test_driver_error_maps_to_engine_error(mongo):
	backend, collection = mongo
	collection.aggregate.side_effect = ServerSelectionTimeoutError('no servers')
	with pytest.raises(EngineError):
		backend.run_autocomplete(QueryPlanBuilder().build_autocomplete('mat', 5))


def test_missing_facet_document(mongo):
	backend, collection = mongo
	collection.aggregate.return_value = iter([])
	with pytest.raises(EngineError):
		backend.run_search(QueryPlanBuilder().build('matrix'))


def test_find_movie_uses_object_id(mongo):
	backend, collection = mongo
	collection.aggregate.return_value = iter([{'id': '573a139bf29313caabcf3d23', 'title': 'The Matrix'}])

	movie = backend.find_movie('573a139bf29313caabcf3d23')

	assert movie['title'] == 'The Matrix'
	match = collection.aggregate.call_args.args[0][0]['$match']
	assert match == {'_id': ObjectId('573a139bf29313caabcf3d23')}
	projection = collection.aggregate.call_args.args[0][-1]['$project']
	assert 'relevanceScore' not in projection


def test_find_related_without_genres(mongo):
	backend, collection = mongo
	assert backend.find_related([], 'x', 5) == []
	collection.aggregate.assert_not_called()


def test_ping(mongo):
	backend, _ = mongo
	assert backend.ping() is True
	backend.client.admin.command.side_effect = ServerSelectionTimeoutError('down')
	assert backend.ping() is False


def test_find_related_sorts_on_converted_rating(mongo):
	backend, collection = mongo
	collection.aggregate.return_value = iter([])

	backend.find_related(['Action'], '573a139bf29313caabcf3d23', 5)

	pipeline = collection.aggregate.call_args.args[0]
	assert [next(iter(stage)) for stage in pipeline] == ['$match', '$project', '$sort', '$limit']
	assert pipeline[1]['$project']['imdbRating'] == RATING_EXPR
	assert pipeline[2] == {'$sort': {'imdbRating': -1, 'id': 1}}
	assert pipeline[3] == {'$limit': 5}

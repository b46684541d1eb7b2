"""
Tests for DataLoader: mflix documents from JSONL into Movie read models.
"""

import json

import pytest
from bson import ObjectId

from moviesearch.data_loader import DataLoader, coerce_float, coerce_int

from conftest import MOVIES_PATH


def test_data_loading(movies):
	"""Sample dataset loads completely with nested imdb ratings and ObjectId ids."""
	assert len(movies) == 16
	matrix = movies[0]
	assert matrix.id == '573a139bf29313caabcf3d23'
	assert matrix.title == 'The Matrix'
	assert matrix.genres == ['Action', 'Sci-Fi']
	assert matrix.directors == ['Lana Wachowski', 'Lilly Wachowski']
	assert matrix.imdb_rating == 8.7
	assert matrix.year == 1999


def test_flat_field_variants():
	movie = DataLoader().parse_movie({
		'id': 42,
		'title': 'Flat',
		'actors': 'A One, B Two',
		'director': 'Some Director',
		'imdbRating': '7.1',
		'year': '2014è',
	})
	assert movie.id == '42'
	assert movie.cast == ['A One', 'B Two']
	assert movie.directors == ['Some Director']
	assert movie.imdb_rating == 7.1
	assert movie.year == 2014


def test_to_item_projection(movies):
	item = movies[0].to_item()
	assert item['director'] == 'Lana Wachowski'
	assert item['actors'][0] == 'Keanu Reeves'
	assert item['imdbRating'] == 8.7
	assert 'relevanceScore' not in item


def test_to_document_round_trip_fields(movies):
	doc = DataLoader().to_document(movies[0])
	assert doc['imdb']['rating'] == 8.7
	assert doc['cast'][0] == 'Keanu Reeves'
	assert doc['_id'] == ObjectId('573a139bf29313caabcf3d23')


def test_to_document_keeps_plain_string_ids():
	movie = DataLoader().parse_movie({'id': 'local-1', 'title': 'Fixture'})
	assert DataLoader().to_document(movie)['_id'] == 'local-1'


def test_invalid_lines_are_skipped(tmp_path):
	path = tmp_path / 'movies.jsonl'
	lines = [
		json.dumps({'_id': 'a', 'title': 'Good'}),
		'{not json',
		json.dumps({'_id': 'b'}),  # no title
		'',
		json.dumps({'_id': 'c', 'title': 'Also Good'}),
	]
	path.write_text('\n'.join(lines), encoding='utf-8')
	movies = DataLoader().load_movies_from_jsonl(str(path))
	assert [m.title for m in movies] == ['Good', 'Also Good']


def test_missing_file(tmp_path):
	with pytest.raises(FileNotFoundError):
		DataLoader().load_movies_from_jsonl(str(tmp_path / 'nope.jsonl'))


def test_documents_for_seeding():
	docs = DataLoader().load_documents_from_jsonl(str(MOVIES_PATH))
	assert len(docs) == 16
	assert all(d['type'] == 'movie' for d in docs)
	assert all(isinstance(d['_id'], ObjectId) for d in docs)


@pytest.mark.parametrize('value,expected', [(1999, 1999), (2003.0, 2003), ('2014è', 2014), ('', None), (None, None), ('n/a', None), (True, None), (float('nan'), None)])
def test_coerce_int(value, expected):
	assert coerce_int(value) == expected


@pytest.mark.parametrize('value,expected', [(8.7, 8.7), (7, 7.0), ('6.5', 6.5), ('', None), (None, None), ('n/a', None), (float('inf'), None)])
def test_coerce_float(value, expected):
	assert coerce_float(value) == expected

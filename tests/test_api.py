"""
HTTP-level tests for the FastAPI routes (local backend / canned backend).
"""

from conftest import FakeBackend, facet_result, make_items


def test_health(client):
	body = client.get('/health').json()
	assert body['status'] == 'ok'
	assert body['backend'] == 'local'
	assert body['engine_ready'] is True


def test_search_envelope(client):
	response = client.get('/movies/search', params={'q': 'matrix', 'limit': 2})
	assert response.status_code == 200
	body = response.json()
	assert body['success'] is True
	data = body['data']
	assert [m['title'] for m in data['movies']] == ['The Matrix', 'The Matrix Reloaded']
	assert all('relevanceScore' not in m for m in data['movies'])
	assert data['metadata']['totalCount'] == 3
	assert data['pagination'] == {
		'currentPage': 1,
		'totalPages': 2,
		'totalResults': 3,
		'hasNextPage': True,
		'hasPrevPage': False,
	}


def test_search_filters_and_sort(client):
	params = {'q': 'keanu', 'genre': 'Crime', 'sortBy': 'title'}
	movies = client.get('/movies/search', params=params).json()['data']['movies']
	assert [m['title'] for m in movies] == ['John Wick', 'Speed']


def test_search_missing_query(client):
	response = client.get('/movies/search')
	assert response.status_code == 400
	assert response.json() == {'success': False, 'message': 'Query parameter required'}


def test_search_bad_pagination(client):
	for params in ({'q': 'matrix', 'page': 0}, {'q': 'matrix', 'limit': 'ten'}, {'q': 'matrix', 'limit': 0}):
		response = client.get('/movies/search', params=params)
		assert response.status_code == 400
		assert response.json() == {'success': False, 'message': 'Invalid pagination parameters'}


def test_search_bad_filter(client):
	response = client.get('/movies/search', params={'q': 'matrix', 'rating': 'high'})
	assert response.status_code == 400
	assert response.json()['success'] is False


def test_search_engine_failure(fake_client):
	client = fake_client(FakeBackend(error=RuntimeError('connection refused')))
	response = client.get('/movies/search', params={'q': 'matrix'})
	assert response.status_code == 500
	assert response.json() == {
		'success': False,
		'message': 'Error performing search',
		'error': 'connection refused',
	}


def test_search_second_page(fake_client):
	client = fake_client(FakeBackend(facet_result(make_items(12))))
	data = client.get('/movies/search', params={'q': 'matrix', 'page': 2, 'limit': 5}).json()['data']
	assert [m['id'] for m in data['movies']] == ['m5', 'm6', 'm7', 'm8', 'm9']
	assert data['pagination']['totalPages'] == 3


def test_autocomplete(client):
	response = client.get('/movies/autocomplete', params={'q': 'mat', 'limit': 5})
	assert response.status_code == 200
	data = response.json()['data']
	assert 0 < len(data['suggestions']) <= 5
	assert data['suggestions'][0] == {'id': '573a139bf29313caabcf3d23', 'title': 'The Matrix (1999)'}
	assert data['pagination'] == {'currentPage': 1, 'totalPages': 1, 'hasNextPage': False, 'hasPrevPage': False}


def test_autocomplete_missing_query(client):
	response = client.get('/movies/autocomplete')
	assert response.status_code == 400
	assert response.json()['message'] == 'Query parameter required'


def test_movie_detail_and_recommendations(client):
	movie = client.get('/movies/573a13b0f29313caabd35231').json()['data']
	assert movie['title'] == 'Inception'
	assert movie['director'] == 'Christopher Nolan'

	related = client.get('/movies/573a1397f29313caabce8347/recommendations').json()['data']['movies']
	assert [m['title'] for m in related] == ['Scream']


def test_movie_not_found(client):
	response = client.get('/movies/does-not-exist')
	assert response.status_code == 404
	assert response.json() == {'success': False, 'message': 'Movie not found'}


def test_search_with_mflix_string_values(fake_client):
	# sample_mflix stores some ratings as "" and some years as "2014è"
	items = make_items(3)
	items[0]['imdbRating'] = ''
	items[1]['year'] = '2014è'
	items[2]['runtime'] = 'n/a'
	client = fake_client(FakeBackend(facet_result(items)))

	response = client.get('/movies/search', params={'q': 'matrix'})

	assert response.status_code == 200
	movies = response.json()['data']['movies']
	assert movies[0]['imdbRating'] is None
	assert movies[1]['year'] == 2014
	assert movies[2]['runtime'] is None


def test_movie_lookups_with_mflix_string_values(fake_client):
	catalog = [
		{'id': 'a', 'title': 'Interstellar', 'year': '2014è', 'imdbRating': '', 'genres': ['Sci-Fi']},
		{'id': 'b', 'title': 'Gravity', 'year': 2013, 'runtime': '91', 'imdbRating': 7.7, 'genres': ['Sci-Fi']},
	]
	client = fake_client(FakeBackend(catalog=catalog))

	response = client.get('/movies/a')
	assert response.status_code == 200
	movie = response.json()['data']
	assert movie['year'] == 2014
	assert movie['imdbRating'] is None

	response = client.get('/movies/a/recommendations')
	assert response.status_code == 200
	related = response.json()['data']['movies']
	assert [m['title'] for m in related] == ['Gravity']
	assert related[0]['runtime'] == 91

"""
Error taxonomy for the search backend.
Each error carries the HTTP status the API layer answers with.
"""


class MovieSearchError(Exception):
	"""Base class for every error the service raises on purpose."""
	status_code = 500  # HTTP status the API answers with

	def __init__(self, message: str):
		super().__init__(message)
		self.message = message  # client-facing text


class InvalidQuery(MovieSearchError):
	"""Missing or empty search text."""
	status_code = 400


class InvalidPagination(MovieSearchError):
	"""page/limit not numeric or below 1."""
	status_code = 400


class InvalidFilter(MovieSearchError):
	"""Non-numeric year or rating filter."""
	status_code = 400


class MovieNotFound(MovieSearchError):
	status_code = 404  # unknown movie id


class EngineError(MovieSearchError):
	"""
	Storage/search engine failure, timeout, or a malformed result document.
	`error` keeps the underlying message so callers can diagnose it.
	"""
	status_code = 500

	def __init__(self, message: str, error: str = ''):
		super().__init__(message)
		self.error = error or message  # underlying driver / engine message

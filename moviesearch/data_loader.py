"""
Data loading module.
Reads mflix-shaped movie documents from JSON Lines into Movie read models.
Used by the local backend and by the collection seeding script.
"""

# Standard libs for JSON parsing, typing, and paths
import json  # read JSON lines
import math  # finite checks for stored numbers
from typing import Any, Dict, List, Optional  # type hints
from pathlib import Path  # filesystem-safe paths

# BSON ids for seeded documents
from bson import ObjectId  # mflix ids are ObjectIds

# Import our Movie data class used across the project
from .models import Movie  # structured movie record

# Console logging
from loguru import logger  # console logger


class DataLoader:
	"""
	Handles loading of movie documents.
	Accepts the field names of the mflix sample dataset as well as the flatter
	variants found in hand-written fixtures (imdbRating, actors, director).
	"""

	def load_movies_from_jsonl(self, filepath: str) -> List[Movie]:
		"""
		Load movies from a JSON Lines (JSONL) file where each line is one JSON object.
		Returns a list of Movie objects; malformed lines are logged and skipped.
		"""
		movies = []  # accumulator for parsed Movie objects
		filepath = Path(filepath)  # normalize path

		# Validate the file presence early to give clear error messages
		if not filepath.exists():
			raise FileNotFoundError(f"Movie data file not found: {filepath}")

		logger.info(f"[DataLoader] Loading movies from {filepath}...")  # log action

		with open(filepath, 'r', encoding='utf-8') as f:
			for line_num, line in enumerate(f, 1):  # keep track of line number for diagnostics
				if not line.strip():
					continue  # blank lines are allowed
				try:
					data = json.loads(line)
					movies.append(self.parse_movie(data))
				except json.JSONDecodeError as e:
					logger.warning(f"[DataLoader] Skipping invalid JSON at line {line_num}: {e}")
					continue
				except (TypeError, ValueError) as e:
					logger.warning(f"[DataLoader] Error parsing movie at line {line_num}: {e}")
					continue

		logger.info(f"[DataLoader] Successfully loaded {len(movies)} movies.")  # summary
		return movies

	def load_documents_from_jsonl(self, filepath: str) -> List[Dict[str, Any]]:
		"""Documents in storage shape (with `_id`), ready for insert_many."""
		return [self.to_document(m) for m in self.load_movies_from_jsonl(filepath)]

	def parse_movie(self, data: Dict[str, Any]) -> Movie:
		"""
		Convert a raw dictionary into a Movie.
		Raises ValueError when the document has no title or no id.
		"""
		movie_id = self._parse_id(data.get('_id', data.get('id')))
		title = (data.get('title') or '').strip()
		if not movie_id:
			raise ValueError("movie document without id")
		if not title:
			raise ValueError(f"movie {movie_id} has no title")

		imdb = data.get('imdb') if isinstance(data.get('imdb'), dict) else {}
		rating = imdb.get('rating', data.get('imdbRating'))
		votes = imdb.get('votes', data.get('imdbVotes'))

		return Movie(
			id=movie_id,
			title=title,
			plot=data.get('plot') or '',
			fullplot=data.get('fullplot') or '',
			year=coerce_int(data.get('year')),
			runtime=coerce_int(data.get('runtime')),
			poster=data.get('poster'),
			genres=self._parse_list(data.get('genres')),
			cast=self._parse_list(data.get('cast', data.get('actors'))),
			directors=self._parse_list(data.get('directors', data.get('director'))),
			imdb_rating=coerce_float(rating),
			imdb_votes=coerce_int(votes),
			keywords=self._parse_list(data.get('keywords')),
		)

	def to_document(self, movie: Movie) -> Dict[str, Any]:
		"""Storage shape of a movie (mflix field names, nested imdb)."""
		doc: Dict[str, Any] = {
			# 24-hex ids become ObjectIds so lookups match the mflix documents
			'_id': ObjectId(movie.id) if ObjectId.is_valid(movie.id) else movie.id,
			'title': movie.title,
			'plot': movie.plot,
			'fullplot': movie.fullplot,
			'type': 'movie',
			'year': movie.year,
			'runtime': movie.runtime,
			'poster': movie.poster,
			'genres': movie.genres,
			'cast': movie.cast,
			'directors': movie.directors,
			'keywords': movie.keywords,
			'imdb': {'rating': movie.imdb_rating, 'votes': movie.imdb_votes},
		}
		return {k: v for k, v in doc.items() if v is not None}

	def _parse_id(self, value: Any) -> str:
		if isinstance(value, dict):  # extended JSON {"$oid": "..."}
			value = value.get('$oid')
		return str(value).strip() if value is not None else ''

	def _parse_list(self, value: Any) -> List[str]:
		"""
		Normalize a value that may be None, a list, or a comma-separated string
		into a list of clean strings.
		"""
		if value is None:
			return []
		if isinstance(value, list):
			return [str(item).strip() for item in value if item]
		if isinstance(value, str):
			return [item.strip() for item in value.split(',') if item.strip()]
		return []


def coerce_int(value: Any) -> Optional[int]:
	"""
	Integer view of a stored number; None when there is none.
	mflix has a few years like "2014è", so the leading digits are kept.
	"""
	if value is None or value == '' or isinstance(value, bool):
		return None
	if isinstance(value, float):
		return int(value) if math.isfinite(value) else None
	if isinstance(value, int):
		return value
	digits = ''
	for ch in str(value).strip():
		if not ch.isdigit():
			break
		digits += ch
	return int(digits) if digits else None


def coerce_float(value: Any) -> Optional[float]:
	"""Float view of a stored number; empty strings (mflix `imdb.rating: ""`) become None."""
	if value is None or value == '' or isinstance(value, bool):
		return None
	try:
		number = float(value)
	except (TypeError, ValueError):
		return None
	return number if math.isfinite(number) else None

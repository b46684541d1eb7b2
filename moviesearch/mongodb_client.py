"""
MongoDB backend.
Runs query plans as Atlas Search aggregations with pymongo: one aggregate per
request, bounded server-side by maxTimeMS, driver errors turned into EngineError.
"""

from typing import Any, Dict, List, Optional  # type hints

# MongoDB driver and BSON ids
from bson import ObjectId  # mflix ids are ObjectIds
from pymongo import MongoClient  # thread-safe, process-wide client
from pymongo.errors import ExecutionTimeout, PyMongoError  # driver failures

# Import project modules for pipelines, errors and models
from .atlas_pipeline import MOVIE_PROJECTION, autocomplete_pipeline, search_pipeline  # Atlas serializer
from .backend import SearchBackend  # backend interface
from .errors import EngineError  # driver failures for callers
from .models import SCORE_FIELD, QueryPlan  # plan + internal score field

# Console logging
from loguru import logger  # console logger

# Public projection for lookups outside a $search (no score available)
ITEM_PROJECTION: Dict[str, Any] = {k: v for k, v in MOVIE_PROJECTION.items() if k != SCORE_FIELD}


class MongoSearchBackend(SearchBackend):
	"""Executes query plans as Atlas Search aggregations over the movies collection."""

	name = 'mongo'

	def __init__(
		self,
		uri: str,
		db_name: str,
		collection_name: str,
		index_name: str,
		candidate_cap: int = 20,
		timeout_ms: int = 5000,
		client: Optional[MongoClient] = None,
	):
		"""Initialize MongoDB client; `client` may be injected (tests, shared pools)."""
		self.client = client or MongoClient(
			uri,
			serverSelectionTimeoutMS=timeout_ms,
			socketTimeoutMS=timeout_ms,
		)
		self.collection = self.client[db_name][collection_name]
		self.index_name = index_name
		self.candidate_cap = candidate_cap
		self.timeout_ms = timeout_ms
		logger.info(f"[Mongo] Using {db_name}.{collection_name} with search index '{index_name}'")

	def _aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
		"""One aggregate round trip, bounded server-side by maxTimeMS."""
		try:
			return list(self.collection.aggregate(pipeline, maxTimeMS=self.timeout_ms))
		except ExecutionTimeout as e:
			logger.error(f"[Mongo] Aggregation exceeded {self.timeout_ms} ms")
			raise EngineError("Search engine timed out", str(e)) from e
		except PyMongoError as e:
			logger.error(f"[Mongo] Aggregation failed: {e}")
			raise EngineError("Error performing search", str(e)) from e

	def run_search(self, plan: QueryPlan) -> Dict[str, Any]:
		pipeline = search_pipeline(plan, self.index_name, self.candidate_cap)
		logger.debug(f"[Mongo] Search pipeline: {pipeline}")
		docs = self._aggregate(pipeline)
		# $facet always yields exactly one document
		if not docs:
			raise EngineError("Error performing search", "aggregation returned no facet document")
		return docs[0]

	def run_autocomplete(self, plan: QueryPlan) -> List[Dict[str, Any]]:
		pipeline = autocomplete_pipeline(plan, self.index_name)
		logger.debug(f"[Mongo] Autocomplete pipeline: {pipeline}")
		return self._aggregate(pipeline)

	def find_movie(self, movie_id: str) -> Optional[Dict[str, Any]]:
		docs = self._aggregate([
			{'$match': {'_id': self._id_value(movie_id)}},
			{'$limit': 1},
			{'$project': ITEM_PROJECTION},
		])
		return docs[0] if docs else None

	def find_related(self, genres: List[str], exclude_id: str, limit: int) -> List[Dict[str, Any]]:
		if not genres:
			return []
		return self._aggregate([
			{'$match': {'genres': {'$in': genres}, '_id': {'$ne': self._id_value(exclude_id)}}},
			# Sort on the converted rating, not the stored value
			{'$project': ITEM_PROJECTION},
			{'$sort': {'imdbRating': -1, 'id': 1}},
			{'$limit': limit},
		])

	def ping(self) -> bool:
		try:
			self.client.admin.command('ping')
			return True
		except PyMongoError as e:
			logger.warning(f"[Mongo] Ping failed: {e}")
			return False

	def _id_value(self, movie_id: str) -> Any:
		# mflix ids are ObjectIds; seeded fixtures may use plain strings
		return ObjectId(movie_id) if ObjectId.is_valid(movie_id) else movie_id

	def close(self):
		"""Close the MongoDB connection."""
		self.client.close()
		logger.info("[Mongo] Closed MongoDB connection")

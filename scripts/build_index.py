"""
Seed the movies collection and create its Atlas Search index.

This script:
1) Loads movies from data/movies.jsonl (or MOVIES_JSONL)
2) Replaces the documents of the configured collection with them
3) Creates the Atlas Search index the search pipelines query (if missing)

Usage:
    python -m scripts.build_index

Only needed for a fresh cluster; the mflix sample dataset already has the
documents, in which case only the index step matters.
"""

import time  # measure step timings

from loguru import logger  # console logging
from pymongo import MongoClient
from pymongo.operations import SearchIndexModel

from moviesearch.atlas_pipeline import SEARCH_INDEX_DEFINITION
from moviesearch.config import Config
from moviesearch.data_loader import DataLoader


def main():
	logger.info("=" * 60)
	logger.info("Seed Movies & Build Search Index")
	logger.info("=" * 60)

	client = MongoClient(Config.MONGO_URI, serverSelectionTimeoutMS=Config.ENGINE_TIMEOUT_MS)
	try:
		collection = client[Config.MONGO_DB_NAME][Config.MONGO_COLLECTION]

		# 1) Load data
		logger.info(f"[1/3] Loading movies from {Config.MOVIES_JSONL}...")
		docs = DataLoader().load_documents_from_jsonl(Config.MOVIES_JSONL)
		logger.info(f"[OK] Loaded {len(docs)} movies")

		# 2) Replace collection contents
		logger.info(f"[2/3] Writing {Config.MONGO_DB_NAME}.{Config.MONGO_COLLECTION}...")
		t0 = time.time()
		collection.delete_many({})
		if docs:
			collection.insert_many(docs)
		logger.info(f"[OK] Inserted {len(docs)} documents in {time.time() - t0:.2f}s")

		# 3) Search index
		logger.info(f"[3/3] Ensuring search index '{Config.SEARCH_INDEX}'...")
		existing = {ix.get('name') for ix in collection.list_search_indexes()}
		if Config.SEARCH_INDEX in existing:
			logger.info("[OK] Index already present; Atlas keeps it in sync with the new documents")
		else:
			collection.create_search_index(
				SearchIndexModel(definition=SEARCH_INDEX_DEFINITION, name=Config.SEARCH_INDEX)
			)
			logger.info("[OK] Index creation requested (Atlas builds it asynchronously)")
	finally:
		client.close()

	logger.info("=" * 60)


if __name__ == '__main__':
	main()

import os

from dotenv import load_dotenv

# Pick up a local .env before reading any setting
load_dotenv()


class Config:
	# Server Configuration
	HOST: str = os.getenv("HOST", "0.0.0.0")
	PORT: int = int(os.getenv("PORT", "5000"))

	# Which engine executes search plans: "mongo" (Atlas Search) or "local" (JSONL in memory)
	SEARCH_BACKEND: str = os.getenv("SEARCH_BACKEND", "mongo")

	# MongoDB Configuration
	MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017/")
	MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "sample_mflix")
	MONGO_COLLECTION: str = os.getenv("MONGO_COLLECTION", "movies")
	SEARCH_INDEX: str = os.getenv("SEARCH_INDEX", "moviesIndex")

	# Search Parameters
	# The engine returns at most this many candidates; pages are cut from them in memory
	SEARCH_CANDIDATE_CAP: int = int(os.getenv("SEARCH_CANDIDATE_CAP", "20"))
	AUTOCOMPLETE_CAP: int = int(os.getenv("AUTOCOMPLETE_CAP", "10"))
	ENGINE_TIMEOUT_MS: int = int(os.getenv("ENGINE_TIMEOUT_MS", "5000"))

	# Local dataset (used by the local backend and the seeding script)
	MOVIES_JSONL: str = os.getenv("MOVIES_JSONL", "data/movies.jsonl")

	# Logging
	LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

"""
utils/config.py
----------------
Centralized configuration and the Pinecone client.

Everything is read from the environment (optionally via a local .env file).
The Pinecone client is created lazily so the UI, CLI and tests can import
this module without credentials.
"""
import os
from functools import lru_cache
from dotenv import load_dotenv
from pinecone import Pinecone

load_dotenv()

# --- Pinecone ---
PINECONE_API_KEY = os.getenv("PINECONE_API_KEY")
# Only a default for the index input; the viewer can switch indexes at runtime.
PINECONE_INDEX_NAME = os.getenv("PINECONE_INDEX_NAME", "")

# --- Local storage ---
STARRED_DB_PATH = os.getenv("STARRED_DB_PATH", "./data/starred_namespaces.db")
CLIENT_STATE_PATH = os.getenv("CLIENT_STATE_PATH", "./.viewer_state.json")

# --- Paging ---
PAGE_SIZE = 50
MAX_PAGE_LIMIT = 100
NAMESPACE_PAGE_LIMIT = 100

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


@lru_cache(maxsize=1)
def get_pinecone() -> Pinecone:
    if not PINECONE_API_KEY:
        raise RuntimeError("PINECONE_API_KEY not set. Create a .env from .env.example")
    return Pinecone(api_key=PINECONE_API_KEY)


@lru_cache(maxsize=32)
def get_index(index_name: str):
    """Return a (cached) data-plane handle for `index_name`."""
    return get_pinecone().Index(index_name)

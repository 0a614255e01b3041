"""
Shared MongoDB connection for the stuck-item checks.

One MongoClient per process, created on first use and reused afterwards.
MongoClient keeps its own pool, so callers just ask for the db handle per request.
"""

import logging
import os
import threading
from urllib.parse import quote_plus

from dotenv import load_dotenv
from pymongo import MongoClient

load_dotenv()

logger = logging.getLogger(__name__)


# --- Connection config from .env ---

MONGO_URI = os.getenv('MONGO_URI')  # optional full URI
MONGO_USER = os.getenv('mongo_DB_user')
MONGO_PASS = os.getenv('mongo_DB_pass')
MONGO_HOST = os.getenv('mongo_DB_host')
MONGO_DB_NAME = os.getenv('MONGO_DB_NAME')

DEFAULT_DB_NAME = 'stuckwatch'
LOCAL_URI = 'mongodb://localhost:27017'

# Client singleton
_client = None
_client_lock = threading.Lock()


def build_uri(uri=None, user=None, password=None, host=None):
    """Pick the connection URI: full URI, then Atlas parts, then localhost."""
    if uri:
        return uri
    if user and password and host:
        user_enc = quote_plus(user)
        pass_enc = quote_plus(password)
        return f"mongodb+srv://{user_enc}:{pass_enc}@{host}/?retryWrites=true&w=majority"
    logger.warning("No Mongo credentials found, trying localhost")
    return LOCAL_URI


def get_client():
    """Get or create the MongoClient singleton."""
    global _client
    if _client is not None:
        return _client
    with _client_lock:
        if _client is not None:
            return _client
        uri = build_uri(MONGO_URI, MONGO_USER, MONGO_PASS, MONGO_HOST)
        # MongoClient connects lazily; the first query pays for server selection
        _client = MongoClient(uri)
        logger.info("MongoDB client created")
        return _client


def get_db(db_name=None):
    """Database handle on the shared client.

    Explicit name wins, then MONGO_DB_NAME, then the database in the URI path.
    """
    client = get_client()
    name = db_name or MONGO_DB_NAME
    if name:
        return client[name]
    return client.get_default_database(default=DEFAULT_DB_NAME)


def close_client():
    """Close the shared client; the next get_client() reconnects."""
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
            _client = None

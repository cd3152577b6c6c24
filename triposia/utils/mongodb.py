"""Access to the MongoDB database holding airports, airlines, routes and blogs."""

import functools
import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

VALID_URI_SCHEMES = ("mongodb://", "mongodb+srv://")


class DataAccessError(Exception):
    """Raised when the document store cannot be reached or a query fails."""


def validate_mongodb_uri(uri: str) -> str:
    """
    Check that a connection string uses a MongoDB scheme.

    Raises:
        ImproperlyConfigured: If the URI is empty or has another scheme
    """
    uri = (uri or "").strip()
    if not uri.startswith(VALID_URI_SCHEMES):
        msg = "MONGODB_URI must start with mongodb:// or mongodb+srv://"
        raise ImproperlyConfigured(msg)
    return uri


@functools.cache
def get_client() -> MongoClient:
    """Create the process-wide client. Connections are opened lazily by pymongo."""
    uri = validate_mongodb_uri(settings.MONGODB_URI)
    timeout_ms = getattr(settings, "MONGODB_TIMEOUT_MS", 8000)
    return MongoClient(
        uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        socketTimeoutMS=timeout_ms,
        maxPoolSize=getattr(settings, "MONGODB_MAX_POOL_SIZE", 2),
        minPoolSize=0,
        maxIdleTimeMS=20000,
        retryReads=True,
        retryWrites=True,
        appname="triposia",
    )


def get_database() -> Database:
    """
    Return a handle to the configured database.

    Raises:
        DataAccessError: If the client cannot be created
    """
    try:
        client = get_client()
        return client[settings.MONGODB_DATABASE]
    except PyMongoError as e:
        logger.exception(
            "Failed to open MongoDB database",
            extra={"database": settings.MONGODB_DATABASE},
        )
        msg = f"Database unavailable: {e!s}"
        raise DataAccessError(msg) from e


def find_documents(
    db: Database,
    collection_name: str,
    query: dict,
    *,
    limit: int,
    sort: list[tuple[str, int]] | None = None,
    skip: int = 0,
) -> list[dict]:
    """
    Run a filtered, limited query and materialize the result.

    Raises:
        DataAccessError: If the query fails or times out
    """
    try:
        cursor = db[collection_name].find(query)
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        return list(cursor.limit(limit))
    except PyMongoError as e:
        logger.exception(
            "MongoDB query failed",
            extra={"collection": collection_name, "limit": limit, "skip": skip},
        )
        msg = f"Query on '{collection_name}' failed: {e!s}"
        raise DataAccessError(msg) from e

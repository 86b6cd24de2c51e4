"""Document store connection and lifecycle management.

This module wraps the MongoDB client in an explicit :class:`Database`
handle that is acquired on application startup, shared through the
``get_db`` dependency, and released on shutdown.
"""

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.server_api import ServerApi

from .core import Settings
from .logging_config import get_logger
from . import models

logger = get_logger(__name__)


class Database:
    """
    Handle on the collections backing the API.

    Args:
        client: ``MongoClient`` or a compatible client (e.g. mongomock in tests).
        name (str): Database name.
    """

    def __init__(self, client, name: str):
        self.client = client
        self.db = client[name]

    @property
    def users(self):
        """Collection of user profiles."""
        return self.db[models.USERS]

    @property
    def reviews(self):
        """Collection of game reviews."""
        return self.db[models.REVIEWS]

    @property
    def watchlist(self):
        """Collection of watchlist entries."""
        return self.db[models.WATCHLIST]

    def ensure_indexes(self) -> None:
        """
        Declare the indexes the API relies on.

        The unique indexes on ``users.email`` and on the watchlist
        ``(userEmail, reviewId)`` pair back the duplicate checks.
        """
        self.reviews.create_index([("rating", DESCENDING), ("createdAt", DESCENDING)])
        self.reviews.create_index([("userEmail", ASCENDING)])
        self.watchlist.create_index(
            [("userEmail", ASCENDING), ("reviewId", ASCENDING)], unique=True
        )
        self.users.create_index([("email", ASCENDING)], unique=True)

    def ping(self) -> bool:
        """Return ``True`` when the server answers the ``ping`` command."""
        response = self.client.admin.command("ping")
        return bool(response.get("ok"))

    def close(self) -> None:
        """Release the underlying client."""
        self.client.close()


def connect(settings: Settings) -> Database:
    """
    Create a :class:`Database` from application settings.

    Args:
        settings (Settings): Application settings.

    Returns:
        Database: Handle bound to ``settings.DATABASE_NAME``.
    """
    client = MongoClient(
        settings.mongodb_uri(),
        server_api=ServerApi("1"),
        serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
    )
    logger.info("database_client_created", database=settings.DATABASE_NAME)
    return Database(client, settings.DATABASE_NAME)


def get_db(request: Request) -> Database:
    """
    Provide the application's :class:`Database` handle.

    This function is used as a FastAPI dependency.
    """
    return request.app.state.database

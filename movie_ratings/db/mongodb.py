"""
MongoDB connection management.

The store handle is an explicit object: it is created once by the process
entry point (FastAPI lifespan or a CLI main), passed into repositories and
services, and closed on shutdown.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import ReadPreference
from pymongo.errors import PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from movie_ratings.core.config import Config, config as default_config
from movie_ratings.core.errors import (
    UNKNOWN_COMMIT_RESULT_LABEL,
    StoreUnavailableError,
    translate_store_errors,
)
from movie_ratings.core.logger import logger

COMMIT_ATTEMPTS = 3


class MongoStore:
    """Database connection manager"""

    def __init__(self, settings: Optional[Config] = None, client: Optional[AsyncIOMotorClient] = None):
        self.settings = settings or default_config
        self.client: Optional[AsyncIOMotorClient] = client
        self.database: Optional[AsyncIOMotorDatabase] = None
        if client is not None:
            self.database = client[self.settings.mongodb_database]

    async def connect(self) -> "MongoStore":
        """Create the client and verify the server answers a ping."""
        if self.database is not None:
            return self

        logger.info(
            "Connecting to MongoDB...",
            metadata={"event": "mongodb_connect_attempt", "database": self.settings.mongodb_database}
        )

        timeout = self.settings.mongodb_timeout_ms
        self.client = AsyncIOMotorClient(
            self.settings.mongodb_uri,
            serverSelectionTimeoutMS=timeout,
            socketTimeoutMS=timeout,
        )
        self.database = self.client[self.settings.mongodb_database]

        try:
            await self.ping()
        except StoreUnavailableError:
            self.client.close()
            self.client = None
            self.database = None
            raise

        logger.info(
            f"Successfully connected to MongoDB database '{self.settings.mongodb_database}'",
            metadata={"event": "mongodb_connected", "database": self.settings.mongodb_database}
        )
        return self

    async def close(self) -> None:
        """Close database connection"""
        if self.client is not None:
            logger.info("Closing connection to MongoDB...")
            self.client.close()
        self.client = None
        self.database = None

    async def __aenter__(self) -> "MongoStore":
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def ping(self) -> None:
        self._require_database()
        with translate_store_errors("ping"):
            await self.client.admin.command("ping")

    def _require_database(self) -> AsyncIOMotorDatabase:
        if self.database is None:
            raise StoreUnavailableError("Database not connected. Call connect() first.")
        return self.database

    @property
    def movies(self) -> AsyncIOMotorCollection:
        return self._require_database()[self.settings.movies_collection]

    @property
    def ratings(self) -> AsyncIOMotorCollection:
        return self._require_database()[self.settings.ratings_collection]

    async def start_session(self) -> AsyncIOMotorClientSession:
        self._require_database()
        return await self.client.start_session()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncIOMotorClientSession]:
        """
        Yield a session with an open transaction.

        The transaction commits when the block exits normally and aborts when
        it raises. A commit whose outcome is unknown is retried as a commit;
        any other retry is left to the caller so it can restart the whole
        unit of work.
        """
        session = await self.start_session()
        try:
            session.start_transaction(
                read_concern=ReadConcern("snapshot"),
                write_concern=WriteConcern("majority"),
                read_preference=ReadPreference.PRIMARY,
                max_commit_time_ms=self.settings.mongodb_timeout_ms,
            )
            try:
                yield session
            except BaseException:
                await self._abort(session)
                raise
            await self._commit(session)
        finally:
            await session.end_session()

    async def _commit(self, session: AsyncIOMotorClientSession) -> None:
        with translate_store_errors("commit transaction"):
            for attempt in range(1, COMMIT_ATTEMPTS + 1):
                try:
                    await session.commit_transaction()
                    return
                except PyMongoError as e:
                    if attempt < COMMIT_ATTEMPTS and e.has_error_label(UNKNOWN_COMMIT_RESULT_LABEL):
                        logger.warning(
                            "Transaction commit result unknown, retrying commit",
                            metadata={"event": "transaction_commit_retry", "attempt": attempt}
                        )
                        continue
                    raise

    async def _abort(self, session: AsyncIOMotorClientSession) -> None:
        if not session.in_transaction:
            return
        try:
            await session.abort_transaction()
        except PyMongoError as e:
            # The server discards the transaction on its own once it times out
            logger.warning(
                "Failed to abort transaction",
                metadata={"event": "transaction_abort_failed", "error": str(e)}
            )

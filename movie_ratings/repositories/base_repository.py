"""
Base repository pattern for MongoDB data access.

Provides generic operations for MongoDB collections with async/await support.
Every call accepts an optional session so it can join a transaction.
Domain repositories inherit from BaseRepository.
"""

from typing import Any, Dict, List, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorCollection

from movie_ratings.core.errors import translate_store_errors
from movie_ratings.core.logger import logger


class BaseRepository:
    """
    Base repository providing generic operations for a MongoDB collection.

    Usage:
        class MovieRepository(BaseRepository):
            def __init__(self, collection: AsyncIOMotorCollection):
                super().__init__(collection)
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection
        self.collection_name = collection.name

    async def insert_one(
        self,
        document: Dict[str, Any],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Any:
        """
        Insert a document.

        Returns:
            The inserted document's _id
        """
        with translate_store_errors(f"insert into {self.collection_name}"):
            result = await self.collection.insert_one(document, session=session)

        logger.debug(
            f"Document created in {self.collection_name}",
            metadata={
                "collection": self.collection_name,
                "documentId": str(result.inserted_id)
            }
        )
        return result.inserted_id

    async def find_one(
        self,
        query: Dict[str, Any],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Optional[Dict[str, Any]]:
        with translate_store_errors(f"find in {self.collection_name}"):
            return await self.collection.find_one(query, session=session)

    async def find_many(
        self,
        query: Dict[str, Any],
        projection: Optional[Dict[str, Any]] = None,
        sort: Optional[Sequence[tuple]] = None,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> List[Dict[str, Any]]:
        """
        Find every document matching query.

        Args:
            query: MongoDB query filter
            projection: Optional field projection
            sort: Sort specification
            session: Optional session (joins its transaction)

        Returns:
            List[Dict]: matching documents
        """
        with translate_store_errors(f"find in {self.collection_name}"):
            cursor = self.collection.find(query, projection, session=session)
            if sort:
                cursor = cursor.sort(list(sort))
            documents = await cursor.to_list(length=None)

        logger.debug(
            f"Found {len(documents)} documents in {self.collection_name}",
            metadata={"collection": self.collection_name, "count": len(documents)}
        )
        return documents

    async def update_one(
        self,
        query: Dict[str, Any],
        update: Dict[str, Any],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> int:
        """
        Returns:
            int: number of matched documents
        """
        with translate_store_errors(f"update in {self.collection_name}"):
            result = await self.collection.update_one(query, update, session=session)
        return result.matched_count

    async def delete_many(
        self,
        query: Dict[str, Any],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> int:
        with translate_store_errors(f"delete from {self.collection_name}"):
            result = await self.collection.delete_many(query, session=session)

        logger.debug(
            f"Deleted {result.deleted_count} documents from {self.collection_name}",
            metadata={"collection": self.collection_name, "count": result.deleted_count}
        )
        return result.deleted_count



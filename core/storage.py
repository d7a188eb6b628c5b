"""Graph store: whole-graph persistence in MongoDB, keyed by graph id."""

import uuid
from functools import lru_cache
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from core.config import settings
from core.exceptions import StorageException
from core.logging_config import get_logger
from schemas.graph import Graph, GraphInit, utc_now

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_mongo_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.mongo_url)


def _to_document(graph: Graph) -> Dict[str, Any]:
    document = graph.model_dump(mode="json")
    document["_id"] = document.pop("id")
    return document


def _from_document(document: Dict[str, Any]) -> Graph:
    data = dict(document)
    data["id"] = str(data.pop("_id"))
    return Graph.model_validate(data)


class GraphStore:
    """
    CRUD over whole graphs. The store has no schema awareness: a graph is
    written and read back as a single document.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self._collection = collection

    async def get_all(self) -> List[Graph]:
        """
        Get all graphs, newest first.

        Raises:
            StorageException: If the store cannot be read
        """
        try:
            documents = await self._collection.find({}).to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Error listing graphs: {e}")
            raise StorageException(f"Failed to list graphs: {str(e)}") from e
        graphs = [_from_document(d) for d in documents]
        graphs.sort(key=lambda g: g.created_at, reverse=True)
        logger.debug(f"Retrieved {len(graphs)} graphs")
        return graphs

    async def get(self, graph_id: str) -> Optional[Graph]:
        try:
            document = await self._collection.find_one({"_id": graph_id})
        except PyMongoError as e:
            logger.error(f"Error retrieving graph {graph_id}: {e}")
            raise StorageException(f"Failed to retrieve graph: {str(e)}") from e
        if document is None:
            logger.debug(f"Graph {graph_id} not found")
            return None
        return _from_document(document)

    async def create(self, partial: GraphInit, graph_id: Optional[str] = None) -> str:
        """
        Create a graph from a partial definition.

        Args:
            partial: Name and optional initial tables/links
            graph_id: Fixed identifier (used for example graphs); a new one
                is allocated when omitted

        Returns:
            The graph identifier
        """
        now = utc_now()
        graph = Graph(
            id=graph_id or uuid.uuid4().hex,
            name=partial.name,
            tables=partial.tables,
            links=partial.links,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._collection.insert_one(_to_document(graph))
        except PyMongoError as e:
            logger.error(f"Error creating graph {graph.id}: {e}")
            raise StorageException(f"Failed to create graph: {str(e)}") from e
        logger.info(f"Created graph {graph.id} ({graph.name!r})")
        return graph.id

    async def save(self, graph: Graph) -> None:
        """Write a whole graph, replacing the stored version."""
        try:
            await self._collection.replace_one({"_id": graph.id}, _to_document(graph), upsert=True)
        except PyMongoError as e:
            logger.error(f"Error saving graph {graph.id}: {e}")
            raise StorageException(f"Failed to save graph: {str(e)}") from e
        logger.info(f"Saved graph {graph.id} with {len(graph.tables)} tables and {len(graph.links)} links")

    async def delete(self, graph_id: str) -> None:
        try:
            await self._collection.delete_one({"_id": graph_id})
        except PyMongoError as e:
            logger.error(f"Error deleting graph {graph_id}: {e}")
            raise StorageException(f"Failed to delete graph: {str(e)}") from e
        logger.info(f"Deleted graph {graph_id}")

    async def delete_all(self) -> None:
        try:
            result = await self._collection.delete_many({})
        except PyMongoError as e:
            logger.error(f"Error deleting all graphs: {e}")
            raise StorageException(f"Failed to delete graphs: {str(e)}") from e
        logger.info(f"Deleted {result.deleted_count} graphs")


async def get_graph_store():
    """FastAPI dependency yielding the application's graph store."""
    client = get_mongo_client()
    yield GraphStore(client[settings.mongo_db][settings.graph_collection])

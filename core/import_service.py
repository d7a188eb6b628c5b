"""Schema import pipeline and the editing session that owns a graph."""

import time
import uuid
from typing import List, Optional

from pydantic import BaseModel

from core import schema_parser
from core.exceptions import GraphNotFoundException, ImportInProgressException
from core.id_generator import IdGenerator
from core.logging_config import get_logger
from core.merger import merge
from core.normalizer import normalize
from core.source_adapter import SchemaSource
from core.storage import GraphStore
from schemas.graph import Diagnostic, Graph, GraphInit

logger = get_logger(__name__)


class ImportResult(BaseModel):
    graph: Graph
    diagnostics: List[Diagnostic]
    tables_added: int
    links_added: int


def generator_for(graph: Graph) -> IdGenerator:
    """An id generator that will never hand out an id the graph already uses."""
    return IdGenerator(reserved=graph.identifiers())


async def import_schema(source: SchemaSource, graph: Graph, id_generator: Optional[IdGenerator] = None) -> ImportResult:
    """
    Run the import pipeline against a graph.

    fetch -> parse -> normalize -> merge. Every stage either completes or
    raises; on any exception ``graph`` is left exactly as it was. Fetch
    failures surface before the parser is invoked.

    Args:
        source: Where the schema text comes from
        graph: Graph to import into
        id_generator: Identifier source (defaults to one seeded from ``graph``)

    Returns:
        ImportResult with the merged graph and the diagnostics of dropped relationships
    """
    start_time = time.time()
    text, dialect = await source.fetch_dump()
    schema = schema_parser.parse(text, dialect)
    new_tables, new_links, diagnostics = normalize(
        schema,
        list(graph.tables.values()),
        id_generator=id_generator or generator_for(graph),
    )
    merged = merge(graph, new_tables, new_links)
    processing_time = time.time() - start_time
    logger.info(
        f"Imported {len(new_tables)} tables and {len(new_links)} links into graph {graph.id} "
        f"in {processing_time:.2f}s ({len(diagnostics)} diagnostics)"
    )
    return ImportResult(
        graph=merged,
        diagnostics=diagnostics,
        tables_added=len(new_tables),
        links_added=len(new_links),
    )


class GraphSession:
    """
    In-memory graph of one editing session.

    The session exclusively owns its graph. Imports replace it only when the
    whole pipeline succeeded, and only one import may be in flight at a time.
    The store is written at explicit save points.
    """

    def __init__(self, store: GraphStore, graph: Graph):
        self.store = store
        self.graph = graph
        self.diagnostics: List[Diagnostic] = []
        self._id_generator = generator_for(graph)
        self._importing = False

    @classmethod
    async def open(cls, store: GraphStore, graph_id: str) -> "GraphSession":
        graph = await store.get(graph_id)
        if graph is None:
            raise GraphNotFoundException(f"Graph {graph_id} not found")
        return cls(store, graph)

    async def import_from(self, source: SchemaSource) -> ImportResult:
        if self._importing:
            raise ImportInProgressException(f"An import into graph {self.graph.id} is already running")
        self._importing = True
        try:
            result = await import_schema(source, self.graph, self._id_generator)
        finally:
            self._importing = False
        self.graph = result.graph
        self.diagnostics = result.diagnostics
        return result

    async def save(self) -> Graph:
        await self.store.save(self.graph)
        return self.graph


async def create_graph_from_source(store: GraphStore, source: SchemaSource, name: str) -> ImportResult:
    """Import a schema into a brand new graph and persist it."""
    result = await import_schema(source, Graph(id=uuid.uuid4().hex, name=name))
    graph_id = await store.create(
        GraphInit(name=name, tables=result.graph.tables, links=result.graph.links),
        result.graph.id,
    )
    graph = await store.get(graph_id)
    return result.model_copy(update={"graph": graph})

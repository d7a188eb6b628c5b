"""Graph router: graph lifecycle and schema imports."""

from typing import List

from fastapi import APIRouter, Depends, status

from core.dbml_export import graph_to_dbml
from core.examples import add_examples
from core.exceptions import GraphNotFoundException
from core.import_service import GraphSession, create_graph_from_source
from core.logging_config import get_logger
from core.source_adapter import DbmlSource, DumpSource
from core.storage import GraphStore, get_graph_store
from schemas.api import (
    CreateGraphRequest,
    CreateGraphResponse,
    DbmlExportResponse,
    DbmlImportRequest,
    ExamplesResponse,
    GraphSummary,
    ImportResponse,
)
from schemas.graph import Graph, GraphInit

logger = get_logger(__name__)
router = APIRouter(prefix="/graphs", tags=["Graphs"])


def get_dump_source() -> DumpSource:
    """Dependency returning the configured dump provider source."""
    return DumpSource()


async def _untitled_name(store: GraphStore) -> str:
    graphs = await store.get_all()
    return f"Untitled graph {len(graphs)}"


@router.get("", response_model=List[GraphSummary], summary="List graphs, newest first")
async def list_graphs(store: GraphStore = Depends(get_graph_store)) -> List[GraphSummary]:
    graphs = await store.get_all()
    return [GraphSummary.from_graph(g) for g in graphs]


@router.post("", response_model=CreateGraphResponse, status_code=status.HTTP_201_CREATED, summary="Create an empty graph")
async def create_graph(
    request: CreateGraphRequest,
    store: GraphStore = Depends(get_graph_store),
) -> CreateGraphResponse:
    name = request.name or await _untitled_name(store)
    graph_id = await store.create(GraphInit(name=name))
    return CreateGraphResponse(id=graph_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="Delete all graphs")
async def delete_all_graphs(store: GraphStore = Depends(get_graph_store)) -> None:
    await store.delete_all()


@router.post("/examples", response_model=ExamplesResponse, summary="Seed the example graphs")
async def create_examples(store: GraphStore = Depends(get_graph_store)) -> ExamplesResponse:
    created = await add_examples(store)
    return ExamplesResponse(created=created)


@router.post(
    "/import",
    response_model=ImportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Import a DBML document as a new graph",
)
async def import_new_graph(
    request: DbmlImportRequest,
    store: GraphStore = Depends(get_graph_store),
) -> ImportResponse:
    name = request.name or await _untitled_name(store)
    result = await create_graph_from_source(store, DbmlSource(request.dbml), name)
    return ImportResponse(**result.model_dump())


@router.get("/{graph_id}", response_model=Graph, summary="Get a graph")
async def get_graph(graph_id: str, store: GraphStore = Depends(get_graph_store)) -> Graph:
    graph = await store.get(graph_id)
    if graph is None:
        raise GraphNotFoundException(f"Graph {graph_id} not found")
    return graph


@router.delete("/{graph_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a graph")
async def delete_graph(graph_id: str, store: GraphStore = Depends(get_graph_store)) -> None:
    await store.delete(graph_id)


@router.get("/{graph_id}/dbml", response_model=DbmlExportResponse, summary="Export a graph as DBML")
async def export_graph(graph_id: str, store: GraphStore = Depends(get_graph_store)) -> DbmlExportResponse:
    graph = await get_graph(graph_id, store)
    return DbmlExportResponse(dbml=graph_to_dbml(graph))


@router.post("/{graph_id}/import/dbml", response_model=ImportResponse, summary="Import a DBML document into a graph")
async def import_dbml(
    graph_id: str,
    request: DbmlImportRequest,
    store: GraphStore = Depends(get_graph_store),
) -> ImportResponse:
    session = await GraphSession.open(store, graph_id)
    result = await session.import_from(DbmlSource(request.dbml))
    await session.save()
    return ImportResponse(**result.model_dump())


@router.post("/{graph_id}/import/dump", response_model=ImportResponse, summary="Import the live database dump into a graph")
async def import_dump(
    graph_id: str,
    store: GraphStore = Depends(get_graph_store),
    source: DumpSource = Depends(get_dump_source),
) -> ImportResponse:
    session = await GraphSession.open(store, graph_id)
    result = await session.import_from(source)
    await session.save()
    logger.info(f"Dump imported into graph {graph_id}")
    return ImportResponse(**result.model_dump())

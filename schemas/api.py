"""Request and response schemas for the graph API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from schemas.graph import Diagnostic, Graph


class CreateGraphRequest(BaseModel):
    """Request body for creating an empty graph."""
    name: Optional[str] = Field(default=None, description="Graph name. Defaults to 'Untitled graph <n>'.")


class CreateGraphResponse(BaseModel):
    id: str = Field(..., description="Identifier of the new graph")


class GraphSummary(BaseModel):
    """List entry for a graph."""
    id: str
    name: str
    table_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_graph(cls, graph: Graph) -> "GraphSummary":
        return cls(
            id=graph.id,
            name=graph.name,
            table_count=len(graph.tables),
            created_at=graph.created_at,
            updated_at=graph.updated_at,
        )


class DbmlImportRequest(BaseModel):
    """Request body for importing a DBML document."""
    dbml: str = Field(..., description="Raw DBML text pasted or uploaded by the user")
    name: Optional[str] = Field(default=None, description="Name of the new graph (new-graph imports only)")


class ImportResponse(BaseModel):
    """Outcome of an import: the merged graph and the relationships that were dropped."""
    graph: Graph
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    tables_added: int
    links_added: int


class ExamplesResponse(BaseModel):
    created: List[str] = Field(..., description="Ids of the example graphs created by this call")


class DbmlExportResponse(BaseModel):
    dbml: str

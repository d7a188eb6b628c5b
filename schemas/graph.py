"""Graph model schemas: tables as nodes, relationships as edges."""

from datetime import datetime, UTC
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from schemas.abstract_schema import Relation


def utc_now() -> datetime:
    return datetime.now(UTC)


class FieldEntry(BaseModel):
    id: str
    name: str
    type: str
    primary_key: bool = False
    unique: bool = False
    not_null: bool = False
    auto_increment: bool = False
    note: Optional[str] = None


class TableNode(BaseModel):
    id: str
    name: str
    note: Optional[str] = None
    x: int = 0
    y: int = 0
    fields: List[FieldEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_field_ids(self) -> "TableNode":
        ids = [f.id for f in self.fields]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Table {self.name!r} has duplicate field ids")
        return self

    def field_by_id(self, field_id: str) -> Optional[FieldEntry]:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None


class LinkEndpoint(BaseModel):
    table_id: str
    field_id: str
    relation: Relation = "1"


class LinkEdge(BaseModel):
    id: str
    endpoints: List[LinkEndpoint] = Field(..., min_length=2, max_length=2)


class GraphInit(BaseModel):
    """Partial graph accepted by the store when creating a graph."""
    name: str
    tables: Dict[str, TableNode] = Field(default_factory=dict)
    links: Dict[str, LinkEdge] = Field(default_factory=dict)


class Graph(BaseModel):
    id: str
    name: str
    tables: Dict[str, TableNode] = Field(default_factory=dict)
    links: Dict[str, LinkEdge] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def check_references(self) -> "Graph":
        """Every key matches its entity id and every link endpoint resolves."""
        field_ids = set()
        for key, table in self.tables.items():
            if key != table.id:
                raise ValueError(f"Table key {key!r} does not match table id {table.id!r}")
            for f in table.fields:
                if f.id in field_ids:
                    raise ValueError(f"Field id {f.id!r} is used more than once in graph {self.id!r}")
                field_ids.add(f.id)

        for key, link in self.links.items():
            if key != link.id:
                raise ValueError(f"Link key {key!r} does not match link id {link.id!r}")
            for endpoint in link.endpoints:
                table = self.tables.get(endpoint.table_id)
                if table is None:
                    raise ValueError(f"Link {link.id!r} references unknown table {endpoint.table_id!r}")
                if table.field_by_id(endpoint.field_id) is None:
                    raise ValueError(
                        f"Link {link.id!r} references unknown field {endpoint.field_id!r} of table {table.name!r}"
                    )
        return self

    def identifiers(self) -> set:
        """All table, field and link ids in use by this graph."""
        ids = set(self.tables) | set(self.links)
        for table in self.tables.values():
            ids.update(f.id for f in table.fields)
        return ids


class Diagnostic(BaseModel):
    kind: Literal["dangling_relationship_reference"] = "dangling_relationship_reference"
    message: str
    relationship_index: Optional[int] = None

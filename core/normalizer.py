"""Graph normalizer: abstract schema to graph model fragments."""

from typing import Dict, List, NamedTuple, Optional, Sequence

from core.id_generator import IdGenerator
from core.layout import GridLayout, default_layout
from core.logging_config import get_logger
from schemas.abstract_schema import AbstractSchema, Endpoint, Relationship
from schemas.graph import Diagnostic, FieldEntry, LinkEdge, LinkEndpoint, TableNode

logger = get_logger(__name__)


class NormalizeResult(NamedTuple):
    new_tables: Dict[str, TableNode]
    new_links: Dict[str, LinkEdge]
    diagnostics: List[Diagnostic]


def normalize_type(type_name: str) -> str:
    """Canonical stored form of a column type; unknown types are kept verbatim."""
    return (type_name or "").strip().upper()


def _index_by_name(tables: Sequence[TableNode]) -> Dict[str, TableNode]:
    # Later tables overwrite earlier ones: last occurrence wins
    return {table.name: table for table in tables}


class _Resolver:
    """Name -> identifier lookups built once per normalization call."""

    def __init__(self, batch: Sequence[TableNode], existing: Sequence[TableNode]):
        self._batch = _index_by_name(batch)
        self._existing = _index_by_name(existing)
        self._fields: Dict[str, Dict[str, FieldEntry]] = {}

    def table(self, name: str) -> Optional[TableNode]:
        table = self._batch.get(name)
        if table is None:
            table = self._existing.get(name)
        return table

    def field(self, table: TableNode, name: str) -> Optional[FieldEntry]:
        if table.id not in self._fields:
            self._fields[table.id] = {f.name: f for f in table.fields}
        return self._fields[table.id].get(name)

    def endpoint(self, endpoint: Endpoint) -> LinkEndpoint:
        table = self.table(endpoint.table_name)
        if table is None:
            raise LookupError(f"table {endpoint.table_name!r} not found")
        field = self.field(table, endpoint.field_name)
        if field is None:
            raise LookupError(f"field {endpoint.field_name!r} not found in table {endpoint.table_name!r}")
        return LinkEndpoint(table_id=table.id, field_id=field.id, relation=endpoint.relation)


def normalize(
    schema: AbstractSchema,
    existing_tables: Sequence[TableNode] = (),
    id_generator: Optional[IdGenerator] = None,
    layout: Optional[GridLayout] = None,
) -> NormalizeResult:
    """
    Convert an abstract schema into new table nodes and link edges.

    Every table and field gets a fresh identifier, every table a free canvas
    slot (considering ``existing_tables`` and the tables placed earlier in the
    batch), and every relationship whose endpoints resolve becomes a link.
    Relationships that do not resolve are dropped and reported as diagnostics.

    Args:
        schema: Parsed schema
        existing_tables: Tables already in the target graph
        id_generator: Identifier source; a fresh one reserving the ids of
            ``existing_tables`` is used when omitted
        layout: Placement strategy

    Returns:
        NormalizeResult(new_tables, new_links, diagnostics)

    Raises:
        IdentifierCollisionException: If the generator hands out an id twice.
    """
    existing_tables = list(existing_tables)
    layout = layout or default_layout
    if id_generator is None:
        id_generator = IdGenerator()
        for table in existing_tables:
            id_generator.reserve([table.id] + [f.id for f in table.fields])

    placed = list(existing_tables)
    batch: List[TableNode] = []
    new_tables: Dict[str, TableNode] = {}

    for table in schema.tables:
        x, y = layout.next_position(placed)
        node = TableNode(
            id=id_generator.next_id(),
            name=table.name,
            note=table.note,
            x=x,
            y=y,
            fields=[
                FieldEntry(
                    id=id_generator.next_id(),
                    name=field.name,
                    type=normalize_type(field.type),
                    primary_key=field.primary_key,
                    unique=field.unique,
                    not_null=field.not_null,
                    auto_increment=field.auto_increment,
                    note=field.note,
                )
                for field in table.fields
            ],
        )
        new_tables[node.id] = node
        batch.append(node)
        placed.append(node)

    resolver = _Resolver(batch, existing_tables)
    new_links: Dict[str, LinkEdge] = {}
    diagnostics: List[Diagnostic] = []

    for index, relationship in enumerate(schema.relationships):
        try:
            endpoints = [resolver.endpoint(endpoint) for endpoint in relationship.endpoints]
        except LookupError as e:
            diagnostics.append(_dangling(index, relationship, str(e)))
            continue
        link = LinkEdge(id=id_generator.next_id(), endpoints=endpoints)
        new_links[link.id] = link

    logger.info(
        f"Normalized {len(new_tables)} tables and {len(new_links)} links "
        f"({len(diagnostics)} relationships dropped)"
    )
    return NormalizeResult(new_tables, new_links, diagnostics)


def _dangling(index: int, relationship: Relationship, reason: str) -> Diagnostic:
    message = f"Relationship {relationship.describe()} dropped: {reason}"
    logger.warning(message)
    return Diagnostic(message=message, relationship_index=index)

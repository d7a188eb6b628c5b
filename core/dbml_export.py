"""Serialize a graph back to DBML."""

import re

from schemas.graph import FieldEntry, Graph

PLAIN_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
PLAIN_TYPE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\([0-9, ]*\))?$")

OPERATORS = {
    ("*", "1"): ">",
    ("1", "*"): "<",
    ("1", "1"): "-",
    ("*", "*"): "<>",
}


def quote_name(name: str) -> str:
    """Quote names DBML would not accept bare."""
    if PLAIN_NAME.match(name):
        return name
    return '"' + name.replace('"', '\\"') + '"'


def quote_note(text: str) -> str:
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _column(field: FieldEntry) -> str:
    column_type = field.type if PLAIN_TYPE.match(field.type) else '"' + field.type + '"'
    settings = []
    if field.primary_key:
        settings.append("pk")
    if field.auto_increment:
        settings.append("increment")
    if field.not_null:
        settings.append("not null")
    if field.unique:
        settings.append("unique")
    if field.note:
        settings.append(f"note: {quote_note(field.note)}")

    line = f"  {quote_name(field.name)} {column_type}"
    if settings:
        line += f" [{', '.join(settings)}]"
    return line


def graph_to_dbml(graph: Graph) -> str:
    """Convert a graph to a DBML document."""
    lines = []

    for table in graph.tables.values():
        lines.append(f"Table {quote_name(table.name)} {{")
        for field in table.fields:
            lines.append(_column(field))
        if table.note:
            lines.append(f"  Note: {quote_note(table.note)}")
        lines.append("}")
        lines.append("")

    for link in graph.links.values():
        parts = []
        for endpoint in link.endpoints:
            table = graph.tables[endpoint.table_id]
            field = table.field_by_id(endpoint.field_id)
            parts.append(f"{quote_name(table.name)}.{quote_name(field.name)}")
        left, right = link.endpoints
        operator = OPERATORS[(left.relation, right.relation)]
        lines.append(f"Ref: {parts[0]} {operator} {parts[1]}")

    return "\n".join(lines).rstrip() + "\n"

"""Schema parser: SQL dumps and DBML documents to the abstract schema."""

from typing import Dict, Iterator, List, Optional, Tuple

import sqlglot
from pydbml.database import Database
from pydbml.parser.parser import PyDBMLParser
from pydbml.tools import remove_bom
from sqlglot import exp
from sqlglot.errors import SqlglotError
from sqlglot.tokens import TokenType

from core.exceptions import SchemaParseException
from core.logging_config import get_logger
from schemas.abstract_schema import AbstractSchema, Dialect, Endpoint, Field, Relationship, Table

logger = get_logger(__name__)

# sqlglot dialect names per SQL dialect
SQL_READ = {
    Dialect.MYSQL: "mysql",
    Dialect.POSTGRES: "postgres",
}

# DBML relation operator -> (left marker, right marker)
DBML_RELATIONS = {
    ">": ("*", "1"),
    "<": ("1", "*"),
    "-": ("1", "1"),
    "<>": ("*", "*"),
}

SERIAL_TYPES = {
    exp.DataType.Type.SERIAL,
    exp.DataType.Type.SMALLSERIAL,
    exp.DataType.Type.BIGSERIAL,
}


def parse(text: str, dialect: Dialect) -> AbstractSchema:
    """
    Parse raw schema text of the given dialect.

    Args:
        text: Raw schema text (SQL dump or DBML document)
        dialect: Dialect of the text

    Returns:
        AbstractSchema with tables and relationships in source order

    Raises:
        SchemaParseException: If the text is malformed. Nothing is returned
            partially populated.
    """
    dialect = Dialect(dialect)
    logger.info(f"Parsing {dialect.value} schema ({len(text or '')} characters)")
    if dialect.is_sql:
        schema = parse_sql(text, dialect)
    else:
        schema = parse_dbml(text)
    logger.info(
        f"Parsed {len(schema.tables)} tables and {len(schema.relationships)} relationships from {dialect.value} schema"
    )
    return schema


# --------------------------------------------------------------------------
# DBML
# --------------------------------------------------------------------------

class _DbmlParser(PyDBMLParser):
    """
    Builds tables and enums only.

    References stay as name-based blueprints: their endpoints may name tables
    outside the document (already in the graph, or missing) and are resolved
    by the normalizer.
    """

    def build_database(self):
        self.database = Database()
        for enum_bp in self.enums:
            self.database.add(enum_bp.build())
        for table_bp in self.tables:
            self.database.add(table_bp.build())


def _note_text(note) -> Optional[str]:
    if note is None:
        return None
    text = getattr(note, "text", note)
    return str(text) if text else None


def _dbml_type(column) -> str:
    # Enum-typed columns carry the enum object instead of a string
    if isinstance(column.type, str):
        return column.type
    return getattr(column.type, "name", str(column.type))


def _first_column(columns) -> str:
    # Composite refs arrive as "(a, b)"; only the first pair is linked
    if not isinstance(columns, str):
        columns = ",".join(columns)
    return columns.split(",")[0].strip("() ")


def parse_dbml(text: str) -> AbstractSchema:
    parser = _DbmlParser(remove_bom(text or ""))
    try:
        database = parser.parse()
    except Exception as e:
        logger.error(f"DBML parsing failed: {e}")
        raise SchemaParseException(Dialect.DBML.value, str(e)) from e

    tables = [
        Table(
            name=t.name,
            note=_note_text(t.note),
            fields=[
                Field(
                    name=c.name,
                    type=_dbml_type(c),
                    primary_key=bool(c.pk),
                    unique=bool(c.unique),
                    not_null=bool(c.not_null),
                    auto_increment=bool(c.autoinc),
                    note=_note_text(c.note),
                )
                for c in t.columns
            ],
        )
        for t in database.tables
    ]

    aliases = {t.alias: t.name for t in parser.tables if t.alias}
    relationships = []
    for ref in parser.refs:
        left, right = DBML_RELATIONS.get(ref.type, ("1", "1"))
        relationships.append(
            Relationship(
                name=ref.name or None,
                endpoints=[
                    Endpoint(
                        table_name=aliases.get(ref.table1, ref.table1),
                        field_name=_first_column(ref.col1),
                        relation=left,
                    ),
                    Endpoint(
                        table_name=aliases.get(ref.table2, ref.table2),
                        field_name=_first_column(ref.col2),
                        relation=right,
                    ),
                ],
            )
        )

    return AbstractSchema(dialect=Dialect.DBML, tables=tables, relationships=relationships)


# --------------------------------------------------------------------------
# SQL dumps
# --------------------------------------------------------------------------

def schema_statements(text: str, read: str) -> Iterator[str]:
    """
    Yield the CREATE TABLE and ALTER TABLE statements of a dump.

    Dumps also carry SET, LOCK TABLES, INSERT and similar statements that say
    nothing about the schema and are skipped without being parsed.
    """
    statement = []
    for token in sqlglot.tokenize(text, read=read) + [None]:
        if token is not None and token.token_type != TokenType.SEMICOLON:
            statement.append(token)
            continue
        if len(statement) >= 2 and statement[0].token_type in (TokenType.CREATE, TokenType.ALTER):
            head = [t.token_type for t in statement[1:4]]
            if TokenType.TABLE in head:
                yield text[statement[0].start:statement[-1].end + 1]
        statement = []


def _identifier_names(node: exp.Expression) -> List[str]:
    return [identifier.name for identifier in node.find_all(exp.Identifier)]


def _table_name(statement: exp.Expression) -> str:
    node = statement.this
    if isinstance(node, exp.Schema):
        node = node.this
    return node.name


def _reference_target(reference: exp.Reference) -> Tuple[str, Optional[str]]:
    target = reference.this
    if isinstance(target, exp.Schema):
        columns = [c.name for c in target.expressions]
        return target.this.name, columns[0] if columns else None
    return target.name, None


def _foreign_key(table: str, column: str, reference: exp.Reference) -> Relationship:
    ref_table, ref_column = _reference_target(reference)
    if ref_column is None:
        logger.warning(f"Foreign key {table}.{column} -> {ref_table} does not name a referenced column")
    return Relationship(
        endpoints=[
            Endpoint(table_name=table, field_name=column, relation="*"),
            Endpoint(table_name=ref_table, field_name=ref_column or "", relation="1"),
        ]
    )


def _parse_column(column: exp.ColumnDef, read: str, table: str, relationships: List[Relationship]) -> Field:
    kind = column.args.get("kind")
    field = Field(name=column.name, type=kind.sql(dialect=read) if kind else "")
    if kind is not None and kind.this in SERIAL_TYPES:
        field.auto_increment = True

    for constraint in column.args.get("constraints") or []:
        option = constraint.args.get("kind")
        if isinstance(option, exp.PrimaryKeyColumnConstraint):
            field.primary_key = True
        elif isinstance(option, exp.UniqueColumnConstraint):
            field.unique = True
        elif isinstance(option, exp.NotNullColumnConstraint):
            field.not_null = not option.args.get("allow_null")
        elif isinstance(option, (exp.AutoIncrementColumnConstraint, exp.GeneratedAsIdentityColumnConstraint)):
            field.auto_increment = True
        elif isinstance(option, exp.CommentColumnConstraint):
            field.note = option.this.name or None
        elif isinstance(option, exp.Reference):
            relationships.append(_foreign_key(table, field.name, option))
    return field


def _parse_create_table(statement: exp.Create, read: str, relationships: List[Relationship]) -> Optional[Table]:
    schema = statement.this
    if not isinstance(schema, exp.Schema):
        # CREATE TABLE ... AS SELECT / LIKE: no column list to import
        logger.debug(f"Skipping CREATE TABLE without column definitions: {statement.sql(dialect=read)[:80]}")
        return None

    name = schema.this.name
    comment = statement.find(exp.SchemaCommentProperty)
    table = Table(name=name, note=comment.this.name if comment else None)

    constraints = []
    for item in schema.expressions:
        if isinstance(item, exp.ColumnDef):
            table.fields.append(_parse_column(item, read, name, relationships))
        else:
            constraints.append(item)

    columns: Dict[str, Field] = {f.name: f for f in table.fields}
    for item in constraints:
        primary_key = item if isinstance(item, exp.PrimaryKey) else item.find(exp.PrimaryKey)
        if primary_key is not None:
            for column_name in _identifier_names(primary_key):
                if column_name in columns:
                    columns[column_name].primary_key = True
            continue
        unique = item if isinstance(item, exp.UniqueColumnConstraint) else item.find(exp.UniqueColumnConstraint)
        if unique is not None:
            # The index name is an identifier too; keep only real columns
            for column_name in _identifier_names(item):
                if column_name in columns:
                    columns[column_name].unique = True

    return table


def _foreign_keys(statement: exp.Expression, table: str) -> List[Relationship]:
    relationships = []
    for foreign_key in statement.find_all(exp.ForeignKey):
        reference = foreign_key.args.get("reference")
        local = [e.name for e in foreign_key.expressions]
        if reference is None or not local:
            continue
        relationships.append(_foreign_key(table, local[0], reference))
    return relationships


def parse_sql(text: str, dialect: Dialect) -> AbstractSchema:
    read = SQL_READ[dialect]
    tables: List[Table] = []
    relationships: List[Relationship] = []

    try:
        for sql in schema_statements(text or "", read):
            statement = sqlglot.parse_one(sql, read=read)
            if isinstance(statement, exp.Create):
                if str(statement.args.get("kind") or "").upper() != "TABLE":
                    continue
                table = _parse_create_table(statement, read, relationships)
                if table is None:
                    continue
                tables.append(table)
                relationships.extend(_foreign_keys(statement, table.name))
            elif isinstance(statement, exp.Command):
                logger.debug(f"Statement not understood by the {read} parser, skipped: {sql[:80]}")
            else:
                relationships.extend(_foreign_keys(statement, _table_name(statement)))
    except SqlglotError as e:
        logger.error(f"{dialect.value} parsing failed: {e}")
        raise SchemaParseException(dialect.value, str(e)) from e

    return AbstractSchema(dialect=dialect, tables=tables, relationships=relationships)

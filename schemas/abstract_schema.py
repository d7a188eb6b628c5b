"""Dialect-neutral schema produced by the schema parser."""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field as PydanticField


class Dialect(str, Enum):
    """Source format of schema text."""
    MYSQL = "mysql"
    POSTGRES = "postgres"
    DBML = "dbml"

    @property
    def is_sql(self) -> bool:
        return self is not Dialect.DBML


Relation = Literal["1", "*"]


class Field(BaseModel):
    name: str
    type: str
    primary_key: bool = False
    unique: bool = False
    not_null: bool = False
    auto_increment: bool = False
    note: Optional[str] = None


class Table(BaseModel):
    name: str
    note: Optional[str] = None
    fields: List[Field] = PydanticField(default_factory=list)


class Endpoint(BaseModel):
    table_name: str
    field_name: str
    relation: Relation = "1"


class Relationship(BaseModel):
    name: Optional[str] = None
    endpoints: List[Endpoint] = PydanticField(..., min_length=2, max_length=2)

    def describe(self) -> str:
        """Human readable form, e.g. ``orders.user_id > users.id``."""
        left, right = self.endpoints
        return f"{left.table_name}.{left.field_name} {_OPERATORS[(left.relation, right.relation)]} {right.table_name}.{right.field_name}"


_OPERATORS = {
    ("*", "1"): ">",
    ("1", "*"): "<",
    ("1", "1"): "-",
    ("*", "*"): "<>",
}


class AbstractSchema(BaseModel):
    dialect: Dialect
    tables: List[Table] = PydanticField(default_factory=list)
    relationships: List[Relationship] = PydanticField(default_factory=list)

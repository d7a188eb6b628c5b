from itertools import combinations

import pytest

from core.exceptions import IdentifierCollisionException
from core.id_generator import IdGenerator
from core.layout import default_layout
from core.normalizer import normalize, normalize_type
from core.schema_parser import parse
from schemas.abstract_schema import AbstractSchema, Dialect, Endpoint, Field, Relationship, Table
from schemas.graph import FieldEntry, TableNode


def _rel(left_table, left_field, right_table, right_field):
    return Relationship(
        endpoints=[
            Endpoint(table_name=left_table, field_name=left_field, relation="*"),
            Endpoint(table_name=right_table, field_name=right_field, relation="1"),
        ]
    )


def _schema(tables, relationships=()):
    return AbstractSchema(
        dialect=Dialect.DBML,
        tables=[
            Table(name=name, fields=[Field(name=f, type="int") for f in fields])
            for name, fields in tables
        ],
        relationships=list(relationships),
    )


def _overlap(a: TableNode, b: TableNode) -> bool:
    return default_layout.overlaps(a.x, a.y, b)


def test_users_orders_scenario(users_orders_dbml, id_generator):
    schema = parse(users_orders_dbml, Dialect.DBML)

    new_tables, new_links, diagnostics = normalize(schema, [], id_generator=id_generator)

    assert len(new_tables) == 2
    assert sum(len(t.fields) for t in new_tables.values()) == 4
    assert len(new_links) == 1
    assert diagnostics == []

    tables = {t.name: t for t in new_tables.values()}
    users, orders = tables["users"], tables["orders"]
    link = next(iter(new_links.values()))
    left, right = link.endpoints
    assert left.table_id == orders.id
    assert left.field_id == orders.fields[1].id
    assert left.relation == "*"
    assert right.table_id == users.id
    assert right.field_id == users.fields[0].id
    assert right.relation == "1"
    assert not _overlap(users, orders)


def test_one_node_per_table_and_field_order_preserved(id_generator):
    schema = _schema([("a", ["z", "y", "x"]), ("b", ["one"]), ("c", [])])

    new_tables, _, _ = normalize(schema, [], id_generator=id_generator)

    assert [t.name for t in new_tables.values()] == ["a", "b", "c"]
    assert [f.name for f in list(new_tables.values())[0].fields] == ["z", "y", "x"]
    assert list(new_tables.values())[2].fields == []


def test_types_are_uppercased_and_otherwise_kept(id_generator):
    schema = AbstractSchema(
        dialect=Dialect.MYSQL,
        tables=[
            Table(
                name="t",
                fields=[
                    Field(name="a", type="varchar(255)"),
                    Field(name="b", type="myCustomType"),
                    Field(name="c", type="int unsigned"),
                ],
            )
        ],
    )

    new_tables, _, _ = normalize(schema, [], id_generator=id_generator)

    types = [f.type for f in next(iter(new_tables.values())).fields]
    assert types == ["VARCHAR(255)", "MYCUSTOMTYPE", "INT UNSIGNED"]
    assert normalize_type("  text ") == "TEXT"


def test_flags_and_notes_are_carried(id_generator):
    schema = AbstractSchema(
        dialect=Dialect.DBML,
        tables=[
            Table(
                name="t",
                note="a table",
                fields=[Field(name="id", type="int", primary_key=True, unique=True, not_null=True, auto_increment=True, note="key")],
            )
        ],
    )

    table = next(iter(normalize(schema, [], id_generator=id_generator).new_tables.values()))

    assert table.note == "a table"
    field = table.fields[0]
    assert (field.primary_key, field.unique, field.not_null, field.auto_increment) == (True, True, True, True)
    assert field.note == "key"


def test_relationship_to_missing_table_is_dropped_with_diagnostic(id_generator):
    schema = _schema(
        [("users", ["id"]), ("orders", ["id", "user_id"])],
        [_rel("orders", "user_id", "customers", "id")],
    )

    new_tables, new_links, diagnostics = normalize(schema, [], id_generator=id_generator)

    assert len(new_tables) == 2
    assert new_links == {}
    assert len(diagnostics) == 1
    assert diagnostics[0].kind == "dangling_relationship_reference"
    assert diagnostics[0].relationship_index == 0
    assert "customers" in diagnostics[0].message


def test_relationship_to_missing_field_is_dropped(id_generator):
    schema = _schema(
        [("users", ["id"]), ("orders", ["id", "user_id"])],
        [_rel("orders", "user_id", "users", "uuid"), _rel("orders", "user_id", "users", "id")],
    )

    _, new_links, diagnostics = normalize(schema, [], id_generator=id_generator)

    assert len(new_links) == 1
    assert len(diagnostics) == 1
    assert diagnostics[0].relationship_index == 0
    assert "uuid" in diagnostics[0].message


def test_duplicate_table_names_last_occurrence_wins(id_generator):
    schema = _schema(
        [("users", ["id"]), ("users", ["id"]), ("orders", ["user_id"])],
        [_rel("orders", "user_id", "users", "id")],
    )

    new_tables, new_links, diagnostics = normalize(schema, [], id_generator=id_generator)

    assert len(new_tables) == 3
    first_users, second_users, _ = new_tables.values()
    link = next(iter(new_links.values()))
    assert link.endpoints[1].table_id == second_users.id
    assert link.endpoints[1].field_id == second_users.fields[0].id
    assert diagnostics == []


def test_endpoint_resolves_against_existing_tables(id_generator):
    existing = TableNode(
        id="t-users",
        name="users",
        fields=[FieldEntry(id="f-users-id", name="id", type="INT")],
    )
    schema = _schema([("orders", ["id", "user_id"])], [_rel("orders", "user_id", "users", "id")])

    new_tables, new_links, diagnostics = normalize(schema, [existing], id_generator=id_generator)

    assert list(t.name for t in new_tables.values()) == ["orders"]
    link = next(iter(new_links.values()))
    assert link.endpoints[1].table_id == "t-users"
    assert link.endpoints[1].field_id == "f-users-id"
    assert diagnostics == []


def test_batch_table_shadows_existing_table_of_same_name(id_generator):
    existing = TableNode(id="t-old", name="users", fields=[FieldEntry(id="f-old", name="id", type="INT")])
    schema = _schema([("users", ["id"]), ("orders", ["user_id"])], [_rel("orders", "user_id", "users", "id")])

    new_tables, new_links, _ = normalize(schema, [existing], id_generator=id_generator)

    new_users = next(t for t in new_tables.values() if t.name == "users")
    assert next(iter(new_links.values())).endpoints[1].table_id == new_users.id


def test_empty_schema(id_generator):
    result = normalize(AbstractSchema(dialect=Dialect.MYSQL), [], id_generator=id_generator)

    assert result.new_tables == {}
    assert result.new_links == {}
    assert result.diagnostics == []


def test_positions_never_overlap_and_avoid_existing_tables(id_generator):
    existing = TableNode(id="t0", name="existing", x=0, y=0)
    schema = _schema([(f"t{i}", ["id"]) for i in range(15)])

    new_tables, _, _ = normalize(schema, [existing], id_generator=id_generator)

    placed = [existing] + list(new_tables.values())
    for a, b in combinations(placed, 2):
        assert not _overlap(a, b), (a.name, b.name)


def test_positions_are_deterministic(make_generator):
    schema = _schema([(f"t{i}", ["id"]) for i in range(8)])

    first = normalize(schema, [], id_generator=make_generator())
    second = normalize(schema, [], id_generator=make_generator("other"))

    positions = lambda result: [(t.x, t.y) for t in result.new_tables.values()]
    assert positions(first) == positions(second)
    assert positions(first)[0] == (0, 0)


def test_identifiers_are_unique(id_generator):
    schema = _schema(
        [("users", ["id", "name"]), ("orders", ["id", "user_id"])],
        [_rel("orders", "user_id", "users", "id")],
    )

    new_tables, new_links, _ = normalize(schema, [], id_generator=id_generator)

    ids = list(new_tables) + list(new_links)
    ids += [f.id for t in new_tables.values() for f in t.fields]
    assert len(ids) == len(set(ids)) == 7


def test_identifier_collision_is_fatal():
    generator = IdGenerator(factory=lambda: "same")
    schema = _schema([("users", ["id"])])

    with pytest.raises(IdentifierCollisionException):
        normalize(schema, [], id_generator=generator)


def test_default_generator_avoids_existing_ids():
    existing = TableNode(id="t-users", name="users", fields=[FieldEntry(id="f-users-id", name="id", type="INT")])
    schema = _schema([("orders", ["id"])])

    new_tables, _, _ = normalize(schema, [existing])

    table = next(iter(new_tables.values()))
    assert table.id not in {"t-users", "f-users-id"}

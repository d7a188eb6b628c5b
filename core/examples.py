"""Example graphs used to seed an empty workspace."""

from typing import List

from core import schema_parser
from core.id_generator import IdGenerator
from core.logging_config import get_logger
from core.merger import merge
from core.normalizer import normalize
from core.storage import GraphStore
from schemas.abstract_schema import Dialect
from schemas.graph import Graph, GraphInit

logger = get_logger(__name__)

BLOG_DBML = """
Table users {
  id integer [pk, increment]
  username varchar [not null, unique]
  email varchar [not null, unique]
  created_at timestamp
  Note: 'Registered authors and readers'
}

Table posts {
  id integer [pk, increment]
  title varchar [not null]
  body text [note: 'Content of the post']
  user_id integer [not null]
  status varchar
  created_at timestamp
}

Table comments {
  id integer [pk, increment]
  post_id integer [not null]
  user_id integer [not null]
  body text
}

Ref: posts.user_id > users.id
Ref: comments.post_id > posts.id
Ref: comments.user_id > users.id
"""

NORTHWIND_DBML = """
Table customers {
  customer_id varchar(5) [pk]
  company_name varchar(40) [not null]
  contact_name varchar(30)
  country varchar(15)
}

Table employees {
  employee_id smallint [pk]
  last_name varchar(20) [not null]
  first_name varchar(10) [not null]
  reports_to smallint
}

Table orders {
  order_id smallint [pk]
  customer_id varchar(5)
  employee_id smallint
  order_date date
  shipped_date date
}

Table products {
  product_id smallint [pk]
  product_name varchar(40) [not null]
  unit_price real
  discontinued integer [not null]
}

Table order_details {
  id integer [pk, increment]
  order_id smallint [not null]
  product_id smallint [not null]
  unit_price real [not null]
  quantity smallint [not null]
}

Ref: orders.customer_id > customers.customer_id
Ref: orders.employee_id > employees.employee_id
Ref: employees.reports_to > employees.employee_id
Ref: order_details.order_id > orders.order_id
Ref: order_details.product_id > products.product_id
"""

SPACEX_DBML = """
Table rockets {
  id varchar(24) [pk]
  name varchar [not null, unique]
  kind varchar
  stages integer
  cost_per_launch integer
  active boolean [not null]
}

Table launchpads {
  id varchar(24) [pk]
  name varchar [not null]
  full_name varchar
  locality varchar
  region varchar
  status varchar
}

Table launches {
  id varchar(24) [pk]
  flight_number integer [not null, unique]
  name varchar [not null]
  date_utc timestamp [not null]
  success boolean
  rocket_id varchar(24) [not null]
  launchpad_id varchar(24) [not null]
  details text [note: 'Mission summary']
}

Table payloads {
  id varchar(24) [pk]
  name varchar [not null]
  kind varchar
  mass_kg real
  orbit varchar
  launch_id varchar(24)
}

Table crew {
  id varchar(24) [pk]
  name varchar [not null]
  agency varchar
  status varchar
}

Table launch_crew {
  id integer [pk, increment]
  launch_id varchar(24) [not null]
  crew_id varchar(24) [not null]
  role varchar
  Note: 'Crew members flown on a launch'
}

Ref: launches.rocket_id > rockets.id
Ref: launches.launchpad_id > launchpads.id
Ref: payloads.launch_id > launches.id
Ref: launch_crew.launch_id > launches.id
Ref: launch_crew.crew_id > crew.id
"""

EXAMPLES = [
    ("example-northwind-traders", "Northwind Traders", NORTHWIND_DBML),
    ("example-blog", "Blog", BLOG_DBML),
    ("example-spacex", "SpaceX", SPACEX_DBML),
]


def build_example(graph_id: str, name: str, dbml: str) -> Graph:
    """Build an example graph from its DBML source."""
    graph = Graph(id=graph_id, name=name)
    schema = schema_parser.parse(dbml, Dialect.DBML)
    new_tables, new_links, _ = normalize(schema, id_generator=IdGenerator())
    return merge(graph, new_tables, new_links)


async def add_examples(store: GraphStore) -> List[str]:
    """
    Create the example graphs under their fixed ids.

    Examples that are already present are left alone.

    Returns:
        Ids of the graphs that were created
    """
    created = []
    for graph_id, name, dbml in EXAMPLES:
        if await store.get(graph_id) is not None:
            logger.info(f"Example graph {graph_id} already exists, skipping")
            continue
        graph = build_example(graph_id, name, dbml)
        await store.create(GraphInit(name=name, tables=graph.tables, links=graph.links), graph_id)
        created.append(graph_id)
    logger.info(f"Seeded {len(created)} example graphs")
    return created

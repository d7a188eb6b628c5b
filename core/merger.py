"""Graph merger: additive merge of normalized fragments into a graph."""

from typing import Mapping

from pydantic import ValidationError

from core.exceptions import IdentifierCollisionException, ValidationException
from core.logging_config import get_logger
from schemas.graph import Graph, LinkEdge, TableNode, utc_now

logger = get_logger(__name__)


def merge(current: Graph, new_tables: Mapping[str, TableNode], new_links: Mapping[str, LinkEdge]) -> Graph:
    """
    Insert new tables and links into a graph.

    ``current`` is left untouched; a new Graph is returned. Identifiers are
    never remapped: a key that is already present is an invariant violation.

    Raises:
        IdentifierCollisionException: If a new key is already used by ``current``.
        ValidationException: If the merged graph would contain a dangling reference.
    """
    clashes = (set(new_tables) & set(current.tables)) | (set(new_links) & set(current.links))
    if clashes:
        logger.error(f"Merge into graph {current.id} rejected, identifiers already in use: {sorted(clashes)}")
        raise IdentifierCollisionException(f"Identifiers already in use: {', '.join(sorted(clashes))}")

    try:
        merged = Graph(
            id=current.id,
            name=current.name,
            tables={**current.tables, **new_tables},
            links={**current.links, **new_links},
            created_at=current.created_at,
            updated_at=utc_now(),
        )
    except ValidationError as e:
        logger.error(f"Merge into graph {current.id} rejected: {e}")
        raise ValidationException(f"Merged graph is invalid: {e}") from e

    logger.debug(
        f"Merged {len(new_tables)} tables and {len(new_links)} links into graph {current.id}"
    )
    return merged

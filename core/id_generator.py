"""Identifier generation for graph entities."""

import uuid
from typing import Callable, Iterable, Optional

from core.exceptions import IdentifierCollisionException
from core.logging_config import get_logger

logger = get_logger(__name__)


def random_id() -> str:
    return uuid.uuid4().hex


class IdGenerator:
    """
    Issues identifiers that are unique for the lifetime of the instance.

    Every identifier ever issued or reserved is remembered. A factory that
    produces an identifier already in use is an invariant violation and
    raises IdentifierCollisionException instead of handing it out again.
    """

    def __init__(self, factory: Optional[Callable[[], str]] = None, reserved: Iterable[str] = ()):
        self._factory = factory or random_id
        self._issued = set(reserved)

    def reserve(self, ids: Iterable[str]) -> None:
        """Mark identifiers that are already in use elsewhere (e.g. a loaded graph)."""
        self._issued.update(ids)

    def __contains__(self, value: str) -> bool:
        return value in self._issued

    def next_id(self) -> str:
        value = self._factory()
        if value in self._issued:
            logger.error(f"Identifier collision on {value!r}")
            raise IdentifierCollisionException(f"Generated identifier {value!r} is already in use")
        self._issued.add(value)
        return value

    __call__ = next_id

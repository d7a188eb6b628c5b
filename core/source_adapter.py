"""Schema sources: a live database dump provider and user supplied DBML."""

from typing import Optional, Protocol, Tuple

from httpx import AsyncClient, HTTPError, HTTPStatusError

from core.config import settings
from core.exceptions import SourceUnavailableException
from core.logging_config import get_logger
from schemas.abstract_schema import Dialect

logger = get_logger(__name__)


class SchemaSource(Protocol):
    async def fetch_dump(self) -> Tuple[str, Dialect]:
        ...


class DumpSource:
    """
    Fetches a SQL dump from the dump provider.

    The provider answers a GET with a JSON object holding the dump text in
    ``field``. A single attempt is made; there is no retry.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        field: Optional[str] = None,
        dialect: Optional[Dialect] = None,
        client: Optional[AsyncClient] = None,
    ):
        self.url = url or settings.dump_url
        self.field = field or settings.dump_field
        self.dialect = Dialect(dialect or settings.dump_dialect)
        self._client = client

    async def _get(self, client: AsyncClient):
        response = await client.get(self.url, headers={"accept": "application/json"})
        response.raise_for_status()
        return response

    async def fetch_dump(self) -> Tuple[str, Dialect]:
        """
        Fetch the raw dump text.

        Returns:
            Tuple of (dump text, dialect)

        Raises:
            SourceUnavailableException: On transport errors, error statuses,
                malformed bodies or an empty dump.
        """
        logger.info(f"Fetching schema dump from {self.url}")
        try:
            if self._client is not None:
                response = await self._get(self._client)
            else:
                async with AsyncClient(timeout=settings.http_timeout) as client:
                    response = await self._get(client)
            data = response.json()
        except HTTPStatusError as e:
            logger.error(f"Dump provider returned {e.response.status_code}: {e.response.text[:200]}")
            raise SourceUnavailableException(f"Dump provider returned status {e.response.status_code}") from e
        except HTTPError as e:
            logger.error(f"Dump provider unreachable: {e}")
            raise SourceUnavailableException(f"Dump provider unreachable: {e}") from e
        except ValueError as e:
            logger.error(f"Dump provider returned a malformed body: {e}")
            raise SourceUnavailableException("Dump provider returned a malformed body") from e

        text = data.get(self.field) if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            logger.error(f"Dump provider response has no usable {self.field!r} field")
            raise SourceUnavailableException(f"Dump provider returned no {self.field!r} payload")

        logger.info(f"Fetched {len(text)} characters of {self.dialect.value} dump")
        return text, self.dialect


class DbmlSource:
    """DBML text pasted or uploaded by the user."""

    def __init__(self, text: str):
        self.text = text

    async def fetch_dump(self) -> Tuple[str, Dialect]:
        if not self.text or not self.text.strip():
            raise SourceUnavailableException("No DBML text supplied")
        return self.text, Dialect.DBML

"""
Base repository class for per-entity CRUD over a remote service.

This module defines the abstract base class that every entity repository
implements. It holds the fallback policy in one place so the concrete
repositories only describe their endpoints:

- Reads (list, get_by_id) substitute the injected fallback dataset when the
  client reports a failure. A genuine empty collection is returned as-is.
- Writes (create, update, delete) pass straight through; a failure raises
  ServiceRequestError with the upstream message and is never masked.
- The remote primary key is renamed to "id" before validation, and records
  that do not validate are skipped rather than failing the whole listing.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from nutriplan.client import ServiceClient, ServiceResult
from nutriplan.errors import ServiceRequestError
from nutriplan.models import EntityModel, Payload, normalize_identifier

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=EntityModel)

Predicate = Callable[[Any], bool]


@dataclass
class ListResult(Generic[E]):
    """
    Outcome of a list read.

    Attributes:
        items: Records to show (live data, or the fallback substitute)
        live: False when items came from the fallback dataset
        error: Failure reason when live is False
    """
    items: List[E] = field(default_factory=list)
    live: bool = True
    error: Optional[str] = None


class BaseRepository(ABC, Generic[E]):
    """
    Abstract base class for all entity repositories.

    Attributes:
        service: Service name the entity lives in ("users", "plans", "recipes")
        model: Pydantic model records are validated into
        key_field: Primary key field name on the wire ("id" or "_id")
    """
    service: str
    model: Type[E]
    key_field: str = "id"

    def __init__(self, client: ServiceClient, fallback: Optional[Sequence[E]] = None) -> None:
        self.client = client
        self._fallback: List[E] = list(fallback) if fallback is not None else self.default_fallback()

    @abstractmethod
    def default_fallback(self) -> List[E]:
        """Dataset used when no fallback is injected."""

    @abstractmethod
    def collection_path(self) -> str:
        """Path of the collection endpoint (also used for POST)."""

    def record_path(self, record_id: str) -> str:
        return f"{self.collection_path().rstrip('/')}/{record_id}"

    def create_path(self) -> str:
        return self.collection_path()

    @property
    def fallback(self) -> List[E]:
        return list(self._fallback)

    def list_request(self, **filters: Any) -> Tuple[str, Optional[Dict[str, Any]]]:
        """
        Map list filters to (path, query params). Subclasses that accept filters override this.

        Raises:
            TypeError: If a filter is not supported by this repository
        """
        unsupported = [name for name, value in filters.items() if value is not None]
        if unsupported:
            raise TypeError(f"{type(self).__name__}.list() got unsupported filter(s): {', '.join(unsupported)}")
        return self.collection_path(), None

    def fallback_predicate(self, **filters: Any) -> Optional[Predicate]:
        """Predicate applied to the fallback dataset for the same filters (None keeps all)."""
        return None

    # Parsing

    def normalize(self, raw: Any) -> Any:
        return normalize_identifier(raw, self.key_field)

    def parse_record(self, raw: Any, model: Optional[Type[E]] = None) -> Optional[E]:
        model = model or self.model
        if not isinstance(raw, dict):
            logger.warning("%s: expected an object, got %s", self.service, type(raw).__name__)
            return None
        try:
            return model.model_validate(self.normalize(raw))
        except ValidationError as e:
            logger.warning("%s: skipping invalid %s record: %s", self.service, model.__name__, e)
            return None

    def parse_collection(self, raw: List[Any]) -> List[E]:
        records = (self.parse_record(item) for item in raw)
        return [record for record in records if record is not None]

    # Reads

    async def _fetch_list(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        predicate: Optional[Predicate] = None,
    ) -> ListResult[E]:
        result = await self.client.call(self.service, path, params=params)

        if result.is_empty:
            return ListResult(items=[])
        if result.is_ok and isinstance(result.data, list):
            return ListResult(items=self.parse_collection(result.data))

        error = result.error if result.is_failure else "Unexpected payload shape for a collection"
        items = [record for record in self._fallback if predicate is None or predicate(record)]
        logger.warning(
            "%s unavailable for %s (%s); serving %d fallback record(s)",
            self.service, path, error, len(items),
        )
        return ListResult(items=items, live=False, error=error)

    async def list_result(self, **filters: Any) -> ListResult[E]:
        """
        List records, reporting whether the data is live.

        Args:
            **filters: Repository-specific filters (e.g. role, plan_id)

        Returns:
            ListResult with live data, or the fallback collection (filtered by the
            same predicate) and live=False when the service failed.
        """
        path, params = self.list_request(**filters)
        return await self._fetch_list(path, params, self.fallback_predicate(**filters))

    async def list(self, **filters: Any) -> List[E]:
        return (await self.list_result(**filters)).items

    async def get_by_id(self, record_id: str) -> Optional[E]:
        """
        Get a single record.

        Returns:
            The live record; on failure the fallback record with the same id;
            None if neither exists.
        """
        result = await self.client.call(self.service, self.record_path(record_id))
        if result.is_ok:
            return self.parse_record(result.data)
        if result.is_empty:
            return None
        return self.fallback_record(record_id)

    def fallback_record(self, record_id: str) -> Optional[E]:
        return next((record for record in self._fallback if record.id == record_id), None)

    # Writes

    @staticmethod
    def _wire(payload: Union[Payload, Dict[str, Any]]) -> Dict[str, Any]:
        if isinstance(payload, Payload):
            return payload.to_wire()
        if isinstance(payload, BaseModel):
            return payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return dict(payload)

    def _raise_for_failure(self, result: ServiceResult, action: str) -> None:
        if result.is_failure:
            logger.error("%s %s failed: %s", self.service, action, result.error)
            raise ServiceRequestError(self.service, result.error or "Request failed", result.status_code)

    def _write_outcome(self, result: ServiceResult, action: str) -> Optional[E]:
        self._raise_for_failure(result, action)
        if result.is_empty:
            return None
        return self.parse_record(result.data)

    async def create(self, payload: Union[Payload, Dict[str, Any]]) -> Optional[E]:
        """
        Create a record.

        Returns:
            The created record, or None if the service answered without a body.

        Raises:
            ServiceRequestError: If the service rejected the request or was unreachable
        """
        result = await self.client.call(self.service, self.create_path(), method="POST", json=self._wire(payload))
        return self._write_outcome(result, "create")

    async def update(self, record_id: str, payload: Union[Payload, Dict[str, Any]]) -> Optional[E]:
        """
        Update a record with a partial payload.

        Raises:
            ServiceRequestError: If the service rejected the request or was unreachable
        """
        result = await self.client.call(
            self.service, self.record_path(record_id), method="PUT", json=self._wire(payload)
        )
        return self._write_outcome(result, "update")

    async def delete(self, record_id: str) -> bool:
        """
        Delete a record.

        Returns:
            True once the service confirmed the deletion.

        Raises:
            ServiceRequestError: If the service rejected the request or was unreachable
        """
        result = await self.client.call(self.service, self.record_path(record_id), method="DELETE")
        self._raise_for_failure(result, "delete")
        return True

"""Paginated list state for one resource, kept consistent across mutations."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .pagination import PaginationState, next_page_after_deletion
from .services import ResourceApi

logger = logging.getLogger(__name__)


class MutationOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ListViewModel:
    """Immutable snapshot handed to presentation code."""

    data_source: tuple[Any, ...] = ()
    total: int = 0
    loading: bool = False
    pagination: PaginationState = field(default_factory=PaginationState)
    filters: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class _ListState:
    rows: tuple[Any, ...]
    pagination: PaginationState
    filters: Mapping[str, Any]


class ListController:
    """Drives load and mutation calls for one list and owns its page state.

    Loads apply in issuance order: a load that completes after a newer one was
    issued is discarded.
    """

    def __init__(self, api: ResourceApi, *, page_size: int = 10):
        self._api = api
        self._state = _ListState(rows=(), pagination=PaginationState(1, page_size, 0), filters={})
        self._filters: dict[str, Any] = {}
        self._generation = 0
        self._loading = False

    @property
    def api(self) -> ResourceApi:
        return self._api

    @property
    def data_source(self) -> tuple[Any, ...]:
        return self._state.rows

    @property
    def total(self) -> int:
        return self._state.pagination.total

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def pagination(self) -> PaginationState:
        return self._state.pagination

    def view_model(self) -> ListViewModel:
        state = self._state
        return ListViewModel(
            data_source=state.rows,
            total=state.pagination.total,
            loading=self._loading,
            pagination=state.pagination,
            filters=dict(state.filters),
        )

    async def load_data(
        self,
        page: int = 1,
        page_size: int | None = None,
        filters: Mapping[str, Any] | None = None,
    ) -> None:
        """Fetch one page and replace the list state.

        ``filters=None`` keeps the filters of the previous load. On failure the
        state is left as it was.
        """
        size = page_size if page_size is not None else self._state.pagination.page_size
        if page < 1:
            raise ValueError(f"page must be >= 1 (got {page})")
        if size < 1:
            raise ValueError(f"page_size must be >= 1 (got {size})")
        if filters is not None:
            self._filters = dict(filters)
        query_filters = dict(self._filters)

        self._generation += 1
        generation = self._generation
        self._loading = True
        try:
            result = await self._api.list(page, size, query_filters)
        finally:
            if generation == self._generation:
                self._loading = False

        if generation != self._generation:
            logger.debug("Discarding stale load of %s page %d", self._api.path, page)
            return
        if not result.success or result.data is None:
            logger.debug("Load of %s page %d failed: %s", self._api.path, page, result.message)
            return

        listing = result.data
        if not listing.items and page > 1:
            last_page = max(1, math.ceil(listing.total / size))
            if last_page < page:
                logger.debug("%s page %d is empty; loading page %d", self._api.path, page, last_page)
                await self.load_data(last_page, size)
                return

        self._state = _ListState(
            rows=tuple(listing.items),
            pagination=PaginationState(page, size, listing.total),
            filters=query_filters,
        )

    async def handle_create(self, data: BaseModel | Mapping[str, Any]) -> bool:
        before = self._state.pagination
        result = await self._api.create(data)
        if not result.success:
            return False
        await self.load_data(before.current, before.page_size)
        return True

    async def handle_update(self, record_id: int, data: BaseModel | Mapping[str, Any]) -> bool:
        before = self._state.pagination
        result = await self._api.update(record_id, data)
        if not result.success:
            return False
        await self.load_data(before.current, before.page_size)
        return True

    async def handle_delete(self, record_id: int) -> bool:
        before = self._state.pagination
        result = await self._api.delete(record_id)
        if not result.success:
            return False
        await self.load_data(next_page_after_deletion(before), before.page_size)
        return True

    async def mutate(self, operation: MutationOperation | str, payload: Any) -> bool:
        """Dispatch a mutation by name.

        ``create`` takes the form as payload; ``update`` takes ``{"id", "data"}``;
        ``delete`` takes ``{"id"}`` or the bare id.
        """
        op = MutationOperation(operation)
        if op is MutationOperation.CREATE:
            return await self.handle_create(payload)
        if op is MutationOperation.UPDATE:
            if not isinstance(payload, Mapping) or "id" not in payload or "data" not in payload:
                raise ValueError("update payload must be a mapping with 'id' and 'data'")
            return await self.handle_update(payload["id"], payload["data"])
        if isinstance(payload, Mapping):
            if "id" not in payload:
                raise ValueError("delete payload must carry an 'id'")
            return await self.handle_delete(payload["id"])
        return await self.handle_delete(payload)

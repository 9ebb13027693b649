"""Resource API bindings on top of the request pipeline."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from .config import get_resource_config
from .models import (
    AIModel,
    ListPage,
    LoginRequest,
    LoginResponse,
    ModelSource,
    ProxyService,
    PurgeResult,
    RequestLog,
    RequestResult,
    SystemLog,
    Token,
    UserInfo,
)
from .request_pipeline import RequestPipeline

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

RESOURCE_MODELS: dict[str, type[BaseModel]] = {
    "proxy-services": ProxyService,
    "ai-models": AIModel,
    "model-sources": ModelSource,
    "tokens": Token,
    "system-logs": SystemLog,
    "request-logs": RequestLog,
    "token-usage-logs": RequestLog,
}

LOG_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _format_time(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime(LOG_TIME_FORMAT)
    return str(value)


def build_list_query(filters: Mapping[str, Any] | None) -> dict[str, Any]:
    """Normalize list filters into query parameters.

    A ``time_range`` pair becomes ``start_time``/``end_time``; empty values are dropped.
    """
    query: dict[str, Any] = {}
    for key, value in (filters or {}).items():
        if key == "time_range":
            if value:
                start, end = value
                query["start_time"] = _format_time(start)
                query["end_time"] = _format_time(end)
            continue
        if value is None or value == "":
            continue
        query[key] = value
    return query


def _payload(data: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", exclude_none=True)
    if isinstance(data, Mapping):
        return dict(data)
    raise TypeError(f"payload must be a pydantic model or a mapping, not {type(data).__name__}")


class ResourceApi(Generic[T]):
    """CRUD calls for one backend collection."""

    def __init__(
        self,
        pipeline: RequestPipeline,
        path: str,
        record_model: type[T],
        *,
        notify_success: bool = False,
        read_only: bool = False,
        purge_path: str | None = None,
    ):
        self._pipeline = pipeline
        self._path = path.rstrip("/")
        self._record_model = record_model
        self._list_model = ListPage[record_model]
        self._mutation_options = {"show_success_message": notify_success}
        self._read_only = read_only
        self._purge_path = purge_path

    @property
    def path(self) -> str:
        return self._path

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def can_purge(self) -> bool:
        return bool(self._purge_path)

    def _require_writable(self) -> None:
        if self._read_only:
            raise RuntimeError(f"Resource {self._path} is read-only")

    async def list(
        self, page: int = 1, page_size: int = 10, filters: Mapping[str, Any] | None = None
    ) -> RequestResult:
        params = build_list_query(filters)
        params["page"] = page
        params["page_size"] = page_size
        return await self._pipeline.get(self._path, params, response_model=self._list_model)

    async def get(self, record_id: int) -> RequestResult:
        return await self._pipeline.get(f"{self._path}/{record_id}", response_model=self._record_model)

    async def create(self, data: BaseModel | Mapping[str, Any]) -> RequestResult:
        self._require_writable()
        return await self._pipeline.post(
            self._path, _payload(data), self._mutation_options, response_model=self._record_model
        )

    async def update(self, record_id: int, data: BaseModel | Mapping[str, Any]) -> RequestResult:
        self._require_writable()
        return await self._pipeline.put(
            f"{self._path}/{record_id}",
            _payload(data),
            self._mutation_options,
            response_model=self._record_model,
        )

    async def delete(self, record_id: int) -> RequestResult:
        self._require_writable()
        return await self._pipeline.delete(f"{self._path}/{record_id}", None, self._mutation_options)

    async def purge(self, start: Any, end: Any, system_auth_token: str) -> RequestResult:
        """Delete every log row between ``start`` and ``end``.

        The backend checks ``system_auth_token`` (not the session token) and
        answers with the number of deleted rows as ``PurgeResult``.
        """
        if not self._purge_path:
            raise RuntimeError(f"Resource {self._path} does not support purging")
        token = system_auth_token.strip()
        if not token:
            raise ValueError("system_auth_token must not be empty")
        body = {
            "start_time": _format_time(start),
            "end_time": _format_time(end),
            "system_auth_token": token,
        }
        result = await self._pipeline.post(
            self._purge_path,
            body,
            {"show_success_message": True},
            response_model=PurgeResult,
        )
        if result.success and result.data is not None:
            logger.info("Purged %d rows from %s", result.data.deleted_count, self._path)
        return result


def build_resource_api(pipeline: RequestPipeline, config: dict, name: str) -> ResourceApi:
    """Build the API binding for a registry entry."""
    resource = get_resource_config(config, name)
    record_model = RESOURCE_MODELS.get(name)
    if record_model is None:
        raise KeyError(f"No record model registered for resource: {name}")
    return ResourceApi(
        pipeline,
        resource["path"],
        record_model,
        notify_success=resource["notify_success"],
        read_only=resource["read_only"],
        purge_path=resource["purge_path"],
    )


class AuthApi:
    def __init__(self, pipeline: RequestPipeline):
        self._pipeline = pipeline

    async def login(self, username: str, password: str) -> RequestResult:
        """Log in and start the session with the issued token on success."""
        form = LoginRequest(username=username, password=password)
        result = await self._pipeline.post(
            "/api/auth/login", form.model_dump(), response_model=LoginResponse
        )
        if result.success and result.data is not None:
            self._pipeline.begin_session(result.data.token)
        return result

    async def current_user(self) -> RequestResult:
        return await self._pipeline.get("/api/auth/me", response_model=UserInfo)

    def logout(self) -> None:
        self._pipeline.end_session()

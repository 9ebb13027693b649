from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorKind

T = TypeVar("T")


# --- Wire Models ---


class Envelope(BaseModel, Generic[T]):
    code: int
    message: str | None = ""
    data: T | None = None


class ListPage(BaseModel, Generic[T]):
    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(default=0, ge=0)
    items: list[T] = Field(default_factory=list, alias="list")


# --- Pipeline Models ---


class RequestOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    show_success_message: bool = False
    show_error_message: bool = True
    skip_error_handler: bool = False
    timeout: float | None = Field(default=None, gt=0.0)


class RequestResult(BaseModel, Generic[T]):
    success: bool
    data: T | None = None
    message: str
    error_kind: ErrorKind | None = None
    status_code: int | None = None
    raw_response: dict[str, Any] | None = None


# --- Auth Models ---


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    username: str


class LoginResponse(BaseModel):
    token: str
    username: str
    user_info: UserInfo | None = None


# --- Resource Models ---


class ProxyService(BaseModel):
    id: int
    service_id: str
    server_ip: str
    status: int = 1
    remark: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProxyServiceForm(BaseModel):
    service_id: str | None = None
    server_ip: str | None = None
    status: int | None = Field(default=None, ge=0, le=1)
    remark: str | None = None


class AIModel(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: int
    model_key: str
    model_name: str
    api_url: str
    remark: str | None = None
    status: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AIModelForm(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_key: str | None = None
    model_name: str | None = None
    api_url: str | None = None
    remark: str | None = None
    status: int | None = Field(default=None, ge=0, le=1)


class ModelSource(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: int
    model_name: str
    api_url: str
    api_key: str
    remark: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ModelSourceCreate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_name: str = Field(..., min_length=1)
    api_url: str = Field(..., min_length=1)
    api_key: str = Field(..., min_length=1)
    remark: str | None = None


class ModelSourceUpdate(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_name: str | None = None
    api_url: str | None = None
    api_key: str | None = None
    remark: str | None = None


class Token(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: int
    token: str
    ai_model_id: int
    model_name: str | None = None
    order_no: str | None = None
    status: int = 1
    expire_at: datetime | None = None
    usage_limit: int = 0
    remark: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TokenForm(BaseModel):
    ai_model_id: int | None = None
    order_no: str | None = None
    status: int | None = Field(default=None, ge=0, le=1)
    expire_at: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=0)
    remark: str | None = None


# --- Log Models ---


class SystemLog(BaseModel):
    id: int
    time: str
    level: str
    msg: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RequestLog(BaseModel):
    id: int
    time: str
    level: str = "INFO"
    msg: str = ""
    request_id: str = ""
    method: str = ""
    path: str = ""
    query: str = ""
    remote_addr: str = ""
    user_agent: str = ""
    x_forwarded_for: str = ""
    request_headers: dict[str, str] = Field(default_factory=dict)
    authorization: str = ""
    request_body: str = ""
    status: int = 0
    response_headers: dict[str, str] = Field(default_factory=dict)
    latency_ms: int = 0
    request_size_bytes: int = 0
    response_size_bytes: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PurgeResult(BaseModel):
    deleted_count: int = Field(..., ge=0)

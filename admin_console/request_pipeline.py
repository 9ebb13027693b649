import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from .auth_session import AuthSession
from .errors import (
    DEFAULT_MESSAGES,
    FAILURE_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    SUCCESS_MESSAGE,
    ErrorKind,
    classify_status,
)
from .models import Envelope, RequestOptions, RequestResult
from .navigation import RedirectScheduler
from .notifier import LoggingNotifier, Notifier, NotificationKind
from .redaction import LogRedactor

logger = logging.getLogger(__name__)

METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH"})
DEFAULT_TIMEOUT = 30.0


def _backend_message(payload: Any) -> str | None:
    """Return the backend's own message from an error body, if it sent one."""
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if isinstance(message, str) and message:
        return message
    data = payload.get("data")
    if isinstance(data, dict):
        nested = data.get("message")
        if isinstance(nested, str) and nested:
            return nested
    return None


def _decode_json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


class RequestPipeline:
    """Async request pipeline with bearer auth, envelope unwrapping and failure classification.

    Every expected failure (network, HTTP status, business code) comes back as a
    ``RequestResult`` with ``success=False``; only misuse raises.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: AuthSession | None = None,
        notifier: Notifier | None = None,
        redirects: RedirectScheduler | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        redactor: LogRedactor | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive (got {timeout})")
        self._base_url = base_url.rstrip("/")
        self._session = session if session is not None else AuthSession()
        self._notifier: Notifier = notifier if notifier is not None else LoggingNotifier()
        self._redirects = redirects
        self._timeout = timeout
        self._transport = transport
        self._redactor = redactor or LogRedactor()
        self._client: httpx.AsyncClient | None = None
        self._adapters: dict[Any, TypeAdapter] = {}

    async def start(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            transport=self._transport,
            follow_redirects=True,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        )

    async def stop(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
        if self._redirects is not None:
            self._redirects.cancel()

    async def __aenter__(self) -> "RequestPipeline":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    def _require_client(self) -> httpx.AsyncClient:
        """Return initialized client or raise a clear runtime error."""
        if self._client is None:
            raise RuntimeError("Request pipeline is not started")
        return self._client

    @property
    def session(self) -> AuthSession:
        return self._session

    def begin_session(self, token: str) -> None:
        self._session.begin(token)
        if self._redirects is not None:
            self._redirects.cancel()
        logger.info("Session started")

    def end_session(self) -> None:
        if self._session.clear():
            logger.info("Session ended")

    @staticmethod
    def _resolve_options(options: RequestOptions | Mapping[str, Any] | None) -> RequestOptions:
        if options is None:
            return RequestOptions()
        if isinstance(options, RequestOptions):
            return options
        if isinstance(options, Mapping):
            return RequestOptions.model_validate(dict(options))
        raise TypeError(f"options must be RequestOptions or a mapping, not {type(options).__name__}")

    def _adapter(self, response_model: Any) -> TypeAdapter:
        adapter = self._adapters.get(response_model)
        if adapter is None:
            adapter = TypeAdapter(response_model)
            self._adapters[response_model] = adapter
        return adapter

    async def execute(
        self,
        method: str,
        path: str,
        body: Any = None,
        query_params: Mapping[str, Any] | None = None,
        options: RequestOptions | Mapping[str, Any] | None = None,
        *,
        response_model: Any = None,
    ) -> RequestResult:
        """Send one request and normalize the outcome into a ``RequestResult``.

        A ``code == 0`` envelope is a success, unless ``response_model`` is given
        and ``data`` does not validate against it: that comes back as
        ``success=False`` with ``ErrorKind.INVALID_RESPONSE``.
        """
        verb = method.upper()
        if verb not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")
        opts = self._resolve_options(options)
        client = self._require_client()

        headers: dict[str, str] = {}
        token = self._session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        params = {k: v for k, v in (query_params or {}).items() if v is not None}
        timeout = opts.timeout or self._timeout

        logger.debug(
            "%s %s params=%s body=%s headers=%s",
            verb,
            path,
            self._redactor.redact_fields(params),
            self._redactor.redact_fields(body),
            self._redactor.redact_headers(headers),
        )
        try:
            resp = await client.request(
                verb, path, headers=headers, params=params or None, json=body, timeout=timeout
            )
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out after %.1fs: %s", verb, path, timeout, e)
            return self._fail(ErrorKind.NETWORK, NETWORK_ERROR_MESSAGE, opts)
        except httpx.RequestError as e:
            # Transport failures and redirect loops alike.
            logger.warning("%s %s network error: %s", verb, path, e)
            return self._fail(ErrorKind.NETWORK, NETWORK_ERROR_MESSAGE, opts)

        if not resp.is_success:
            return self._handle_http_error(verb, path, resp, opts)
        return self._handle_envelope(verb, path, resp, opts, response_model)

    def _handle_http_error(
        self, verb: str, path: str, resp: httpx.Response, opts: RequestOptions
    ) -> RequestResult:
        kind = classify_status(resp.status_code)
        payload = _decode_json(resp)
        message = _backend_message(payload) or DEFAULT_MESSAGES[kind]
        logger.warning("%s %s failed with HTTP %d (%s): %s", verb, path, resp.status_code, kind.value, message)
        if kind is ErrorKind.AUTH_EXPIRED:
            self._expire_session()
        return self._fail(
            kind,
            message,
            opts,
            status_code=resp.status_code,
            raw=payload if isinstance(payload, dict) else None,
        )

    def _handle_envelope(
        self,
        verb: str,
        path: str,
        resp: httpx.Response,
        opts: RequestOptions,
        response_model: Any,
    ) -> RequestResult:
        payload = _decode_json(resp)
        try:
            envelope = Envelope[Any].model_validate(payload)
        except ValidationError:
            logger.warning("%s %s returned a body that is not an envelope", verb, path)
            return self._fail(
                ErrorKind.INVALID_RESPONSE,
                DEFAULT_MESSAGES[ErrorKind.INVALID_RESPONSE],
                opts,
                status_code=resp.status_code,
            )

        if envelope.code != 0:
            message = envelope.message or FAILURE_MESSAGE
            logger.warning("%s %s business failure code=%d: %s", verb, path, envelope.code, message)
            return self._fail(
                ErrorKind.BUSINESS,
                message,
                opts,
                status_code=resp.status_code,
                data=envelope.data,
                raw=payload,
            )

        data = envelope.data
        if response_model is not None and data is not None:
            try:
                data = self._adapter(response_model).validate_python(data)
            except ValidationError as e:
                logger.warning("%s %s data did not match %s: %s", verb, path, response_model, e)
                return self._fail(
                    ErrorKind.INVALID_RESPONSE,
                    DEFAULT_MESSAGES[ErrorKind.INVALID_RESPONSE],
                    opts,
                    status_code=resp.status_code,
                    raw=payload,
                )

        message = envelope.message or SUCCESS_MESSAGE
        if opts.show_success_message:
            self._notify("success", message)
        return RequestResult(
            success=True,
            data=data,
            message=message,
            status_code=resp.status_code,
            raw_response=payload,
        )

    def _expire_session(self) -> None:
        if self._session.clear():
            logger.info("Session expired; token cleared")
        if self._redirects is not None:
            self._redirects.schedule()

    def _fail(
        self,
        kind: ErrorKind,
        message: str,
        opts: RequestOptions,
        *,
        status_code: int | None = None,
        data: Any = None,
        raw: dict[str, Any] | None = None,
    ) -> RequestResult:
        if opts.show_error_message and not opts.skip_error_handler:
            self._notify("error", message)
        return RequestResult(
            success=False,
            data=data,
            message=message,
            error_kind=kind,
            status_code=status_code,
            raw_response=raw,
        )

    def _notify(self, kind: NotificationKind, message: str) -> None:
        try:
            self._notifier.notify(kind, message)
        except Exception:
            # Notification is a side channel; the result is returned regardless.
            logger.warning("Notifier failed to deliver %s message", kind, exc_info=True)

    async def get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        options: RequestOptions | Mapping[str, Any] | None = None,
        *,
        response_model: Any = None,
    ) -> RequestResult:
        return await self.execute("GET", path, None, params, options, response_model=response_model)

    async def post(
        self,
        path: str,
        data: Any = None,
        options: RequestOptions | Mapping[str, Any] | None = None,
        *,
        response_model: Any = None,
    ) -> RequestResult:
        return await self.execute("POST", path, data, None, options, response_model=response_model)

    async def put(
        self,
        path: str,
        data: Any = None,
        options: RequestOptions | Mapping[str, Any] | None = None,
        *,
        response_model: Any = None,
    ) -> RequestResult:
        return await self.execute("PUT", path, data, None, options, response_model=response_model)

    async def delete(
        self,
        path: str,
        data: Any = None,
        options: RequestOptions | Mapping[str, Any] | None = None,
        *,
        response_model: Any = None,
    ) -> RequestResult:
        return await self.execute("DELETE", path, data, None, options, response_model=response_model)

    async def patch(
        self,
        path: str,
        data: Any = None,
        options: RequestOptions | Mapping[str, Any] | None = None,
        *,
        response_model: Any = None,
    ) -> RequestResult:
        return await self.execute("PATCH", path, data, None, options, response_model=response_model)

    async def health_check(self, path: str = "/health") -> dict:
        """Probe the backend health endpoint. Returns status dict."""
        try:
            resp = await self._require_client().get(path, timeout=5.0)
            return {
                "status": "healthy" if resp.status_code == 200 else "unhealthy",
                "code": resp.status_code,
            }
        except httpx.HTTPError as e:
            return {"status": "unreachable", "error": str(e)}

"""Admin console client wiring: settings, session, pipeline and list controllers."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from .auth_session import AuthSession, FileTokenStore, MemoryTokenStore
from .config import Settings, load_resources_config
from .config import settings as default_settings
from .list_controller import ListController
from .navigation import InMemoryNavigator, Navigator, RedirectScheduler
from .notifier import Notifier
from .redaction import LogRedactor
from .request_pipeline import RequestPipeline
from .services import AuthApi, build_resource_api

logger = logging.getLogger(__name__)


class AdminConsole:
    """One pipeline, one auth API and a list controller per registered resource."""

    def __init__(self, pipeline: RequestPipeline, resources_config: dict, *, page_size: int = 10):
        self.pipeline = pipeline
        self.auth = AuthApi(pipeline)
        self._controllers: dict[str, ListController] = {}
        for name in resources_config.get("resources", {}):
            api = build_resource_api(pipeline, resources_config, name)
            self._controllers[name] = ListController(api, page_size=page_size)

    @property
    def resource_names(self) -> list[str]:
        return sorted(self._controllers)

    def controller(self, name: str) -> ListController:
        controller = self._controllers.get(name)
        if controller is None:
            raise KeyError(f"Resource not found in config: {name}")
        return controller


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_session(settings: Settings) -> AuthSession:
    path = settings.session_file_path.strip()
    store = FileTokenStore(path) if path else MemoryTokenStore()
    return AuthSession(store)


@asynccontextmanager
async def open_console(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    navigator: Navigator | None = None,
    notifier: Notifier | None = None,
) -> AsyncIterator[AdminConsole]:
    """Startup: configure logging, load the resource registry, start the pipeline."""
    settings = settings or default_settings
    configure_logging(settings.log_level)

    resources_config = load_resources_config(settings.resources_config_path)
    logger.info(
        "Loaded %d resources for %s",
        len(resources_config.get("resources", {})),
        settings.base_url,
    )

    redirects = RedirectScheduler(
        navigator if navigator is not None else InMemoryNavigator(),
        settings.login_path,
        settings.redirect_delay_seconds,
    )
    pipeline = RequestPipeline(
        settings.base_url,
        session=build_session(settings),
        notifier=notifier,
        redirects=redirects,
        timeout=settings.request_timeout_seconds,
        transport=transport,
        redactor=LogRedactor(settings.log_redact_extra_patterns),
    )
    await pipeline.start()
    logger.info("Admin console client started")
    try:
        yield AdminConsole(pipeline, resources_config, page_size=settings.default_page_size)
    finally:
        await pipeline.stop()
        logger.info("Admin console client stopped")

from pathlib import Path
import sys

import httpx
import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from admin_console.auth_session import AuthSession, MemoryTokenStore  # noqa: E402
from admin_console.navigation import InMemoryNavigator, RedirectScheduler  # noqa: E402
from admin_console.request_pipeline import RequestPipeline  # noqa: E402

BASE_URL = "http://console.test"


class RecordingNotifier:
    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def notify(self, kind: str, message: str) -> None:
        self.messages.append((kind, message))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def session():
    return AuthSession(MemoryTokenStore("secret-token"))


@pytest.fixture
def navigator():
    return InMemoryNavigator("/tokens")


@pytest_asyncio.fixture
async def make_pipeline(session, notifier, navigator):
    """Build a started pipeline around an httpx transport."""
    pipelines: list[RequestPipeline] = []

    async def factory(transport: httpx.AsyncBaseTransport, **kwargs) -> RequestPipeline:
        pipeline = RequestPipeline(
            BASE_URL,
            session=session,
            notifier=notifier,
            redirects=RedirectScheduler(navigator, "/login", kwargs.pop("redirect_delay", 0.01)),
            transport=transport,
            **kwargs,
        )
        await pipeline.start()
        pipelines.append(pipeline)
        return pipeline

    yield factory

    for pipeline in pipelines:
        await pipeline.stop()


@pytest.fixture
def backend():
    from fake_backend import FakeBackend

    return FakeBackend()


@pytest_asyncio.fixture
async def backend_pipeline(make_pipeline, backend):
    return await make_pipeline(httpx.ASGITransport(app=backend.app))

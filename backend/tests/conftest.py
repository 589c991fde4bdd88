import os
import sys
import tempfile
from pathlib import Path

# Keep test logs out of the source tree and never reach the live service
os.environ["TRIVIA_LOG_DIR"] = tempfile.mkdtemp(prefix="trivia-logs-")
os.environ.pop("OPENAI_API_KEY", None)

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

import random

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from errors import QuestionSourceError
from generation import QuestionSource
from main import app, get_controller
from question_store import QuestionStore
from session import SessionController


class FakeQuestionSource(QuestionSource):
    """Replays canned replies; Exception instances are raised instead of returned."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = 0

    async def generate(self) -> str:
        self.calls += 1
        if not self.replies:
            raise QuestionSourceError("no canned reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def make_controller():
    def _make(*replies, max_size: int = 100, default_player_id: str = "default"):
        return SessionController(
            source=FakeQuestionSource(*replies),
            store=QuestionStore(max_size=max_size, rng=random.Random(7)),
            default_player_id=default_player_id,
        )
    return _make


@pytest.fixture
def trivia(make_controller):
    return make_controller()


@pytest_asyncio.fixture
async def api_client(trivia):
    app.dependency_overrides[get_controller] = lambda: trivia
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_controller, None)

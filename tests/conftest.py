import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DATABASE = Path(tempfile.gettempdir()) / "careerpath-tests.db"

# Settings and the engine are built at import time, so configure them first.
for _name in ("DATABASE_URL", "CAREERPATH_DATABASE_URL"):
    os.environ[_name] = f"sqlite:///{TEST_DATABASE}"
for _name in ("IDENTITY_SECRET", "CAREERPATH_IDENTITY_SECRET"):
    os.environ[_name] = "test-identity-secret"
os.environ["CAREERPATH_RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("SENTRY_DSN", None)
os.environ.pop("CAREERPATH_SENTRY_DSN", None)


class ScriptedClient:
    """Stand-in for GeminiClient that replays canned replies in order."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def generate(self, prompt, *, task, expected_items=None):
        self.calls.append({"prompt": prompt, "task": task, "expected_items": expected_items})
        if not self.replies:
            raise AssertionError(f"unexpected {task} call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def scripted_client():
    return ScriptedClient


@pytest.fixture(autouse=True)
def reset_test_database():
    """Drop and recreate all tables between tests to guarantee isolation."""

    import app.models  # noqa: F401
    from app.database import Base, engine

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield

"""Shared fixtures: an in-memory API and isolated clients wired to it."""

import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from fake_api import FakeNotesAPI  # noqa: E402
from notekeeper.client import Client  # noqa: E402
from notekeeper.config import Settings  # noqa: E402

API_URL = "http://api.test"
SHARE_ORIGIN = "http://notes.test"


@pytest.fixture
def api() -> FakeNotesAPI:
    fake = FakeNotesAPI()
    fake.add_user("ana", "pw")
    return fake


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        api_base_url=API_URL,
        share_origin=SHARE_ORIGIN,
        data_dir=tmp_path,
        store_secret=None,
        timeout_seconds=5.0,
    )


@pytest.fixture
def client(settings, api) -> Client:
    """A client talking to the fake API; use it as ``async with client:``."""
    return Client(settings, http_transport=httpx.MockTransport(api))


@pytest.fixture
def make_client(settings, api):
    """Build further clients sharing the same store and API (a 'process restart')."""

    def _make() -> Client:
        return Client(settings, http_transport=httpx.MockTransport(api))

    return _make

from __future__ import annotations

from typing import List

import pytest

from fakes import FakePusher, FakeSession
from pyselas import Credentials, SelasClient, SelasSettings


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(app_id="app-123", key="key-abc", secret="s3cr3t")


@pytest.fixture
def settings() -> SelasSettings:
    return SelasSettings(supabase_url="https://example.supabase.co", supabase_key="anon-key")


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def pushers() -> List[FakePusher]:
    return []


@pytest.fixture
def pusher_factory(pushers):
    def _factory(settings: SelasSettings) -> FakePusher:
        pusher = FakePusher(settings.pusher_key, cluster=settings.pusher_cluster)
        pushers.append(pusher)
        return pusher

    return _factory


@pytest.fixture
def client(credentials, settings, session) -> SelasClient:
    return SelasClient(credentials, settings=settings, session=session)

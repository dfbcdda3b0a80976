# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides sample members and requests, a controllable clock and a scripted
provider client. No network access: HTTP is mocked with respx where needed.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from groupavail.config.settings import Settings
from groupavail.core.models import (
    AvailabilityRequest,
    AvailabilityResponse,
    CacheBucket,
    DurationBuffer,
    Member,
    ParticipantRef,
    QueryPeriod,
    Slot,
)
from groupavail.provider.base_client import BaseAvailabilityClient
from groupavail.provider.request_builder import ProviderRequest


# === Helpers ===


class FakeClock:
    """Manually advanced UTC clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


def make_member(sub: str, uid: str | None = None, calendars: int = 1) -> Member:
    return Member(
        sub=sub,
        calendar_ids=[f"cal_{sub}_{i}" for i in range(calendars)],
        uid=uid if uid is not None else f"uid-{sub}",
    )


def make_request(
    subs: list[str],
    bucket: CacheBucket = CacheBucket.DAY,
    duration: int = 30,
) -> AvailabilityRequest:
    return AvailabilityRequest(
        members=[make_member(s) for s in subs],
        query_periods=[
            QueryPeriod(start="2026-03-02T09:00:00Z", end="2026-03-02T17:00:00Z"),
        ],
        duration_buffer=DurationBuffer(
            duration_minutes=duration,
            buffer_before_minutes=5,
            buffer_after_minutes=10,
        ),
        cache_bucket=bucket,
    )


def slot_for(subs: list[str], start: str = "2026-03-02T10:00:00Z") -> Slot:
    return Slot(
        start=start,
        end="2026-03-02T10:30:00Z",
        participants=[ParticipantRef(sub=s) for s in subs],
    )


class ScriptedProviderClient(BaseAvailabilityClient):
    """Provider double: one slot per batch listing the batch's subs.

    ``responder`` overrides the response for a batch; ``fail_subs`` makes any
    batch containing one of those subs raise ``error``; ``delay`` adds an
    await before answering so concurrency can be observed.
    """

    def __init__(
        self,
        responder: Callable[[list[str]], AvailabilityResponse] | None = None,
        fail_subs: set[str] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.calls: list[list[str]] = []
        self.requests: list[ProviderRequest] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._responder = responder
        self._fail_subs = fail_subs or set()
        self._error = error
        self._delay = delay

    @property
    def provider_name(self) -> str:
        return "scripted"

    async def fetch(self, request, original_members):
        subs = request.subs
        self.calls.append(subs)
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
            if self._fail_subs.intersection(subs):
                raise self._error or RuntimeError("scripted failure")
            if self._responder is not None:
                return self._responder(subs)
            return AvailabilityResponse(available_slots=[slot_for(subs)])
        finally:
            self.in_flight -= 1

    @property
    def fetched_subs(self) -> list[str]:
        return [s for call in self.calls for s in call]


# === Fixtures ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env, with a dummy token."""
    return Settings(_env_file=None, provider_api_token="test-token")


@pytest.fixture
def sample_request() -> AvailabilityRequest:
    return make_request(["acc_a", "acc_b", "acc_c"])


@pytest.fixture
def provider() -> ScriptedProviderClient:
    return ScriptedProviderClient()


@pytest.fixture
def member_factory() -> Callable[..., Member]:
    return make_member


@pytest.fixture
def request_factory() -> Callable[..., AvailabilityRequest]:
    return make_request


@pytest.fixture
def slot_factory() -> Callable[..., Slot]:
    return slot_for


@pytest.fixture
def provider_factory() -> type[ScriptedProviderClient]:
    return ScriptedProviderClient


@pytest.fixture(autouse=True)
def _reset_groupavail_logging():
    """Drop handlers installed by setup_logging() so streams don't leak between tests."""
    yield
    root = logging.getLogger("groupavail")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)

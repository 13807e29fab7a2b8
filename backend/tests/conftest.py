from __future__ import annotations

import datetime as dt
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from shifttimer.config import Settings
from shifttimer.geometry import build_geometry_config
from shifttimer.main import app
from shifttimer.models import GeometryConfig
from shifttimer.services import FlexibleShiftSession, StandardShiftSession


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: dt.datetime) -> None:
        self.current = start

    def __call__(self) -> dt.datetime:
        return self.current

    def advance(self, **kwargs: float) -> dt.datetime:
        self.current += dt.timedelta(**kwargs)
        return self.current

    def set(self, value: dt.datetime) -> None:
        self.current = value


@pytest.fixture()
def t0() -> dt.datetime:
    return dt.datetime(2024, 1, 1, 9, 0)


@pytest.fixture()
def clock(t0: dt.datetime) -> FakeClock:
    return FakeClock(t0)


@pytest.fixture(scope="session")
def geometry() -> GeometryConfig:
    return build_geometry_config(Settings())


@pytest.fixture()
def standard_session(clock: FakeClock, geometry: GeometryConfig) -> Generator[StandardShiftSession, None, None]:
    session = StandardShiftSession(clock=clock, geometry=geometry)
    yield session
    session.close()


@pytest.fixture()
def flexible_session(clock: FakeClock, geometry: GeometryConfig) -> Generator[FlexibleShiftSession, None, None]:
    session = FlexibleShiftSession(clock=clock, geometry=geometry)
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(
    standard_session: StandardShiftSession,
    flexible_session: FlexibleShiftSession,
) -> Generator[TestClient, None, None]:
    # Swapped onto app.state so the lifespan shutdown cancels their pollers on the app loop.
    previous = (app.state.standard_session, app.state.flexible_session)
    app.state.standard_session = standard_session
    app.state.flexible_session = flexible_session
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.state.standard_session, app.state.flexible_session = previous

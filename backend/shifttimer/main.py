from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .geometry import GEOMETRY
from .schemas import (
    BreakDraftResponse,
    BreakUpdateRequest,
    FlexibleShiftResponse,
    FlexibleShiftUpdateRequest,
    GeometryResponse,
    ProgressResponse,
    StandardShiftResponse,
    StandardShiftUpdateRequest,
)
from .services import FlexibleShiftSession, StandardShiftSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("%s ready (%s), polling every %d ms", settings.app_name, settings.environment, settings.poll_interval_ms)
    yield
    app.state.standard_session.close()
    app.state.flexible_session.close()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.state.standard_session = StandardShiftSession()
app.state.flexible_session = FlexibleShiftSession()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_standard_session(request: Request) -> StandardShiftSession:
    return request.app.state.standard_session


def get_flexible_session(request: Request) -> FlexibleShiftSession:
    return request.app.state.flexible_session


def _standard_response(session: StandardShiftSession) -> StandardShiftResponse:
    state = session.state
    return StandardShiftResponse(
        start_time=state.start_time,
        end_time=state.end_time,
        hourly_rate=state.hourly_rate,
        breaks=[BreakDraftResponse.model_validate(item) for item in state.breaks],
        errors=state.errors,
        progress=ProgressResponse.from_view(session.view()),
    )


def _flexible_response(session: FlexibleShiftSession) -> FlexibleShiftResponse:
    state = session.state
    return FlexibleShiftResponse(
        start_time=state.start_time,
        end_time=state.end_time,
        duration_hours=state.duration_hours,
        duration_minutes=state.duration_minutes,
        hourly_rate=state.hourly_rate,
        errors=state.errors,
        progress=ProgressResponse.from_view(session.view()),
    )


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/geometry", response_model=GeometryResponse)
async def geometry() -> GeometryResponse:
    return GeometryResponse.from_config(GEOMETRY)


@app.get("/shift/standard", response_model=StandardShiftResponse)
async def standard_view(session: StandardShiftSession = Depends(get_standard_session)) -> StandardShiftResponse:
    return _standard_response(session)


@app.patch("/shift/standard", response_model=StandardShiftResponse)
async def standard_edit(
    payload: StandardShiftUpdateRequest,
    session: StandardShiftSession = Depends(get_standard_session),
) -> StandardShiftResponse:
    session.edit(payload.model_dump(exclude_unset=True))
    return _standard_response(session)


@app.post("/shift/standard/breaks", response_model=StandardShiftResponse, status_code=status.HTTP_201_CREATED)
async def standard_add_break(session: StandardShiftSession = Depends(get_standard_session)) -> StandardShiftResponse:
    session.add_break()
    return _standard_response(session)


@app.patch("/shift/standard/breaks/{index}", response_model=StandardShiftResponse)
async def standard_update_break(
    index: int,
    payload: BreakUpdateRequest,
    session: StandardShiftSession = Depends(get_standard_session),
) -> StandardShiftResponse:
    session.update_break(index, payload.model_dump(exclude_unset=True))
    return _standard_response(session)


@app.delete("/shift/standard/breaks/{index}", response_model=StandardShiftResponse)
async def standard_remove_break(
    index: int,
    session: StandardShiftSession = Depends(get_standard_session),
) -> StandardShiftResponse:
    session.remove_break(index)
    return _standard_response(session)


@app.post("/shift/standard/toggle", response_model=StandardShiftResponse)
async def standard_toggle(session: StandardShiftSession = Depends(get_standard_session)) -> StandardShiftResponse:
    session.toggle()
    return _standard_response(session)


@app.post("/shift/standard/reset", response_model=StandardShiftResponse)
async def standard_reset(session: StandardShiftSession = Depends(get_standard_session)) -> StandardShiftResponse:
    session.reset()
    return _standard_response(session)


@app.get("/shift/flexible", response_model=FlexibleShiftResponse)
async def flexible_view(session: FlexibleShiftSession = Depends(get_flexible_session)) -> FlexibleShiftResponse:
    return _flexible_response(session)


@app.patch("/shift/flexible", response_model=FlexibleShiftResponse)
async def flexible_edit(
    payload: FlexibleShiftUpdateRequest,
    session: FlexibleShiftSession = Depends(get_flexible_session),
) -> FlexibleShiftResponse:
    session.edit(payload.model_dump(exclude_unset=True))
    return _flexible_response(session)


@app.post("/shift/flexible/toggle", response_model=FlexibleShiftResponse)
async def flexible_toggle(session: FlexibleShiftSession = Depends(get_flexible_session)) -> FlexibleShiftResponse:
    session.toggle()
    return _flexible_response(session)


@app.post("/shift/flexible/reset", response_model=FlexibleShiftResponse)
async def flexible_reset(session: FlexibleShiftSession = Depends(get_flexible_session)) -> FlexibleShiftResponse:
    session.reset()
    return _flexible_response(session)

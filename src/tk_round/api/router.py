"""tk_round REST API — round creation (operator), round reads, outbox tail."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.caller import Caller
from src.tk_common.database import get_db_session
from src.tk_common.response import ApiResponse, success_response
from src.tk_gateway.auth.dependencies import get_caller
from src.tk_round.application.schemas import (
    CreateRoundNowRequest,
    CreateRoundRequest,
    RoundDetail,
    RoundEventItem,
    RoundEventListResponse,
    RoundListResponse,
)
from src.tk_round.application.service import RoundRegistry
from src.tk_round.infrastructure.persistence import EventOutbox

router = APIRouter(prefix="/rounds", tags=["rounds"])
events_router = APIRouter(prefix="/events", tags=["events"])

_registry = RoundRegistry()
_outbox = EventOutbox()


def get_round_registry() -> RoundRegistry:
    return _registry


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_round(
    body: CreateRoundRequest,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    registry: Annotated[RoundRegistry, Depends(get_round_registry)],
    request: Request,
) -> ApiResponse:
    rnd = await registry.create_round(
        db, caller, body.market, body.start_ts, body.lock_ts, body.resolve_ts, body.fee_bps
    )
    data = RoundDetail.from_domain(rnd, registry.status_of(rnd))
    return success_response(data.model_dump(), request)


@router.post("/now60", status_code=status.HTTP_201_CREATED)
async def create_round_now60(
    body: CreateRoundNowRequest,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    registry: Annotated[RoundRegistry, Depends(get_round_registry)],
    request: Request,
) -> ApiResponse:
    if body.start_ts is None:
        rnd = await registry.create_round_now60(db, caller, body.market, body.fee_bps)
    else:
        rnd = await registry.create_round60(
            db, caller, body.market, body.start_ts, body.fee_bps
        )
    data = RoundDetail.from_domain(rnd, registry.status_of(rnd))
    return success_response(data.model_dump(), request)


@router.get("")
async def list_rounds(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    registry: Annotated[RoundRegistry, Depends(get_round_registry)],
    request: Request,
    cursor: int | None = Query(None, ge=1, description="Return rounds with id < cursor"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    page, next_cursor = await registry.list_rounds(db, cursor, limit)
    data = RoundListResponse(
        items=[RoundDetail.from_domain(r, registry.status_of(r)) for r in page],
        next_cursor=next_cursor,
        has_more=next_cursor is not None,
    )
    return success_response(data.model_dump(), request)


@router.get("/{round_id}")
async def get_round(
    round_id: int,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    registry: Annotated[RoundRegistry, Depends(get_round_registry)],
    request: Request,
) -> ApiResponse:
    rnd = await registry.get_round(db, round_id)
    data = RoundDetail.from_domain(rnd, registry.status_of(rnd))
    return success_response(data.model_dump(), request)


@events_router.get("")
async def list_events(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    after_id: int = Query(0, ge=0, description="Return events with id > after_id"),
    limit: int = Query(100, ge=1, le=500),
) -> ApiResponse:
    events = await _outbox.list_events(db, after_id, limit)
    data = RoundEventListResponse(
        items=[RoundEventItem.from_domain(e) for e in events],
        last_id=events[-1].id if events else after_id,
    )
    return success_response(data.model_dump(), request)

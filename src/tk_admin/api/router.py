"""Admin REST API — fee policy, invariant sweep, keeper, round stats.

Every route requires an operator; the role check lives in AdminService.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_admin.application.service import AdminService
from src.tk_common.caller import Caller
from src.tk_common.database import get_db_session
from src.tk_common.response import ApiResponse, success_response
from src.tk_gateway.auth.dependencies import get_caller
from src.tk_round.application.schemas import FeePolicyResponse, SetFeePolicyRequest
from src.tk_settlement.application.schemas import DueResolutionItem

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


def get_admin_service() -> AdminService:
    return _service


@router.get("/fees")
async def get_fee_policy(
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
    request: Request,
) -> ApiResponse:
    policy = await service.get_fee_policy(db, caller)
    return success_response(FeePolicyResponse.from_domain(policy).model_dump(), request)


@router.put("/fees")
async def set_fee_policy(
    body: SetFeePolicyRequest,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
    request: Request,
) -> ApiResponse:
    policy = await service.set_fee_policy(db, caller, body.fee_bps, body.fee_sink_user_id)
    return success_response(FeePolicyResponse.from_domain(policy).model_dump(), request)


@router.get("/invariants")
async def verify_invariants(
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
    request: Request,
) -> ApiResponse:
    result = await service.verify_all_invariants(db, caller)
    return success_response(result, request)


@router.post("/resolve-due")
async def resolve_due(
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
    request: Request,
    limit: int = Query(50, ge=1, le=500),
) -> ApiResponse:
    results = await service.resolve_due(db, caller, limit)
    items = [DueResolutionItem.from_domain(r).model_dump() for r in results]
    return success_response({"items": items, "resolved": sum(1 for i in items if i["ok"])}, request)


@router.get("/rounds/{round_id}/stats")
async def get_round_stats(
    round_id: int,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
    request: Request,
) -> ApiResponse:
    stats = await service.get_round_stats(db, caller, round_id)
    return success_response(stats, request)

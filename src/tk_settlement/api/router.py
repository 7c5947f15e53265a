"""tk_settlement REST API — resolve a round, claim, project a claim."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_betting.application.service import BettingLedger, get_betting_ledger
from src.tk_common.caller import Caller
from src.tk_common.database import get_db_session
from src.tk_common.response import ApiResponse, success_response
from src.tk_gateway.auth.dependencies import get_caller
from src.tk_round.api.router import get_round_registry
from src.tk_round.application.service import RoundRegistry
from src.tk_settlement.application.schemas import (
    ClaimableResponse,
    ClaimResponse,
    ResolutionResponse,
)
from src.tk_settlement.application.service import (
    ClaimProcessor,
    SettlementEngine,
    get_claim_processor,
    get_settlement_engine,
)
from src.tk_settlement.domain.payout import project_claim

router = APIRouter(prefix="/rounds", tags=["settlement"])


@router.post("/{round_id}/resolve")
async def resolve_round(
    round_id: int,
    _caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[SettlementEngine, Depends(get_settlement_engine)],
    request: Request,
) -> ApiResponse:
    result = await engine.resolve(db, round_id)
    return success_response(ResolutionResponse.from_domain(result).model_dump(), request)


@router.post("/{round_id}/claim")
async def claim(
    round_id: int,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    processor: Annotated[ClaimProcessor, Depends(get_claim_processor)],
    request: Request,
) -> ApiResponse:
    result = await processor.claim(db, round_id, caller.user_id)
    return success_response(ClaimResponse.from_domain(result).model_dump(), request)


@router.get("/{round_id}/claimable")
async def get_claimable(
    round_id: int,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    registry: Annotated[RoundRegistry, Depends(get_round_registry)],
    ledger: Annotated[BettingLedger, Depends(get_betting_ledger)],
    request: Request,
) -> ApiResponse:
    rnd = await registry.get_round(db, round_id)
    up, down = await ledger.get_user_stakes(db, round_id, caller.user_id)
    data = ClaimableResponse.from_projection(round_id, project_claim(rnd, up, down))
    return success_response(data.model_dump(), request)

"""tk_betting REST API — place a bet, read own stake.

Bet placement is additionally throttled by RateLimitMiddleware.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_betting.application.schemas import BetResponse, PlaceBetRequest, StakeResponse
from src.tk_betting.application.service import BettingLedger, get_betting_ledger
from src.tk_common.caller import Caller
from src.tk_common.database import get_db_session
from src.tk_common.response import ApiResponse, success_response
from src.tk_gateway.auth.dependencies import get_caller

router = APIRouter(prefix="/rounds", tags=["betting"])


@router.post("/{round_id}/bets")
async def place_bet(
    round_id: int,
    body: PlaceBetRequest,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    ledger: Annotated[BettingLedger, Depends(get_betting_ledger)],
    request: Request,
) -> ApiResponse:
    receipt = await ledger.bet(db, round_id, caller.user_id, body.side, body.amount)
    return success_response(BetResponse.from_receipt(receipt).model_dump(), request)


@router.get("/{round_id}/stakes/me")
async def get_my_stake(
    round_id: int,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    ledger: Annotated[BettingLedger, Depends(get_betting_ledger)],
    request: Request,
) -> ApiResponse:
    stake = await ledger.get_stake(db, round_id, caller.user_id)
    return success_response(StakeResponse.from_domain(stake).model_dump(), request)

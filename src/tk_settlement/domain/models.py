"""Result types returned by the settlement services."""

from dataclasses import dataclass

from src.tk_common.enums import Outcome


@dataclass
class ResolutionResult:
    round_id: int
    outcome: Outcome
    ref_price: int
    settle_price: int
    fee: int
    fee_charged: bool


@dataclass
class ClaimResult:
    round_id: int
    user_id: str
    payout: int
    outcome: Outcome


@dataclass
class DueResolution:
    """One entry of a resolve_due sweep: either a result or an error message."""

    round_id: int
    result: ResolutionResult | None = None
    error_code: int | None = None
    error: str | None = None

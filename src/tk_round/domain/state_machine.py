"""Round lifecycle: timing rules and the derived status function."""

from src.tk_common.enums import RoundStatus
from src.tk_common.errors import InvalidTimingError
from src.tk_round.domain.models import LOCK_GAP_SECONDS, ROUND_SECONDS, Round


def validate_timing(start_ts: int, lock_ts: int, resolve_ts: int, now: int) -> None:
    """Raise InvalidTimingError unless the round fits the fixed 60s/10s shape.

    start == now is accepted; only a start strictly in the past is rejected.
    """
    if start_ts < now:
        raise InvalidTimingError("start time in past")
    if lock_ts <= start_ts:
        raise InvalidTimingError("lock time before start time")
    if resolve_ts <= lock_ts:
        raise InvalidTimingError("resolve time before lock time")
    if resolve_ts != start_ts + ROUND_SECONDS:
        raise InvalidTimingError(f"resolve must be start+{ROUND_SECONDS}")
    if lock_ts != resolve_ts - LOCK_GAP_SECONDS:
        raise InvalidTimingError(f"lock must be resolve-{LOCK_GAP_SECONDS}")


def fixed_schedule(start_ts: int) -> tuple[int, int, int]:
    """(start, lock, resolve) for a standard round starting at start_ts."""
    resolve_ts = start_ts + ROUND_SECONDS
    return start_ts, resolve_ts - LOCK_GAP_SECONDS, resolve_ts


def derive_status(rnd: Round, now: int) -> RoundStatus:
    if rnd.resolved:
        return RoundStatus.RESOLVED
    if now < rnd.start_ts:
        return RoundStatus.UPCOMING
    if now < rnd.lock_ts:
        return RoundStatus.BETTING
    if now < rnd.resolve_ts:
        return RoundStatus.LOCKED
    return RoundStatus.RESOLVING

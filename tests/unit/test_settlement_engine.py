"""Unit tests for SettlementEngine.resolve / resolve_due."""

from unittest.mock import AsyncMock

import pytest

from src.tk_common.enums import Outcome, RoundEventType
from src.tk_common.errors import (
    AlreadyResolvedError,
    RoundNotFoundError,
    SinkTransferFailedError,
    StalePriceError,
    TooEarlyError,
)
from src.tk_oracle.domain.client import PriceOracleClientProtocol
from src.tk_oracle.domain.models import PriceReading
from src.tk_settlement.application.service import SettlementEngine
from tests.unit.fakes import NOW, FakeEnv

REF = 100 * 10**8


def _engine(env: FakeEnv, oracle: PriceOracleClientProtocol | None = None) -> SettlementEngine:
    return SettlementEngine(
        rounds=env.rounds,
        outbox=env.outbox,
        fee_sink=env.custody,
        oracle=oracle or env.oracle,
        locks=env.locks,
        clock=env.clock,
    )


def _due_round(env: FakeEnv, **kwargs: object) -> int:
    """A round whose resolve_ts is exactly now."""
    kwargs.setdefault("ref_price", REF)
    return env.put_round(start_ts=NOW - 60, **kwargs).id


class TestResolve:
    async def test_up_with_fee(self, env: FakeEnv) -> None:
        round_id = _due_round(env, up_pool=100, down_pool=50)
        env.oracle.price = REF + 1

        result = await _engine(env).resolve(env.db, round_id)

        assert result.outcome == Outcome.UP
        assert result.fee == 7
        rnd = env.round(round_id)
        assert rnd.resolved and rnd.fee_charged
        assert rnd.settle_price == REF + 1
        assert env.balance("PLATFORM_FEE") == 7
        assert env.outbox.types(round_id) == [
            RoundEventType.FEE_CHARGED.value,
            RoundEventType.ROUND_RESOLVED.value,
        ]

    async def test_down(self, env: FakeEnv) -> None:
        round_id = _due_round(env, up_pool=10, down_pool=10)
        env.oracle.price = REF - 1
        assert (await _engine(env).resolve(env.db, round_id)).outcome == Outcome.DOWN

    async def test_equal_price_is_flat_without_fee(self, env: FakeEnv) -> None:
        round_id = _due_round(env, up_pool=10, down_pool=10)
        env.oracle.price = REF

        result = await _engine(env).resolve(env.db, round_id)

        assert result.outcome == Outcome.FLAT
        assert not env.round(round_id).fee_charged
        assert env.balance("PLATFORM_FEE") == 0

    async def test_no_bets_resolves_flat_without_oracle(self, env: FakeEnv) -> None:
        round_id = _due_round(env, ref_price=0)

        result = await _engine(env).resolve(env.db, round_id)

        assert result.outcome == Outcome.FLAT
        assert result.settle_price == 0
        assert env.oracle.calls == 0

    async def test_empty_winning_side_voids_to_flat(self, env: FakeEnv) -> None:
        round_id = _due_round(env, up_pool=0, down_pool=40)
        env.oracle.price = REF + 500

        result = await _engine(env).resolve(env.db, round_id)

        assert result.outcome == Outcome.FLAT
        assert result.fee == 0
        assert env.round(round_id).settle_price == REF + 500

    async def test_too_early(self, env: FakeEnv) -> None:
        round_id = env.put_round(start_ts=NOW - 59, ref_price=REF).id
        with pytest.raises(TooEarlyError):
            await _engine(env).resolve(env.db, round_id)

    async def test_unknown_round(self, env: FakeEnv) -> None:
        with pytest.raises(RoundNotFoundError):
            await _engine(env).resolve(env.db, 7)

    async def test_second_resolve_rejected_and_outcome_unchanged(self, env: FakeEnv) -> None:
        round_id = _due_round(env, up_pool=10, down_pool=10)
        env.oracle.price = REF + 1
        engine = _engine(env)
        await engine.resolve(env.db, round_id)

        env.oracle.price = REF - 1
        with pytest.raises(AlreadyResolvedError):
            await engine.resolve(env.db, round_id)
        assert env.round(round_id).outcome == Outcome.UP
        assert env.balance("PLATFORM_FEE") == 1

    async def test_stale_price_leaves_round_untouched(self, env: FakeEnv) -> None:
        round_id = _due_round(env, up_pool=10, down_pool=10)
        env.oracle.error = StalePriceError("publish time too old")

        with pytest.raises(StalePriceError):
            await _engine(env).resolve(env.db, round_id)

        rnd = env.round(round_id)
        assert not rnd.resolved
        assert rnd.outcome == Outcome.NONE
        assert env.outbox.types() == []

    async def test_negative_settle_reading_leaves_round_untouched(self, env: FakeEnv) -> None:
        round_id = _due_round(env, up_pool=10, down_pool=10)
        oracle = AsyncMock()
        oracle.get_price_with_freshness.return_value = PriceReading(-REF, 8, NOW)

        with pytest.raises(StalePriceError):
            await _engine(env, oracle).resolve(env.db, round_id)

        assert not env.round(round_id).resolved
        assert env.balance("PLATFORM_FEE") == 0

    async def test_fee_sink_failure_aborts_resolution(self, env: FakeEnv) -> None:
        round_id = _due_round(env, up_pool=100, down_pool=50)
        env.oracle.price = REF + 1
        env.custody.fail_fee = True

        with pytest.raises(SinkTransferFailedError):
            await _engine(env).resolve(env.db, round_id)

        rnd = env.round(round_id)
        assert not rnd.resolved and not rnd.fee_charged
        assert env.outbox.types() == []

        env.custody.fail_fee = False
        assert (await _engine(env).resolve(env.db, round_id)).outcome == Outcome.UP


class TestResolveDue:
    async def test_resolves_due_rounds_and_reports_failures(self, env: FakeEnv) -> None:
        empty = _due_round(env, ref_price=0)
        bad = _due_round(env, up_pool=5, down_pool=5)
        not_due = env.put_round(start_ts=NOW, ref_price=REF).id
        env.oracle.error = StalePriceError("feed down")

        results = await _engine(env).resolve_due(env.db)

        by_id = {r.round_id: r for r in results}
        assert set(by_id) == {empty, bad}
        assert by_id[empty].result is not None
        assert by_id[empty].result.outcome == Outcome.FLAT
        assert by_id[bad].result is None
        assert by_id[bad].error_code == 5003
        assert not env.round(not_due).resolved

"""Unit tests for RoundRegistry over in-memory repositories."""

import pytest

from src.tk_common.caller import Caller
from src.tk_common.enums import RoundEventType, RoundStatus, UserRole
from src.tk_common.errors import (
    InvalidFeeError,
    InvalidMarketError,
    InvalidTimingError,
    OperatorRequiredError,
    RoundNotFoundError,
)
from src.tk_round.application.service import RoundRegistry, validate_market
from tests.unit.fakes import NOW, FakeEnv

OPERATOR = Caller("op-1", UserRole.OPERATOR.value)
PARTICIPANT = Caller("user-1")


def _registry(env: FakeEnv) -> RoundRegistry:
    return RoundRegistry(repo=env.rounds, outbox=env.outbox, clock=env.clock)


class TestCreateRound:
    async def test_creates_round_with_first_id_one(self, env: FakeEnv) -> None:
        rnd = await _registry(env).create_round(
            env.db, OPERATOR, "BTC/USD", NOW, NOW + 50, NOW + 60
        )
        assert rnd.id == 1
        assert rnd.ref_price == 0
        assert (rnd.up_pool, rnd.down_pool) == (0, 0)
        assert not rnd.resolved
        assert env.db.commits == 1

    async def test_appends_round_created_event(self, env: FakeEnv) -> None:
        await _registry(env).create_round(env.db, OPERATOR, "BTC/USD", NOW, NOW + 50, NOW + 60)
        assert env.outbox.types() == [RoundEventType.ROUND_CREATED.value]

    async def test_fee_copied_from_policy(self, env: FakeEnv) -> None:
        env.store.data.fee_policy.fee_bps = 250
        rnd = await _registry(env).create_round(
            env.db, OPERATOR, "BTC/USD", NOW, NOW + 50, NOW + 60
        )
        assert rnd.fee_bps == 250

    async def test_explicit_fee(self, env: FakeEnv) -> None:
        rnd = await _registry(env).create_round(
            env.db, OPERATOR, "BTC/USD", NOW, NOW + 50, NOW + 60, fee_bps=100
        )
        assert rnd.fee_bps == 100

    async def test_participant_rejected(self, env: FakeEnv) -> None:
        with pytest.raises(OperatorRequiredError):
            await _registry(env).create_round(
                env.db, PARTICIPANT, "BTC/USD", NOW, NOW + 50, NOW + 60
            )
        assert env.store.data.rounds == {}

    async def test_past_start_rejected(self, env: FakeEnv) -> None:
        with pytest.raises(InvalidTimingError):
            await _registry(env).create_round(
                env.db, OPERATOR, "BTC/USD", NOW - 1, NOW + 49, NOW + 59
            )

    async def test_fee_above_max_rejected(self, env: FakeEnv) -> None:
        with pytest.raises(InvalidFeeError):
            await _registry(env).create_round(
                env.db, OPERATOR, "BTC/USD", NOW, NOW + 50, NOW + 60, fee_bps=501
            )

    async def test_create_round_now60(self, env: FakeEnv) -> None:
        rnd = await _registry(env).create_round_now60(env.db, OPERATOR, "BTC/USD")
        assert (rnd.start_ts, rnd.lock_ts, rnd.resolve_ts) == (NOW, NOW + 50, NOW + 60)

    async def test_ids_are_monotonic(self, env: FakeEnv) -> None:
        registry = _registry(env)
        first = await registry.create_round60(env.db, OPERATOR, "BTC/USD", NOW)
        second = await registry.create_round60(env.db, OPERATOR, "BTC/USD", NOW + 60)
        assert second.id == first.id + 1


class TestValidateMarket:
    @pytest.mark.parametrize("market", ["", "   ", "0x0000", "0x" + "0" * 64])
    def test_rejects_empty_or_zero(self, market: str) -> None:
        with pytest.raises(InvalidMarketError):
            validate_market(market)

    @pytest.mark.parametrize("market", ["BTC/USD", "0xe62df6c8"])
    def test_accepts(self, market: str) -> None:
        validate_market(market)


class TestReads:
    async def test_get_unknown_round(self, env: FakeEnv) -> None:
        with pytest.raises(RoundNotFoundError):
            await _registry(env).get_round(env.db, 42)

    async def test_list_rounds_paginates_newest_first(self, env: FakeEnv) -> None:
        for _ in range(5):
            env.put_round()
        registry = _registry(env)

        page, cursor = await registry.list_rounds(env.db, None, 2)
        assert [r.id for r in page] == [5, 4]
        assert cursor == 4

        page, cursor = await registry.list_rounds(env.db, cursor, 2)
        assert [r.id for r in page] == [3, 2]

        page, cursor = await registry.list_rounds(env.db, cursor, 2)
        assert [r.id for r in page] == [1]
        assert cursor is None

    async def test_status_of(self, env: FakeEnv) -> None:
        rnd = env.put_round(start_ts=NOW + 10)
        assert _registry(env).status_of(rnd) == RoundStatus.UPCOMING


class TestFeePolicy:
    async def test_operator_sets_policy(self, env: FakeEnv) -> None:
        policy = await _registry(env).set_fee_policy(env.db, OPERATOR, 300, "TREASURY")
        assert (policy.fee_bps, policy.fee_sink_user_id) == (300, "TREASURY")
        assert env.db.commits == 1

    async def test_fee_too_high(self, env: FakeEnv) -> None:
        with pytest.raises(InvalidFeeError):
            await _registry(env).set_fee_policy(env.db, OPERATOR, 501, "PLATFORM_FEE")

    async def test_participant_rejected(self, env: FakeEnv) -> None:
        with pytest.raises(OperatorRequiredError):
            await _registry(env).set_fee_policy(env.db, PARTICIPANT, 100, "PLATFORM_FEE")

    async def test_existing_rounds_keep_their_fee(self, env: FakeEnv) -> None:
        registry = _registry(env)
        rnd = await registry.create_round60(env.db, OPERATOR, "BTC/USD", NOW)
        await registry.set_fee_policy(env.db, OPERATOR, 100, "PLATFORM_FEE")
        assert (await registry.get_round(env.db, rnd.id)).fee_bps == 500

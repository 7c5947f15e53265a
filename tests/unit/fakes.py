"""In-memory fakes for the round engine's collaborators.

FakeSession mimics the commit/rollback contract of AsyncSession over a shared
FakeStore: commit() snapshots the store, rollback() restores the last
snapshot. Repositories return copies so services never alias stored state.
Oracle and custody calls yield to the event loop once, so gathered calls
interleave the way they would around real I/O.
"""

import asyncio
import copy
from dataclasses import dataclass, field

from src.tk_betting.domain.models import Stake
from src.tk_common.enums import LedgerEntryType, Side
from src.tk_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    SinkTransferFailedError,
    StalePriceError,
)
from src.tk_oracle.domain.models import PriceReading
from src.tk_round.application.locks import RoundLockRegistry
from src.tk_round.domain.models import FeePolicy, Round, RoundEvent

NOW = 1_700_000_000


@dataclass
class StoreData:
    rounds: dict[int, Round] = field(default_factory=dict)
    stakes: dict[tuple[int, str], Stake] = field(default_factory=dict)
    events: list[RoundEvent] = field(default_factory=list)
    balances: dict[str, int] = field(default_factory=dict)
    # (user_id, entry_type, amount, round_id)
    ledger: list[tuple[str, str, int, int | None]] = field(default_factory=list)
    fee_policy: FeePolicy = field(default_factory=lambda: FeePolicy(500, "PLATFORM_FEE"))
    next_round_id: int = 1


class FakeStore:
    def __init__(self) -> None:
        self.data = StoreData(balances={"PLATFORM_FEE": 0})


class FakeSession:
    def __init__(self, store: FakeStore) -> None:
        self._store = store
        self._snapshot = copy.deepcopy(store.data)
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self._snapshot = copy.deepcopy(self._store.data)
        self.commits += 1

    async def rollback(self) -> None:
        self._store.data = copy.deepcopy(self._snapshot)
        self.rollbacks += 1


class FakeRoundRepository:
    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def create_round(self, db, market, start_ts, lock_ts, resolve_ts, fee_bps):  # type: ignore[no-untyped-def]
        data = self._store.data
        rnd = Round(
            id=data.next_round_id,
            market=market,
            start_ts=start_ts,
            lock_ts=lock_ts,
            resolve_ts=resolve_ts,
            fee_bps=fee_bps,
        )
        data.rounds[rnd.id] = rnd
        data.next_round_id += 1
        return copy.deepcopy(rnd)

    async def get_round(self, db, round_id, for_update=False):  # type: ignore[no-untyped-def]
        rnd = self._store.data.rounds.get(round_id)
        return copy.deepcopy(rnd) if rnd else None

    async def list_rounds(self, db, cursor_id, limit):  # type: ignore[no-untyped-def]
        ids = sorted(self._store.data.rounds, reverse=True)
        if cursor_id is not None:
            ids = [i for i in ids if i < cursor_id]
        return [copy.deepcopy(self._store.data.rounds[i]) for i in ids[:limit]]

    async def list_due_round_ids(self, db, now, limit):  # type: ignore[no-untyped-def]
        due = [
            r.id for r in self._store.data.rounds.values()
            if not r.resolved and r.resolve_ts <= now
        ]
        return sorted(due)[:limit]

    async def set_ref_price(self, db, round_id, price):  # type: ignore[no-untyped-def]
        rnd = self._store.data.rounds[round_id]
        if rnd.ref_price != 0 or rnd.resolved:
            return False
        rnd.ref_price = price
        return True

    async def add_to_pool(self, db, round_id, side, amount):  # type: ignore[no-untyped-def]
        rnd = self._store.data.rounds[round_id]
        if side == Side.UP:
            rnd.up_pool += amount
        else:
            rnd.down_pool += amount

    async def mark_resolved(self, db, round_id, outcome, settle_price, fee_charged):  # type: ignore[no-untyped-def]
        rnd = self._store.data.rounds[round_id]
        if rnd.resolved:
            return False
        rnd.resolved = True
        rnd.outcome = outcome
        rnd.settle_price = settle_price
        rnd.fee_charged = fee_charged
        return True

    async def get_fee_policy(self, db):  # type: ignore[no-untyped-def]
        return copy.deepcopy(self._store.data.fee_policy)

    async def set_fee_policy(self, db, fee_bps, fee_sink_user_id):  # type: ignore[no-untyped-def]
        self._store.data.fee_policy = FeePolicy(fee_bps, fee_sink_user_id)
        return copy.deepcopy(self._store.data.fee_policy)


class FakeStakeRepository:
    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def get_stake(self, db, round_id, user_id, for_update=False):  # type: ignore[no-untyped-def]
        stake = self._store.data.stakes.get((round_id, user_id))
        return copy.deepcopy(stake) if stake else None

    async def add_stake(self, db, round_id, user_id, side, amount):  # type: ignore[no-untyped-def]
        stake = self._store.data.stakes.setdefault(
            (round_id, user_id), Stake(round_id=round_id, user_id=user_id)
        )
        if side == Side.UP:
            stake.up_amount += amount
        else:
            stake.down_amount += amount
        return copy.deepcopy(stake)

    async def zero_stake(self, db, round_id, user_id):  # type: ignore[no-untyped-def]
        stake = self._store.data.stakes.get((round_id, user_id))
        if stake is None or stake.total == 0:
            return False
        stake.up_amount = 0
        stake.down_amount = 0
        return True

    async def sum_stakes(self, db, round_id):  # type: ignore[no-untyped-def]
        stakes = [s for (rid, _), s in self._store.data.stakes.items() if rid == round_id]
        return sum(s.up_amount for s in stakes), sum(s.down_amount for s in stakes)


class FakeOutbox:
    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def append(self, db, round_id, event_type, payload):  # type: ignore[no-untyped-def]
        events = self._store.data.events
        events.append(RoundEvent(len(events) + 1, round_id, event_type, dict(payload)))

    async def list_events(self, db, after_id, limit):  # type: ignore[no-untyped-def]
        return [e for e in self._store.data.events if e.id > after_id][:limit]

    def types(self, round_id: int | None = None) -> list[str]:
        return [
            e.event_type for e in self._store.data.events
            if round_id is None or e.round_id == round_id
        ]


class FakeCustody:
    """Value source, value sink and fee sink over the store's balances."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store
        self.fail_deliver = False
        self.fail_fee = False
        self.deliveries: list[tuple[str, int, int]] = []

    def _move(self, user_id: str, amount: int, entry_type: LedgerEntryType, round_id: int) -> None:
        data = self._store.data
        data.balances[user_id] = data.balances.get(user_id, 0) + amount
        data.ledger.append((user_id, entry_type.value, amount, round_id))

    async def collect(self, db, user_id, amount, round_id):  # type: ignore[no-untyped-def]
        await asyncio.sleep(0)
        balances = self._store.data.balances
        if user_id not in balances:
            raise AccountNotFoundError(user_id)
        if balances[user_id] < amount:
            raise InsufficientBalanceError(amount, balances[user_id])
        self._move(user_id, -amount, LedgerEntryType.BET_STAKE, round_id)

    async def deliver(self, db, user_id, amount, round_id):  # type: ignore[no-untyped-def]
        await asyncio.sleep(0)
        if self.fail_deliver:
            raise SinkTransferFailedError("recipient rejected transfer")
        self._move(user_id, amount, LedgerEntryType.CLAIM_PAYOUT, round_id)
        self.deliveries.append((user_id, amount, round_id))

    async def collect_fee(self, db, sink_user_id, amount, round_id):  # type: ignore[no-untyped-def]
        if self.fail_fee:
            raise SinkTransferFailedError("fee sink unavailable")
        self._move(sink_user_id, amount, LedgerEntryType.FEE_REVENUE, round_id)


class FakeAccountRepository:
    """Read side of the credit ledger used by the invariant auditor."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def sum_by_reference(self, db, entry_type, ref_type, ref_id):  # type: ignore[no-untyped-def]
        return sum(
            amount for _, et, amount, rid in self._store.data.ledger
            if et == entry_type and str(rid) == ref_id
        )

    async def reconcile_totals(self, db):  # type: ignore[no-untyped-def]
        data = self._store.data
        return sum(data.balances.values()), sum(e[2] for e in data.ledger)

    async def custody_held(self, db):  # type: ignore[no-untyped-def]
        engine_types = {
            LedgerEntryType.BET_STAKE.value,
            LedgerEntryType.CLAIM_PAYOUT.value,
            LedgerEntryType.FEE_REVENUE.value,
        }
        return -sum(amount for _, et, amount, _ in self._store.data.ledger if et in engine_types)


class FakeOracle:
    def __init__(self, price: int = 0, error: Exception | None = None) -> None:
        self.price = price
        self.error = error
        self.calls = 0

    async def get_price_with_freshness(self, market: str, max_age_seconds: int) -> PriceReading:
        self.calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if self.price <= 0:
            raise StalePriceError(f"no price for {market}")
        return PriceReading(price=self.price, decimals=8, observed_at=NOW)


class Clock:
    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class FakeEnv:
    """One wiring of fakes shared by registry, betting and settlement tests."""

    def __init__(self) -> None:
        self.store = FakeStore()
        self.rounds = FakeRoundRepository(self.store)
        self.stakes = FakeStakeRepository(self.store)
        self.outbox = FakeOutbox(self.store)
        self.custody = FakeCustody(self.store)
        self.accounts = FakeAccountRepository(self.store)
        self.oracle = FakeOracle()
        self.locks = RoundLockRegistry()
        self.clock = Clock()
        self.db = FakeSession(self.store)

    def fund(self, user_id: str, amount: int) -> None:
        data = self.store.data
        data.balances[user_id] = data.balances.get(user_id, 0) + amount
        data.ledger.append((user_id, LedgerEntryType.DEPOSIT.value, amount, None))
        self.db._snapshot = copy.deepcopy(data)

    def balance(self, user_id: str) -> int:
        return self.store.data.balances.get(user_id, 0)

    def round(self, round_id: int) -> Round:
        return self.store.data.rounds[round_id]

    def stake(self, round_id: int, user_id: str) -> Stake | None:
        return self.store.data.stakes.get((round_id, user_id))

    def put_round(self, **kwargs: object) -> Round:
        """Insert a round directly, bypassing creation checks."""
        data = self.store.data
        start = int(kwargs.pop("start_ts", NOW))  # type: ignore[call-overload]
        rnd = Round(
            id=data.next_round_id,
            market=str(kwargs.pop("market", "BTC/USD")),
            start_ts=start,
            lock_ts=start + 50,
            resolve_ts=start + 60,
            fee_bps=int(kwargs.pop("fee_bps", 500)),  # type: ignore[call-overload]
            **kwargs,  # type: ignore[arg-type]
        )
        data.rounds[rnd.id] = rnd
        data.next_round_id += 1
        self.db._snapshot = copy.deepcopy(data)
        return rnd

